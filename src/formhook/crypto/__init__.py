from .attachments import decrypt_attachment, decrypt_attachments, download_attachment  # noqa: F401
from .box import generate_box_keypair, open_box, seal_box  # noqa: F401
from .envelope import format_encrypted_content, parse_encrypted_content  # noqa: F401
from .submission import decode_submission, decrypt_submission  # noqa: F401
