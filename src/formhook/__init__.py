"""formhook: receive FormSG encrypted-submission webhooks.

Authenticates the ``X-FormSG-Signature`` header (ed25519 + replay window),
decrypts the submission and its attachments (curve25519 box) and hands the
plaintext to the caller. The HTTP app, storage and CLI are thin wrappers
around these functions.
"""
from .crypto import decrypt_attachments, decrypt_submission  # noqa: F401
from .webhooks import authenticate, parse_signature_header  # noqa: F401
