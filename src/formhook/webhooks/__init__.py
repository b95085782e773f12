from .header import parse_signature_header  # noqa: F401
from .verify import authenticate, signature_base, verify_signature  # noqa: F401
