from __future__ import annotations

from ..api.models import SignatureHeader
from ..errors import HeaderFormatError

# header prefix -> SignatureHeader field
_PREFIXES = {
    "t": "timestamp",
    "s": "submission_id",
    "f": "form_id",
    "v1": "signature_b64",
}


def parse_signature_header(raw: str) -> SignatureHeader:
    """Parse an ``X-FormSG-Signature`` header value.

    Format (order not significant, all four required exactly once)::

        t=1582558358788,s=5e53ec96b10ee1010e00380b,f=5e4b8e3d1f61f00036c9937d,v1=<b64 signature>

    Only the structure is checked here. Whether ``t`` is numeric or ``v1`` is
    valid base64 is left to verification.
    """
    if not raw:
        raise HeaderFormatError("signature header is empty")
    parts = raw.split(",")
    if len(parts) != len(_PREFIXES):
        raise HeaderFormatError(f"expected {len(_PREFIXES)} components, got {len(parts)}")
    values: dict[str, str] = {}
    for part in parts:
        # split on the first '=' only; base64 signatures end in '=' padding
        key, sep, value = part.partition("=")
        field = _PREFIXES.get(key)
        if not sep or field is None:
            raise HeaderFormatError("unrecognized header component")
        if field in values:
            raise HeaderFormatError(f"duplicate '{key}=' component")
        if not value:
            raise HeaderFormatError(f"empty '{key}=' component")
        values[field] = value
    # four parts, no duplicates, all known -> every prefix present
    return SignatureHeader(**values)


__all__ = ["parse_signature_header"]
