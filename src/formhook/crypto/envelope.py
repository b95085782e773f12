from __future__ import annotations

import base64

from ..api.models import EncryptedEnvelope
from ..errors import EnvelopeFormatError


def decode_b64_field(name: str, value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except ValueError:
        raise EnvelopeFormatError(f"{name} is not valid base64") from None


def parse_encrypted_content(content: str) -> EncryptedEnvelope:
    """Split ``b64(pubkey);b64(nonce):b64(ciphertext)`` into its parts.

    Split on ``;`` first, then the remainder on ``:``; each split must give
    exactly two parts. Byte lengths are checked when the box is opened.
    """
    parts = content.split(";")
    if len(parts) != 2:
        raise EnvelopeFormatError("encrypted content must contain exactly one ';'")
    public_key_b64, rest = parts
    parts = rest.split(":")
    if len(parts) != 2:
        raise EnvelopeFormatError("encrypted content must contain exactly one ':' after ';'")
    nonce_b64, ciphertext_b64 = parts
    return EncryptedEnvelope(
        sender_public_key=decode_b64_field("public key", public_key_b64),
        nonce=decode_b64_field("nonce", nonce_b64),
        ciphertext=decode_b64_field("ciphertext", ciphertext_b64),
    )


def format_encrypted_content(envelope: EncryptedEnvelope) -> str:
    def b64(b: bytes) -> str:
        return base64.b64encode(b).decode()

    return f"{b64(envelope.sender_public_key)};{b64(envelope.nonce)}:{b64(envelope.ciphertext)}"


__all__ = ["parse_encrypted_content", "format_encrypted_content", "decode_b64_field"]
