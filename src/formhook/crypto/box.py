from __future__ import annotations

import base64

from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey
from nacl.utils import random

from ..api.models import EncryptedEnvelope
from ..errors import AuthenticationFailed, InvalidKeyLength

NONCE_SIZE = Box.NONCE_SIZE  # 24
KEY_SIZE = PublicKey.SIZE  # 32
MAC_SIZE = 16


def _check_size(name: str, value: bytes, expected: int) -> None:
    # Never pad or truncate; a short key/nonce is a malformed input.
    if len(value) != expected:
        raise InvalidKeyLength(name, expected, len(value))


def open_box(ciphertext: bytes, nonce: bytes, sender_public_key: bytes, recipient_private_key: bytes) -> bytes:
    """Authenticate and decrypt a curve25519-xsalsa20-poly1305 box.

    Returns the plaintext. On any tag mismatch raises ``AuthenticationFailed``
    without exposing partial plaintext or the derived shared key.
    """
    _check_size("nonce", nonce, NONCE_SIZE)
    _check_size("sender public key", sender_public_key, KEY_SIZE)
    _check_size("recipient private key", recipient_private_key, KEY_SIZE)
    if len(ciphertext) < MAC_SIZE:
        raise AuthenticationFailed("ciphertext shorter than authentication tag")
    try:
        box = Box(PrivateKey(recipient_private_key), PublicKey(sender_public_key))
        return box.decrypt(ciphertext, nonce)
    except CryptoError:
        # also covers low-order sender keys rejected during key agreement
        raise AuthenticationFailed("failed to decrypt content") from None


def open_envelope(envelope: EncryptedEnvelope, recipient_private_key: bytes) -> bytes:
    return open_box(envelope.ciphertext, envelope.nonce, envelope.sender_public_key, recipient_private_key)


def seal_box(plaintext: bytes, recipient_public_key: bytes, *, sender_private_key: bytes | None = None,
             nonce: bytes | None = None) -> EncryptedEnvelope:
    """Encrypt ``plaintext`` to a recipient the way the platform does.

    A fresh ephemeral sender key and random nonce are used unless given.
    """
    _check_size("recipient public key", recipient_public_key, KEY_SIZE)
    sender = PrivateKey(sender_private_key) if sender_private_key is not None else PrivateKey.generate()
    nonce = nonce if nonce is not None else random(NONCE_SIZE)
    _check_size("nonce", nonce, NONCE_SIZE)
    encrypted = Box(sender, PublicKey(recipient_public_key)).encrypt(plaintext, nonce)
    return EncryptedEnvelope(
        sender_public_key=bytes(sender.public_key),
        nonce=nonce,
        ciphertext=encrypted.ciphertext,
    )


def generate_box_keypair() -> tuple[str, str]:
    """Return a new ``(secret_key_b64, public_key_b64)`` recipient key pair."""
    sk = PrivateKey.generate()
    return (base64.b64encode(bytes(sk)).decode(), base64.b64encode(bytes(sk.public_key)).decode())


__all__ = ["open_box", "open_envelope", "seal_box", "generate_box_keypair", "NONCE_SIZE", "KEY_SIZE"]
