from __future__ import annotations

import base64
import re
import time

from nacl.encoding import RawEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from ..api.models import SignatureHeader, WebhookConfig
from ..errors import ConfigError, FutureSignature, InvalidSignature, InvalidTimestamp, StaleSignature
from .header import parse_signature_header

DEFAULT_MAX_AGE_MS = 300000

_TIMESTAMP_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1
_VERIFY_KEY_SIZE = 32
_SIGNATURE_SIZE = 64


def signature_base(post_uri: str, header: SignatureHeader) -> bytes:
    """Bytes the platform signs: ``<uri>.<submissionId>.<formId>.<t>``.

    ``post_uri`` must match the webhook URI configured on the form exactly
    (scheme, host, path, trailing slash).
    """
    return f"{post_uri}.{header.submission_id}.{header.form_id}.{header.timestamp}".encode("utf-8")


def parse_timestamp(raw: str) -> int:
    """Strict base-10 int64 epoch milliseconds (no whitespace or underscores)."""
    if not _TIMESTAMP_RE.fullmatch(raw):
        raise InvalidTimestamp("timestamp is not a base-10 integer")
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise InvalidTimestamp("timestamp out of range")
    return value


def current_time_ms() -> int:
    return int(time.time() * 1000)


def verify_signature(
    header: SignatureHeader,
    post_uri: str,
    sender_public_key: bytes,
    now_ms: int,
    *,
    max_age_ms: int = DEFAULT_MAX_AGE_MS,
    future_skew_ms: int | None = None,
) -> None:
    """Verify the ed25519 signature and freshness of a parsed header.

    Checks run in a fixed order: timestamp format, signature, staleness, and
    (only when ``future_skew_ms`` is set) future skew. The signature is always
    checked before the clock so a stale request cannot be used to probe
    signatures. Returns ``None`` on success, raises an ``AuthError`` subclass
    otherwise.
    """
    timestamp = parse_timestamp(header.timestamp)
    if len(sender_public_key) != _VERIFY_KEY_SIZE:
        raise ConfigError(f"sender public key must be {_VERIFY_KEY_SIZE} bytes")
    try:
        sig = base64.b64decode(header.signature_b64, validate=True)
    except ValueError:
        raise InvalidSignature("signature is not valid base64") from None
    if len(sig) != _SIGNATURE_SIZE:
        raise InvalidSignature("signature has wrong length")
    try:
        # libsodium verification is constant time over the signature bytes
        VerifyKey(sender_public_key).verify(signature_base(post_uri, header), sig, encoder=RawEncoder)
    except BadSignatureError:
        raise InvalidSignature("signature does not match") from None
    # Accept anything not more than max_age_ms in the past, boundary included.
    if timestamp + max_age_ms < now_ms:
        raise StaleSignature("signature is not recent")
    if future_skew_ms is not None and timestamp - future_skew_ms > now_ms:
        raise FutureSignature("signature timestamp is in the future")


def authenticate(raw_header: str | None, config: WebhookConfig, now_ms: int | None = None) -> SignatureHeader:
    """Parse and verify a raw signature header against ``config``."""
    header = parse_signature_header(raw_header or "")
    verify_signature(
        header,
        config.post_uri,
        config.sender_public_key,
        current_time_ms() if now_ms is None else now_ms,
        max_age_ms=config.max_age_ms,
        future_skew_ms=config.future_skew_ms,
    )
    return header


__all__ = ["signature_base", "parse_timestamp", "verify_signature", "authenticate", "current_time_ms"]
