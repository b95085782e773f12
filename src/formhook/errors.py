from __future__ import annotations


class FormhookError(Exception):
    """Base class for every failure raised by the webhook pipeline.

    ``reason`` is a short stable token suitable for logs and HTTP responses.
    Messages never carry key material, signatures or plaintext.
    """

    reason = "error"


class ConfigError(FormhookError):
    reason = "config_invalid"


class HeaderFormatError(FormhookError, ValueError):
    reason = "header_format"


class AuthError(FormhookError):
    reason = "auth_failed"


class InvalidTimestamp(AuthError):
    reason = "invalid_timestamp"


class InvalidSignature(AuthError):
    reason = "invalid_signature"


class StaleSignature(AuthError):
    reason = "stale"


class FutureSignature(AuthError):
    reason = "future"


class EnvelopeFormatError(FormhookError, ValueError):
    reason = "envelope_format"


class DecryptError(FormhookError):
    reason = "decrypt_error"


class AuthenticationFailed(DecryptError):
    reason = "decrypt_failed"


class InvalidKeyLength(DecryptError):
    reason = "size_mismatch"

    def __init__(self, name: str, expected: int, actual: int):
        super().__init__(f"{name} must be {expected} bytes, got {actual}")
        self.name = name
        self.expected = expected
        self.actual = actual


class DecodeError(FormhookError):
    reason = "decode_error"


class MalformedContent(DecodeError):
    reason = "malformed_content"


class AttachmentError(FormhookError):
    """A single attachment could not be fetched or decrypted."""

    reason = "attachment_failed"

    def __init__(self, field_id: str, cause: Exception):
        kind = getattr(cause, "reason", type(cause).__name__)
        super().__init__(f"attachment {field_id} failed: {kind}")
        self.field_id = field_id
        self.cause = cause


__all__ = [
    "FormhookError",
    "ConfigError",
    "HeaderFormatError",
    "AuthError",
    "InvalidTimestamp",
    "InvalidSignature",
    "StaleSignature",
    "FutureSignature",
    "EnvelopeFormatError",
    "DecryptError",
    "AuthenticationFailed",
    "InvalidKeyLength",
    "DecodeError",
    "MalformedContent",
    "AttachmentError",
]
