from __future__ import annotations

from pydantic import TypeAdapter, ValidationError

from ..api.models import DecryptedBody, DecryptedField, DecryptedSubmission, EncryptedBody, SubmissionMeta
from ..errors import MalformedContent
from .box import open_envelope
from .envelope import parse_encrypted_content

_FIELDS = TypeAdapter(list[DecryptedField])


def decode_submission(plaintext: bytes, meta: SubmissionMeta) -> DecryptedSubmission:
    """Build a submission from decrypted field JSON plus unencrypted metadata.

    Field order is kept as sent by the platform.
    """
    try:
        fields = _FIELDS.validate_json(plaintext)
    except ValidationError as e:
        # error_count only; validation messages can echo answer values
        raise MalformedContent(f"decrypted content failed validation ({e.error_count()} errors)") from None
    return DecryptedSubmission(
        form_id=meta.form_id,
        submission_id=meta.submission_id,
        decrypted_content=tuple(fields),
        version=meta.version,
        created=meta.created,
    )


def decrypt_submission(body: EncryptedBody, recipient_private_key: bytes) -> DecryptedBody:
    """Decrypt ``encryptedContent`` of a webhook body and decode its fields."""
    data = body.data
    envelope = parse_encrypted_content(data.encrypted_content)
    plaintext = open_envelope(envelope, recipient_private_key)
    meta = SubmissionMeta(
        form_id=data.form_id,
        submission_id=data.submission_id,
        version=data.version,
        created=data.created,
    )
    return DecryptedBody(data=decode_submission(plaintext, meta))


__all__ = ["decode_submission", "decrypt_submission"]
