from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Callable

import httpx
from pydantic import ValidationError

from ..api.models import AttachmentEnvelope, AttachmentResult, DecryptedSubmission, EncryptedEnvelope
from ..errors import AttachmentError, EnvelopeFormatError, FormhookError
from .box import open_envelope
from .envelope import decode_b64_field


def parse_attachment_envelope(raw: bytes | str | dict[str, Any]) -> EncryptedEnvelope:
    """Decode ``{"encryptedFile": {submissionPublicKey, nonce, binary}}``.

    Unlike the submission content, the three parts arrive as separate
    base64 fields and carry their own ephemeral key and nonce.
    """
    try:
        if isinstance(raw, dict):
            doc = AttachmentEnvelope.model_validate(raw)
        else:
            doc = AttachmentEnvelope.model_validate_json(raw)
    except ValidationError:
        raise EnvelopeFormatError("attachment envelope is malformed") from None
    f = doc.encrypted_file
    return EncryptedEnvelope(
        sender_public_key=decode_b64_field("submissionPublicKey", f.submission_public_key),
        nonce=decode_b64_field("nonce", f.nonce),
        ciphertext=decode_b64_field("binary", f.binary),
    )


def decrypt_attachment(envelope: EncryptedEnvelope, recipient_private_key: bytes) -> bytes:
    return open_envelope(envelope, recipient_private_key)


def download_attachment(url: str, recipient_private_key: bytes, *, timeout: float = 10.0, _get_func=None) -> bytes:
    """Fetch an encrypted attachment and return the decrypted file bytes.

    Raises ``httpx.HTTPError`` for transport/status failures, ``httpx.InvalidURL``
    for unparseable URLs and the usual envelope/decrypt errors otherwise.
    No retries.
    """
    get = _get_func or httpx.get
    r = get(url, timeout=timeout)
    r.raise_for_status()
    return decrypt_attachment(parse_attachment_envelope(r.content), recipient_private_key)


def safe_filename(name: str) -> str:
    """Reduce a submitted file name to a bare basename."""
    base = PurePosixPath(name.replace("\\", "/")).name
    if base in ("", ".", ".."):
        return "attachment"
    return base


def decrypt_attachments(
    submission: DecryptedSubmission,
    download_urls: dict[str, str],
    recipient_private_key: bytes,
    *,
    fetch: Callable[[str, bytes], bytes] | None = None,
) -> dict[str, AttachmentResult]:
    """Fetch and decrypt every attachment field that has a download URL.

    Each attachment is handled on its own; a failure is recorded in its
    ``AttachmentResult.error`` and does not stop the others. Whether to
    reject the whole submission is the caller's decision.
    """
    fetch = fetch or download_attachment
    results: dict[str, AttachmentResult] = {}
    for field in submission.attachment_fields():
        url = download_urls.get(field.id)
        if not url:
            logging.warning("No download URL for attachment field %s", field.id)
            continue
        filename = safe_filename(field.answer)
        try:
            content = fetch(url, recipient_private_key)
        except (FormhookError, httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            err = AttachmentError(field.id, e)
            logging.warning("Attachment %s of submission %s failed: %s", field.id, submission.submission_id, err)
            results[field.id] = AttachmentResult(field_id=field.id, filename=filename, error=err)
            continue
        results[field.id] = AttachmentResult(field_id=field.id, filename=filename, content=content)
    return results


__all__ = [
    "parse_attachment_envelope",
    "decrypt_attachment",
    "download_attachment",
    "decrypt_attachments",
    "safe_filename",
]
