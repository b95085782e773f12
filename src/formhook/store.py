from __future__ import annotations

import logging
from pathlib import Path

from .api.models import AttachmentResult, DecryptedBody
from .crypto.attachments import safe_filename


def store_submission(data_dir: Path, body: DecryptedBody) -> Path:
    """Write ``<submissionId>.json`` holding the decrypted output."""
    data_dir.mkdir(parents=True, exist_ok=True)
    p = data_dir / f"{safe_filename(body.data.submission_id)}.json"
    p.write_text(body.to_json(indent=2), encoding="utf-8")
    logging.info("Stored submission %s", body.data.submission_id)
    return p


def store_attachment(data_dir: Path, result: AttachmentResult) -> Path:
    """Write a decrypted attachment as ``<fieldId>.<filename>``."""
    if result.content is None:
        raise ValueError(f"attachment {result.field_id} has no content")
    data_dir.mkdir(parents=True, exist_ok=True)
    p = data_dir / safe_filename(f"{result.field_id}.{result.filename}")
    p.write_bytes(result.content)
    return p


def stored_file(data_dir: Path, name: str) -> Path | None:
    p = data_dir / safe_filename(name)
    return p if p.is_file() else None


__all__ = ["store_submission", "store_attachment", "stored_file"]
