from __future__ import annotations

import functools
import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from pydantic import ValidationError

from ..crypto.attachments import decrypt_attachments, download_attachment
from ..crypto.submission import decrypt_submission
from ..errors import AuthError, DecodeError, DecryptError, EnvelopeFormatError, HeaderFormatError
from ..settings import load_webhook_config, settings
from ..store import store_attachment, store_submission, stored_file
from ..webhooks.verify import authenticate
from .models import EncryptedBody, WebhookConfig

SIGNATURE_HEADER = "X-FormSG-Signature"

app = FastAPI(title="FormSG Webhook Receiver")

DATA = settings.formsg_data_dir


@functools.lru_cache(maxsize=1)
def get_webhook_config() -> WebhookConfig:
    """Keys are decoded once per process; override in tests via dependency_overrides."""
    return load_webhook_config(settings)


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


@app.get("/health")
@app.get("/healthz")
def health():
    return {"ok": True}


@app.post("/submissions")
async def submissions(request: Request, config: WebhookConfig = Depends(get_webhook_config)):
    header = None
    if settings.verify_signature:
        try:
            header = authenticate(request.headers.get(SIGNATURE_HEADER), config)
        except (HeaderFormatError, AuthError) as e:
            logging.warning("Rejected webhook: %s", e.reason)
            return _message(401, "Unauthorized")

    raw = await request.body()
    try:
        body = EncryptedBody.model_validate_json(raw)
    except ValidationError:
        return _message(400, "Invalid request")

    # the signature covers only the ids; the body must carry the same ones
    if header is not None and (header.submission_id, header.form_id) != (body.data.submission_id, body.data.form_id):
        logging.warning("Rejected webhook: body ids do not match signed header")
        return _message(401, "Unauthorized")

    # decryption, attachment downloads and file writes block
    return await run_in_threadpool(_process_submission, body, config)


def _process_submission(body: EncryptedBody, config: WebhookConfig):
    submission_id = body.data.submission_id
    try:
        decrypted = decrypt_submission(body, config.recipient_private_key)
    except (EnvelopeFormatError, DecryptError, DecodeError) as e:
        logging.warning("Failed to decrypt submission %s: %s", submission_id, e.reason)
        return _message(400, "decryption fail")

    try:
        store_submission(DATA, decrypted)
    except OSError:
        logging.exception("Failed to store submission %s", submission_id)
        return _message(400, "file write fail")

    if settings.has_attachments:
        fetch = functools.partial(download_attachment, timeout=settings.attachment_timeout_seconds)
        results = decrypt_attachments(
            decrypted.data,
            body.data.attachment_download_urls,
            config.recipient_private_key,
            fetch=fetch,
        )
        failed = [r.field_id for r in results.values() if not r.ok]
        for r in results.values():
            if not r.ok:
                continue
            try:
                store_attachment(DATA, r)
            except OSError:
                logging.exception("Failed to store attachment %s", r.field_id)
                return _message(400, "file write fail")
        if failed:
            logging.warning("Submission %s: %d attachment(s) failed: %s", submission_id, len(failed), ", ".join(failed))
            return _message(400, "download attachment fail")

    return PlainTextResponse("ok")


@app.get("/temp/{name}")
def get_stored_file(name: str):
    if not settings.serve_decrypted_files:
        raise HTTPException(status_code=404, detail="not found")
    p = stored_file(DATA, name)
    if p is None:
        raise HTTPException(status_code=404, detail="not found")
    return FileResponse(p)
