from __future__ import annotations

import base64
from pathlib import Path

from pydantic_settings import BaseSettings

from .api.models import WebhookConfig
from .errors import ConfigError

# Production FormSG webhook signing key.
FORMSG_PUBLIC_KEY = "3Tt8VduXsjjd4IrpdCd7BAkdZl/vUCstu9UvTX84FWw="


class Settings(BaseSettings):
    form_public_key: str = FORMSG_PUBLIC_KEY
    # Form secret key downloaded from FormSG when the form was created
    form_secret_key: str = ""
    # Must match the webhook URI entered in the form dashboard exactly
    form_post_uri: str = "http://localhost:8080/submissions"
    formsg_data_dir: Path = Path("./temp")
    has_attachments: bool = True
    verify_signature: bool = True  # switch off only for localhost testing
    serve_decrypted_files: bool = False
    signature_max_age_ms: int = 300000
    signature_future_skew_ms: int | None = None
    attachment_timeout_seconds: float = 10.0


def decode_key(name: str, value: str) -> bytes:
    if not value:
        raise ConfigError(f"{name} is not set")
    try:
        raw = base64.b64decode(value, validate=True)
    except ValueError:
        raise ConfigError(f"{name} is not valid base64") from None
    if len(raw) != 32:
        raise ConfigError(f"{name} must decode to 32 bytes")
    return raw


def load_webhook_config(s: Settings) -> WebhookConfig:
    """Decode keys once into an immutable config for the verifier/decryptor."""
    return WebhookConfig(
        sender_public_key=decode_key("FORM_PUBLIC_KEY", s.form_public_key),
        recipient_private_key=decode_key("FORM_SECRET_KEY", s.form_secret_key),
        post_uri=s.form_post_uri,
        max_age_ms=s.signature_max_age_ms,
        future_skew_ms=s.signature_future_skew_ms,
    )


settings = Settings()
