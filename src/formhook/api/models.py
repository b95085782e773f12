from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class SignatureHeader(BaseModel):
    """Parsed ``X-FormSG-Signature`` header.

    ``timestamp`` stays the raw ``t=`` text; it is only interpreted as epoch
    milliseconds during verification.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: str
    submission_id: str
    form_id: str
    signature_b64: str

    def to_header(self) -> str:
        return f"t={self.timestamp},s={self.submission_id},f={self.form_id},v1={self.signature_b64}"


class EncryptedEnvelope(BaseModel):
    """Sender public key, nonce and ciphertext of one box-encrypted blob."""

    model_config = ConfigDict(frozen=True)

    sender_public_key: bytes
    nonce: bytes
    ciphertext: bytes = Field(repr=False)


class WebhookConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    sender_public_key: bytes  # ed25519 verify key of the forms platform
    recipient_private_key: bytes = Field(repr=False)  # form secret key
    post_uri: str
    max_age_ms: int = 300000
    future_skew_ms: int | None = None  # None = no upper bound


# --- Inbound webhook body ---

class EncryptedBodyData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_id: str = Field(alias="formId")
    submission_id: str = Field(alias="submissionId")
    encrypted_content: str = Field(alias="encryptedContent", repr=False)
    version: int
    created: datetime
    attachment_download_urls: dict[str, str] = Field(default_factory=dict, alias="attachmentDownloadUrls")


class EncryptedBody(BaseModel):
    data: EncryptedBodyData


class SubmissionMeta(BaseModel):
    """Webhook metadata sent alongside the ciphertext (not encrypted)."""

    model_config = ConfigDict(frozen=True)

    form_id: str
    submission_id: str
    version: int
    created: datetime


# --- Decrypted output ---

def format_rfc3339(value: datetime) -> str:
    """RFC 3339 with trailing fractional zeros dropped (``.788Z``, not ``.788000Z``)."""
    out = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        out += f".{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if offset is None:
        return out
    if not offset:
        return out + "Z"
    return out + value.isoformat()[-6:]


class DecryptedField(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    question: str
    field_type: str = Field(alias="fieldType")
    answer: str = ""
    # checkbox/table fields carry their answer here instead of ``answer``
    answer_array: Optional[list[Any]] = Field(default=None, alias="answerArray")

    @property
    def is_attachment(self) -> bool:
        return self.field_type == "attachment"


class DecryptedSubmission(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    form_id: str = Field(alias="formId")
    submission_id: str = Field(alias="submissionId")
    decrypted_content: tuple[DecryptedField, ...] = Field(alias="decryptedContent")
    version: int
    created: datetime

    @field_serializer("created")
    def serialize_created(self, created: datetime) -> str:
        return format_rfc3339(created)

    def attachment_fields(self) -> list[DecryptedField]:
        return [f for f in self.decrypted_content if f.is_attachment]


class DecryptedBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: DecryptedSubmission

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


# --- Attachment download ---

class EncryptedFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submission_public_key: str = Field(alias="submissionPublicKey")
    nonce: str
    binary: str = Field(repr=False)


class AttachmentEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    encrypted_file: EncryptedFile = Field(alias="encryptedFile")


class AttachmentResult(BaseModel):
    """Outcome of one attachment: either ``content`` or ``error`` is set."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field_id: str
    filename: str
    content: bytes | None = Field(default=None, repr=False)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
