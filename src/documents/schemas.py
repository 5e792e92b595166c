from ninja import Schema
from pydantic import Field


class SignMetaPayload(Schema):
    fingerprint: str
    signature: str
    public_key: str | None = None
    algorithm: str | None = None
    notes: str | None = None
    tags: str | None = None
    subject: str | None = None
    qr_position: str | None = None


class DocumentFilterParams(Schema):
    owner_id: str | None = None
    document_type: str | None = None
    revoked: bool | None = None
    q: str | None = None


class VerifyQueryParams(Schema):
    certificate_id: str | None = None
    fingerprint: str | None = None


class RevokePayload(Schema):
    reason: str = Field(default="", max_length=1000)


class DiagnoseSignaturePayload(Schema):
    signature: str
    fingerprint: str
    public_key: str | None = None
    timestamps: list[str] | None = Field(default=None, max_length=5)
