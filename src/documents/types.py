from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.documents.models import SignatureRecord


class VerificationFailure(str, Enum):
    """Expected negative outcomes of a verification. Values, never exceptions."""

    NOT_FOUND = "no matching record"
    SIGNATURE_MISMATCH = "signature mismatch"
    REVOKED = "certificate revoked"


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    certificate_id: str | None = None
    signed_at: datetime | None = None
    reason: VerificationFailure | None = None
    record: SignatureRecord | None = None

    @classmethod
    def ok(cls, record: SignatureRecord) -> VerificationResult:
        return cls(valid=True, certificate_id=record.certificate_id, signed_at=record.issued_at, record=record)

    @classmethod
    def failed(cls, reason: VerificationFailure, record: SignatureRecord | None = None) -> VerificationResult:
        return cls(
            valid=False,
            certificate_id=record.certificate_id if record else None,
            signed_at=record.issued_at if record else None,
            reason=reason,
            record=record,
        )

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "certificate_id": self.certificate_id,
            "signed_at": self.signed_at.isoformat() if self.signed_at else None,
            "reason": self.reason.value if self.reason else None,
        }
