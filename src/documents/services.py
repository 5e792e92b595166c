import logging
from pathlib import PurePath
from typing import Iterable

from django.conf import settings
from django.core.files.base import ContentFile
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from django.utils.text import get_valid_filename

from src.auditaction.models import AuditAction, AuditCategory, Severity
from src.auditaction.services import audit_action_create
from src.core.exceptions import (
    DomainConflictError,
    InternalFault,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from src.core.policies import ensure_elevated
from src.documents import selectors
from src.documents.analysis import extract_document_number, generate_certificate_id, infer_document_type
from src.documents.crypto.algorithms import (
    CANONICAL_ENCODING,
    default_signature_algorithm,
    key_family,
    resolve_algorithm,
)
from src.documents.crypto.diagnostics import DiagnosticReport, diagnose_signature
from src.documents.crypto.hashing import compute_fingerprint, normalize_fingerprint
from src.documents.crypto.keys import key_algorithm_of, load_public_key, normalize_public_key, public_key_fingerprint
from src.documents.crypto.signatures import canonical_message, verify_signature
from src.documents.models import SignatureRecord
from src.documents.pdf import QR_POSITIONS, extract_pdf_metadata, stamp_qr_code
from src.documents.policies import ensure_can_access_record
from src.documents.types import VerificationFailure, VerificationResult

logger = logging.getLogger(__name__)


def build_verify_url(certificate_id: str) -> str:
    return f"{settings.NOTARIO_VERIFY_BASE_URL.rstrip('/')}/verify/{certificate_id}"


def ensure_upload_size(data: bytes | None) -> None:
    if len(data or b"") > settings.FILE_MAX_SIZE:
        raise InvalidInputError(
            message="File is too large",
            code="FILE_TOO_LARGE",
            extra={"max_size": settings.FILE_MAX_SIZE},
        )


########################################################################################################################################
# Verification
# ######################################################################################################################################
def verify_record(record: SignatureRecord) -> VerificationResult:
    """
    Re-check the stored signature of `record` against its canonical message.
    Corrupt stored key material is a fault of ours, not a failed verification.
    """
    if record.revoked:
        logger.info("verification of revoked certificate", extra={"certificate_id": record.certificate_id})
        return VerificationResult.failed(VerificationFailure.REVOKED, record)

    try:
        algorithm = resolve_algorithm(record.algorithm)
        public_key = load_public_key(record.public_key)
        message = canonical_message(record.fingerprint, record.message_encoding)
    except InvalidInputError as e:
        logger.exception(
            "stored signature record is unusable",
            extra={"certificate_id": record.certificate_id, "code": e.code},
        )
        raise InternalFault(extra={"certificate_id": record.certificate_id, "code": e.code}) from e

    if verify_signature(record.signature, public_key, message, algorithm):
        return VerificationResult.ok(record)

    logger.info("stored signature does not verify", extra={"certificate_id": record.certificate_id})
    return VerificationResult.failed(VerificationFailure.SIGNATURE_MISMATCH, record)


def _lookup(finder, value):
    try:
        return finder(value)
    except DatabaseError as e:
        logger.exception("registry lookup failed", extra={"lookup": finder.__name__})
        raise InternalFault(extra={"lookup": finder.__name__}) from e


def verify_document(fingerprint: str) -> VerificationResult:
    """
    Does `fingerprint` carry a valid signature issued by this system?

    Not found, revoked and mismatching signatures come back as a result with
    `valid=False` and a typed reason. The fingerprint is format checked
    before the lookup: anything that is not 64 hex characters raises
    InvalidInputError (400 INVALID_FINGERPRINT) instead of reporting "no
    matching record", so a typo is not mistaken for an unsigned document.
    Dependency failures raise InternalFault.
    """
    fp = normalize_fingerprint(fingerprint)
    record = _lookup(selectors.document_find_by_fingerprint, fp)
    if record is None:
        return VerificationResult.failed(VerificationFailure.NOT_FOUND)
    return verify_record(record)


def verify_uploaded_document(data: bytes) -> tuple[str, VerificationResult]:
    """Hash the upload and verify it. QR stamped copies resolve to their original record."""
    fp = compute_fingerprint(data)
    record = _lookup(selectors.document_find_by_any_fingerprint, fp)
    if record is None:
        return fp, VerificationResult.failed(VerificationFailure.NOT_FOUND)
    return fp, verify_record(record)


def verify_certificate(certificate_id: str) -> VerificationResult:
    record = _lookup(selectors.document_find_by_certificate_id, certificate_id)
    if record is None:
        return VerificationResult.failed(VerificationFailure.NOT_FOUND)
    return verify_record(record)


def document_check(*, fingerprint: str, requester) -> dict:
    """Existence check for the signing UI. Details only for the owner or an elevated role."""
    record = selectors.document_find_by_fingerprint(fingerprint)
    if record is None:
        return {"exists": False}
    try:
        ensure_can_access_record(requester, record)
    except UnauthorizedError:
        return {"exists": True, "owned": False}
    return {
        "exists": True,
        "owned": str(record.owner_id) == str(requester.id),
        "certificate_id": record.certificate_id,
        "file_name": record.file_name,
        "issued_at": record.issued_at.isoformat(),
        "revoked": record.revoked,
    }


########################################################################################################################################
# Signing
# ######################################################################################################################################
def _resolve_signing_material(*, user, public_key: str | None, algorithm: str | None):
    algo = resolve_algorithm(algorithm) if algorithm else default_signature_algorithm(user.algorithm)
    pem = normalize_public_key(public_key) if public_key else (user.public_key or "")
    if not pem:
        raise InvalidInputError(message="No public key on file; upload one first", code="PUBLIC_KEY_MISSING")
    key = load_public_key(pem)
    if key_algorithm_of(key) != key_family(algo):
        raise InvalidInputError(
            message=f"{algo.value} cannot be used with this public key",
            code="ALGORITHM_KEY_MISMATCH",
        )
    return algo, pem, key


def _split_tags(tags) -> list[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip() for t in tags if t and t.strip()]


def document_sign(
    *,
    user,
    file_name: str,
    data: bytes,
    fingerprint: str,
    signature: str,
    public_key: str | None = None,
    algorithm: str | None = None,
    notes: str | None = None,
    tags: Iterable[str] | str | None = None,
    subject: str | None = None,
    qr_position: str | None = None,
    request=None,
) -> SignatureRecord:
    """
    Register a client signed document.

    The signature must cover the canonical message of the uploaded bytes.
    A fingerprint is registered at most once; a second attempt is a
    DomainConflictError. The stored copy carries a QR code pointing to the
    public verification page.
    """
    ensure_upload_size(data)

    computed = compute_fingerprint(data)
    claimed = normalize_fingerprint(fingerprint)
    if computed != claimed:
        raise InvalidInputError(
            message="File hash mismatch. The file may have been tampered with.",
            code="FINGERPRINT_MISMATCH",
            extra={"received_hash": claimed, "calculated_hash": computed, "file_size": len(data)},
        )

    position = qr_position or settings.NOTARIO_DEFAULT_QR_POSITION
    if position not in QR_POSITIONS:
        raise InvalidInputError(
            message=f"QR position must be one of: {', '.join(QR_POSITIONS)}",
            code="INVALID_QR_POSITION",
        )

    algo, pem, key = _resolve_signing_material(user=user, public_key=public_key, algorithm=algorithm)
    message = canonical_message(computed, CANONICAL_ENCODING)
    if not verify_signature(signature, key, message, algo):
        audit_action_create(
            user=user,
            category=AuditCategory.DOCUMENT,
            action=AuditAction.DOCUMENT_SIGN_REJECTED,
            details={"fingerprint": computed, "algorithm": algo.value, "key_id": public_key_fingerprint(pem)},
            target_type="document",
            target_id=computed,
            severity=Severity.WARNING,
            request=request,
        )
        raise InvalidInputError(
            message="Invalid signature for the provided file hash",
            code="SIGNATURE_INVALID",
            extra={
                "algorithm": algo.value,
                "message_encoding": CANONICAL_ENCODING.value,
                "hint": "Sign the raw SHA-256 digest bytes of the file with the private key matching the public key",
            },
        )

    existing = selectors.document_find_by_fingerprint(computed)
    if existing is not None:
        raise DomainConflictError(
            message="Document already exists",
            code="DOCUMENT_ALREADY_SIGNED",
            extra={"certificate_id": existing.certificate_id, "issued_at": existing.issued_at.isoformat()},
        )

    pdf_info = extract_pdf_metadata(data)
    document_type = infer_document_type(file_name, pdf_info)
    document_number = extract_document_number(pdf_info.get("title") or file_name)
    certificate_id = generate_certificate_id()
    issued_at = timezone.now()

    try:
        signed_bytes = stamp_qr_code(
            data,
            certificate_id=certificate_id,
            verify_url=build_verify_url(certificate_id),
            position=position,
            signed_at=issued_at,
        )
    except (RuntimeError, ValueError) as e:
        logger.warning(
            "qr stamping failed, storing the original bytes",
            extra={"certificate_id": certificate_id, "error": e.__class__.__name__},
        )
        signed_bytes = data

    record = SignatureRecord(
        owner=user,
        file_name=file_name,
        fingerprint=computed,
        signed_fingerprint=compute_fingerprint(signed_bytes),
        signature="".join(signature.split()),
        public_key=pem,
        algorithm=algo,
        message_encoding=CANONICAL_ENCODING,
        certificate_id=certificate_id,
        issued_at=issued_at,
        folder_path=f"signed/{issued_at:%Y/%m}",
        document_type=document_type,
        document_number=document_number,
        metadata={
            "pdf_info": pdf_info,
            "notes": notes or None,
            "tags": _split_tags(tags),
            "subject": subject or pdf_info.get("title") or file_name,
            "signature_info": {
                "algorithm": algo.value,
                "message_encoding": CANONICAL_ENCODING.value,
                "signed_by": user.name,
                "signed_by_email": user.email,
                "key_id": public_key_fingerprint(pem),
            },
        },
    )

    storage_name = get_valid_filename(PurePath(file_name).name) or "document.pdf"
    try:
        record.signed_file.save(storage_name, ContentFile(signed_bytes), save=False)
    except OSError as e:
        logger.exception("signed copy upload failed", extra={"certificate_id": certificate_id})
        raise InternalFault(extra={"certificate_id": certificate_id}) from e

    try:
        with transaction.atomic():
            record.save()
            audit_action_create(
                user=user,
                category=AuditCategory.DOCUMENT,
                action=AuditAction.DOCUMENT_SIGNED,
                details={
                    "certificate_id": certificate_id,
                    "fingerprint": computed,
                    "algorithm": algo.value,
                    "document_type": document_type,
                },
                target_type="document",
                target_id=certificate_id,
                request=request,
            )
    except IntegrityError as e:
        # Concurrent signing of the same bytes
        record.signed_file.delete(save=False)
        raise DomainConflictError(message="Document already exists", code="DOCUMENT_ALREADY_SIGNED") from e

    logger.info(
        "document signed",
        extra={"certificate_id": certificate_id, "user_id": str(user.id), "algorithm": algo.value},
    )
    return record


########################################################################################################################################
# Revocation / download
# ######################################################################################################################################
@transaction.atomic
def document_revoke(*, certificate_id: str, actor, reason: str = "", request=None) -> SignatureRecord:
    ensure_elevated(actor)
    record = selectors.document_get_by_certificate_id(certificate_id)
    if record.revoked:
        raise DomainConflictError(message="Certificate already revoked", code="ALREADY_REVOKED")

    record.revoked = True
    record.revoked_at = timezone.now()
    record.revocation_reason = (reason or "").strip()
    record.save(update_fields=["revoked", "revoked_at", "revocation_reason", "updated_at"])

    audit_action_create(
        user=actor,
        category=AuditCategory.DOCUMENT,
        action=AuditAction.DOCUMENT_REVOKED,
        details={"certificate_id": record.certificate_id, "reason": record.revocation_reason},
        target_type="document",
        target_id=record.certificate_id,
        severity=Severity.WARNING,
        request=request,
    )
    return record


def document_get_for_download(*, certificate_id: str, requester, request=None) -> SignatureRecord:
    record = selectors.document_get_by_certificate_id(certificate_id)
    ensure_can_access_record(requester, record)
    if not record.signed_file:
        raise NotFoundError(message="Signed copy is not available", code="SIGNED_FILE_MISSING")

    audit_action_create(
        user=requester,
        category=AuditCategory.DOCUMENT,
        action=AuditAction.DOCUMENT_DOWNLOADED,
        details={"certificate_id": record.certificate_id},
        target_type="document",
        target_id=record.certificate_id,
        request=request,
    )
    return record


########################################################################################################################################
# Diagnostics
# ######################################################################################################################################
def document_diagnose_signature(
    *,
    user,
    signature: str,
    fingerprint: str,
    public_key: str | None = None,
    timestamps: Iterable[str] | None = None,
) -> DiagnosticReport:
    """Which (algorithm, encoding) pair did the client use? Troubleshooting only."""
    if not settings.NOTARIO_SIGNATURE_DIAGNOSTICS_ENABLED:
        raise UnauthorizedError(message="Signature diagnostics are disabled", code="DIAGNOSTICS_DISABLED")
    pem = public_key or user.public_key
    if not pem:
        raise InvalidInputError(message="No public key on file; upload one first", code="PUBLIC_KEY_MISSING")
    report = diagnose_signature(signature, pem, fingerprint, timestamps)
    logger.info(
        "signature diagnosis",
        extra={
            "user_id": str(user.id),
            "match": report.match.to_dict() if report.match else None,
            "attempts": len(report.attempts),
        },
    )
    return report


def document_open_signed_file(record: SignatureRecord):
    try:
        return record.signed_file.open("rb")
    except OSError as e:
        logger.exception("signed copy unreadable", extra={"certificate_id": record.certificate_id})
        raise InternalFault(extra={"certificate_id": record.certificate_id}) from e
