from django.db.models import Q, QuerySet

from src.common.utils import validate_uuid
from src.core.exceptions import InvalidInputError, NotFoundError
from src.core.policies import ensure_elevated
from src.documents.crypto.hashing import normalize_fingerprint
from src.documents.models import SignatureRecord
from src.documents.policies import ensure_can_access_record


def _records() -> QuerySet[SignatureRecord]:
    return SignatureRecord.objects.select_related("owner")


def document_find_by_fingerprint(fingerprint: str) -> SignatureRecord | None:
    """Record registered for `fingerprint`, or None. Not found is an answer, not an error."""
    fp = normalize_fingerprint(fingerprint)
    return _records().filter(fingerprint=fp).first()


def document_find_by_any_fingerprint(fingerprint: str) -> SignatureRecord | None:
    """Matches the uploaded document or its QR stamped copy."""
    fp = normalize_fingerprint(fingerprint)
    return _records().filter(Q(fingerprint=fp) | Q(signed_fingerprint=fp)).order_by("-issued_at").first()


def document_find_by_certificate_id(certificate_id: str) -> SignatureRecord | None:
    cid = (certificate_id or "").strip()
    if not cid:
        raise InvalidInputError(message="Certificate ID is required", code="INVALID_CERTIFICATE_ID")
    return _records().filter(certificate_id=cid).first()


def document_get_by_certificate_id(certificate_id: str) -> SignatureRecord:
    record = document_find_by_certificate_id(certificate_id)
    if record is None:
        raise NotFoundError(message="Certificate not found", code="CERTIFICATE_NOT_FOUND")
    return record


def document_get_for_identity(*, fingerprint: str, requester) -> SignatureRecord:
    """Scoped lookup: the requester must own the record or hold an elevated role."""
    record = document_find_by_fingerprint(fingerprint)
    if record is None:
        raise NotFoundError(message="Document not found", code="DOCUMENT_NOT_FOUND")
    ensure_can_access_record(requester, record)
    return record


def document_list_for_identity(
    *,
    requester,
    owner_id=None,
    document_type: str | None = None,
    revoked: bool | None = None,
    q: str | None = None,
) -> QuerySet[SignatureRecord]:
    """
    A user's records, newest first. Listing someone else's records requires
    an elevated role.
    """
    qs = _records()
    if owner_id is None:
        owner = requester.id
    else:
        owner = validate_uuid(owner_id)
        if str(owner) != str(requester.id):
            ensure_elevated(requester)
    qs = qs.filter(owner_id=owner)

    if document_type:
        qs = qs.filter(document_type=document_type)
    if revoked is not None:
        qs = qs.filter(revoked=revoked)
    if q:
        qs = qs.filter(
            Q(file_name__icontains=q)
            | Q(certificate_id__icontains=q)
            | Q(document_number__icontains=q)
            | Q(fingerprint__istartswith=q.lower())
        )
    return qs.order_by("-issued_at")


def documents_stats_for_identity(*, requester) -> dict:
    qs = SignatureRecord.objects.filter(owner_id=requester.id)
    return {
        "total": qs.count(),
        "active": qs.filter(revoked=False).count(),
        "revoked": qs.filter(revoked=True).count(),
    }
