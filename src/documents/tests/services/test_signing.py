import fitz  # PyMuPDF
import pytest

from src.auditaction.models import AuditAction, AuditLog
from src.core.exceptions import DomainConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from src.documents import services
from src.documents.crypto.hashing import compute_fingerprint
from src.documents.models import SignatureRecord
from src.documents.types import VerificationFailure

pytestmark = pytest.mark.django_db


@pytest.fixture
def invoice_pdf(make_pdf):
    return make_pdf(title="Invoice No. INV-2024-001")


def _sign(user, data, signature, **kwargs):
    values = {
        "user": user,
        "file_name": "invoice.pdf",
        "data": data,
        "fingerprint": compute_fingerprint(data),
        "signature": signature,
    }
    values.update(kwargs)
    return services.document_sign(**values)


def test_sign_registers_a_verifiable_record(user, rsa_pair, invoice_pdf, sign_fingerprint):
    fp = compute_fingerprint(invoice_pdf)
    record = _sign(user, invoice_pdf, sign_fingerprint(rsa_pair.private_key, fp), tags="finance, 2024")

    assert record.fingerprint == fp
    assert record.certificate_id.startswith("CERT-")
    assert record.algorithm == "RSA-SHA256"
    assert record.message_encoding == "raw-fingerprint-v1"
    assert record.document_type == "invoice"
    assert record.document_number == "INV-2024-001"
    assert record.folder_path == f"signed/{record.issued_at:%Y/%m}"
    assert record.metadata["tags"] == ["finance", "2024"]
    assert record.metadata["signature_info"]["signed_by_email"] == user.email
    assert services.verify_document(fp).valid is True
    assert AuditLog.objects.filter(action=AuditAction.DOCUMENT_SIGNED, target_id=record.certificate_id).exists()


def test_signed_copy_carries_the_qr_stamp(user, rsa_pair, invoice_pdf, sign_fingerprint):
    fp = compute_fingerprint(invoice_pdf)
    record = _sign(user, invoice_pdf, sign_fingerprint(rsa_pair.private_key, fp))

    with record.signed_file.open("rb") as fh:
        stamped = fh.read()
    assert compute_fingerprint(stamped) == record.signed_fingerprint
    assert record.signed_fingerprint != fp

    with fitz.open(stream=stamped, filetype="pdf") as doc:
        page = doc[-1]
        assert page.get_images()
        assert record.certificate_id in page.get_text()

    _, result = services.verify_uploaded_document(stamped)
    assert result.valid is True
    assert result.certificate_id == record.certificate_id


def test_ecdsa_user_signs_with_p1363_signature(user, ec_pair, invoice_pdf, sign_fingerprint):
    fp = compute_fingerprint(invoice_pdf)
    sig = sign_fingerprint(ec_pair.private_key, fp, "ECDSA-SHA256", ecdsa_encoding="p1363")
    record = _sign(user, invoice_pdf, sig, public_key=ec_pair.public_key, algorithm="ECDSA")
    assert record.algorithm == "ECDSA-SHA256"
    assert services.verify_document(fp).valid is True


def test_non_pdf_bytes_are_stored_unstamped(user, rsa_pair, sign_fingerprint):
    data = b"plain text document"
    fp = compute_fingerprint(data)
    record = _sign(user, data, sign_fingerprint(rsa_pair.private_key, fp), file_name="notes.txt")
    assert record.signed_fingerprint == fp
    assert record.metadata["pdf_info"]["page_count"] == 0


def test_same_document_is_registered_once(user, rsa_pair, invoice_pdf, sign_fingerprint):
    sig = sign_fingerprint(rsa_pair.private_key, compute_fingerprint(invoice_pdf))
    first = _sign(user, invoice_pdf, sig)
    with pytest.raises(DomainConflictError) as exc:
        _sign(user, invoice_pdf, sig)
    assert exc.value.status == 409
    assert exc.value.code == "DOCUMENT_ALREADY_SIGNED"
    assert exc.value.extra["certificate_id"] == first.certificate_id
    assert SignatureRecord.objects.count() == 1


def test_claimed_fingerprint_must_match_bytes(user, rsa_pair, invoice_pdf, sign_fingerprint):
    wrong = compute_fingerprint(b"something else")
    with pytest.raises(InvalidInputError) as exc:
        _sign(user, invoice_pdf, sign_fingerprint(rsa_pair.private_key, wrong), fingerprint=wrong)
    assert exc.value.code == "FINGERPRINT_MISMATCH"


def test_bad_signature_is_rejected_and_audited(user, rsa_pair, invoice_pdf, sign_fingerprint):
    sig = sign_fingerprint(rsa_pair.private_key, compute_fingerprint(b"other"))
    with pytest.raises(InvalidInputError) as exc:
        _sign(user, invoice_pdf, sig)
    assert exc.value.code == "SIGNATURE_INVALID"
    assert SignatureRecord.objects.count() == 0
    assert AuditLog.objects.filter(action=AuditAction.DOCUMENT_SIGN_REJECTED).count() == 1


def test_algorithm_must_fit_the_key(user, rsa_pair, invoice_pdf, sign_fingerprint):
    sig = sign_fingerprint(rsa_pair.private_key, compute_fingerprint(invoice_pdf))
    with pytest.raises(InvalidInputError) as exc:
        _sign(user, invoice_pdf, sig, algorithm="ECDSA")
    assert exc.value.code == "ALGORITHM_KEY_MISMATCH"


def test_user_without_key_cannot_sign(other_user, invoice_pdf):
    with pytest.raises(InvalidInputError) as exc:
        _sign(other_user, invoice_pdf, "AAAA")
    assert exc.value.code == "PUBLIC_KEY_MISSING"


def test_unknown_qr_position(user, invoice_pdf):
    with pytest.raises(InvalidInputError) as exc:
        _sign(user, invoice_pdf, "AAAA", qr_position="middle")
    assert exc.value.code == "INVALID_QR_POSITION"


def test_oversized_upload(user, settings, invoice_pdf):
    settings.FILE_MAX_SIZE = 10
    with pytest.raises(InvalidInputError) as exc:
        _sign(user, invoice_pdf, "AAAA")
    assert exc.value.code == "FILE_TOO_LARGE"


def test_revoke_requires_an_elevated_role(make_record, user):
    make_record()
    with pytest.raises(UnauthorizedError):
        services.document_revoke(certificate_id="CERT-1", actor=user)


def test_revoked_certificate_no_longer_verifies(make_record, admin_user):
    make_record()
    record = services.document_revoke(certificate_id="CERT-1", actor=admin_user, reason="  issued in error ")
    assert record.revoked is True
    assert record.revocation_reason == "issued in error"
    assert services.verify_certificate("CERT-1").reason == VerificationFailure.REVOKED

    with pytest.raises(DomainConflictError) as exc:
        services.document_revoke(certificate_id="CERT-1", actor=admin_user)
    assert exc.value.code == "ALREADY_REVOKED"


def test_download_needs_access_and_a_stored_copy(make_record, user, other_user):
    make_record()
    with pytest.raises(UnauthorizedError):
        services.document_get_for_download(certificate_id="CERT-1", requester=other_user)
    with pytest.raises(NotFoundError) as exc:
        services.document_get_for_download(certificate_id="CERT-1", requester=user)
    assert exc.value.code == "SIGNED_FILE_MISSING"


def test_diagnostics_can_be_switched_off(user, settings):
    settings.NOTARIO_SIGNATURE_DIAGNOSTICS_ENABLED = False
    with pytest.raises(UnauthorizedError) as exc:
        services.document_diagnose_signature(user=user, signature="AAAA", fingerprint="0" * 64)
    assert exc.value.code == "DIAGNOSTICS_DISABLED"


def test_diagnostics_use_the_key_on_file(user, rsa_pair, sign_fingerprint):
    fp = compute_fingerprint(b"test-document")
    report = services.document_diagnose_signature(
        user=user,
        signature=sign_fingerprint(rsa_pair.private_key, fp),
        fingerprint=fp,
    )
    assert report.match.encoding == "raw_bytes"


def test_build_verify_url(settings):
    settings.NOTARIO_VERIFY_BASE_URL = "https://notario.example/"
    assert services.build_verify_url("CERT-1") == "https://notario.example/verify/CERT-1"
