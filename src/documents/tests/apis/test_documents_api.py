import hashlib

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from src.documents.crypto.hashing import compute_fingerprint

FP = hashlib.sha256(b"test-document").hexdigest()

pytestmark = pytest.mark.django_db


def _upload(data, name="document.pdf"):
    return SimpleUploadedFile(name, data, content_type="application/pdf")


def test_public_verify_by_fingerprint(client, make_record):
    make_record()
    response = client.get("/api/documents/verify", {"fingerprint": FP}, HTTP_X_REQUEST_ID="req-42")
    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["request_id"] == "req-42"
    assert body["data"]["valid"] is True
    assert body["data"]["certificate_id"] == "CERT-1"
    assert body["data"]["document"]["signer"]["email"] == "signer@example.com"


def test_public_verify_not_found_is_a_normal_answer(client):
    response = client.get("/api/documents/verify", {"fingerprint": "0" * 64})
    body = response.json()
    assert response.status_code == 200
    assert body["data"]["valid"] is False
    assert body["data"]["reason"] == "no matching record"
    assert body["data"]["document"] is None


def test_public_verify_needs_an_identifier(client):
    response = client.get("/api/documents/verify")
    body = response.json()
    assert response.status_code == 400
    assert body["success"] is False
    assert body["code"] == "IDENTIFIER_REQUIRED"


def test_malformed_fingerprint_is_a_400(client):
    response = client.get("/api/documents/verify", {"fingerprint": "xyz"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FINGERPRINT"


def test_corrupt_record_is_a_generic_500(client, make_record):
    make_record(public_key="-----BEGIN PUBLIC KEY-----\nAAAA\n-----END PUBLIC KEY-----")
    response = client.get("/api/documents/verify", {"certificate_id": "CERT-1"})
    body = response.json()
    assert response.status_code == 500
    assert body["message"] == "Unexpected error"
    assert body["code"] == "INTERNAL_ERROR"
    assert body["extra"] == {}


def test_verify_uploaded_file(client, make_record):
    make_record()
    response = client.post("/api/documents/verify", {"file": _upload(b"test-document")})
    body = response.json()
    assert response.status_code == 200
    assert body["data"]["fingerprint"] == FP
    assert body["data"]["valid"] is True
    assert body["data"]["uploaded_pdf_info"]["page_count"] == 0


def test_certificate_landing_page(client, make_record):
    make_record()
    ok = client.get("/api/documents/certificates/CERT-1")
    assert ok.status_code == 200
    assert ok.json()["data"]["document"]["public_key"].startswith("-----BEGIN PUBLIC KEY-----")

    missing = client.get("/api/documents/certificates/CERT-404")
    assert missing.status_code == 404
    assert missing.json()["code"] == "CERTIFICATE_NOT_FOUND"


def test_fingerprint_endpoint(client):
    response = client.post("/api/documents/fingerprint", {"file": _upload(b"test-document")})
    assert response.json()["data"] == {"fingerprint": FP, "algorithm": "sha256", "size": 13}


def test_analyze_endpoint(client, user, make_pdf, auth_headers):
    data = make_pdf(title="Invoice No. INV-2024-001")
    response = client.post("/api/documents/analyze", {"file": _upload(data, "scan.pdf")}, **auth_headers(user))
    body = response.json()
    assert response.status_code == 200
    assert body["data"]["analysis"]["document_type"] == "invoice"
    assert body["data"]["analysis"]["document_number"] == "INV-2024-001"
    assert body["data"]["pdf_metadata"]["page_count"] == 1


def test_analyze_requires_a_token(client, make_pdf):
    response = client.post("/api/documents/analyze", {"file": _upload(make_pdf())})
    assert response.status_code == 401


@pytest.mark.parametrize("path", ["/api/documents/verify", "/api/documents/fingerprint"])
def test_public_uploads_are_size_capped(client, settings, path):
    settings.FILE_MAX_SIZE = 8
    response = client.post(path, {"file": _upload(b"test-document")})
    body = response.json()
    assert response.status_code == 400
    assert body["code"] == "FILE_TOO_LARGE"
    assert body["extra"]["max_size"] == 8


def test_private_routes_require_a_token(client):
    response = client.get("/api/documents/stats")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_sign_then_list_and_download(client, user, rsa_pair, make_pdf, sign_fingerprint, auth_headers):
    data = make_pdf()
    fp = compute_fingerprint(data)
    response = client.post(
        "/api/documents/sign",
        {"file": _upload(data, "invoice.pdf"), "fingerprint": fp, "signature": sign_fingerprint(rsa_pair.private_key, fp)},
        **auth_headers(user),
    )
    body = response.json()
    assert response.status_code == 201, body
    cid = body["data"]["certificate_id"]
    assert body["data"]["verify_url"] == f"https://notario.test/verify/{cid}"

    listing = client.get("/api/documents/", **auth_headers(user)).json()
    assert [item["certificate_id"] for item in listing["data"]["items"]] == [cid]

    download = client.get(f"/api/documents/{cid}/download", **auth_headers(user))
    assert download.status_code == 200
    assert download["Content-Disposition"].startswith("attachment")

    again = client.post(
        "/api/documents/sign",
        {"file": _upload(data, "invoice.pdf"), "fingerprint": fp, "signature": sign_fingerprint(rsa_pair.private_key, fp)},
        **auth_headers(user),
    )
    assert again.status_code == 409
    assert again.json()["code"] == "DOCUMENT_ALREADY_SIGNED"


def test_detail_hides_crypto_from_strangers(client, make_record, other_user, user, auth_headers):
    make_record()
    stranger = client.get("/api/documents/CERT-1", **auth_headers(other_user)).json()
    assert "signature" not in stranger["data"]
    owner = client.get("/api/documents/CERT-1", **auth_headers(user)).json()
    assert owner["data"]["signature"]


def test_revoke_route(client, make_record, user, admin_user, auth_headers):
    make_record()
    denied = client.post("/api/documents/CERT-1/revoke", {"reason": "x"}, content_type="application/json", **auth_headers(user))
    assert denied.status_code == 403

    response = client.post(
        "/api/documents/CERT-1/revoke", {"reason": "issued in error"}, content_type="application/json", **auth_headers(admin_user)
    )
    assert response.status_code == 200
    assert response.json()["data"]["revoked"] is True

    verify = client.get("/api/documents/verify", {"certificate_id": "CERT-1"}).json()
    assert verify["data"]["reason"] == "certificate revoked"


def test_stats_route(client, make_record, user, auth_headers):
    make_record()
    body = client.get("/api/documents/stats", **auth_headers(user)).json()
    assert body["data"] == {"total": 1, "active": 1, "revoked": 0}


def test_diagnose_signature_caps_timestamps(client, user, auth_headers):
    response = client.post(
        "/api/documents/diagnose-signature",
        {"signature": "AAAA", "fingerprint": FP, "timestamps": ["2024-01-01T00:00:00.000Z"] * 6},
        content_type="application/json",
        **auth_headers(user),
    )
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
