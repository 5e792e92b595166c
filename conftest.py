import hashlib

import fitz  # PyMuPDF
import pytest
from django.core.cache import cache
from django.utils import timezone
from ninja_jwt.tokens import AccessToken

from src.documents.crypto.algorithms import CANONICAL_ENCODING, SignatureAlgorithm
from src.documents.crypto.keys import generate_key_pair
from src.documents.crypto.signatures import canonical_message, sign_message
from src.documents.models import SignatureRecord
from src.users.models import User, UserRole

TEST_DOCUMENT_FINGERPRINT = hashlib.sha256(b"test-document").hexdigest()


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(scope="session")
def rsa_pair():
    return generate_key_pair("RSA")


@pytest.fixture(scope="session")
def ec_pair():
    return generate_key_pair("ECDSA")


@pytest.fixture
def user(db, rsa_pair):
    return User.objects.create_user(
        email="signer@example.com",
        password="s3cret-pass",
        name="Siti Signer",
        institution="Universitas Contoh",
        algorithm="RSA",
        public_key=rsa_pair.public_key,
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(email="other@example.com", password="s3cret-pass", name="Other")


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(email="admin@example.com", password="s3cret-pass", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def make_pdf():
    def _make(text="Invoice No. INV-2024-001", title="", pages=1):
        doc = fitz.open()
        for _ in range(pages):
            page = doc.new_page()
            page.insert_text((72, 72), text, fontname="helv", fontsize=12)
        if title:
            doc.set_metadata({"title": title, "author": "PT Contoh"})
        data = doc.tobytes()
        doc.close()
        return data

    return _make


@pytest.fixture
def sign_fingerprint():
    def _sign(private_key_pem, fingerprint, algorithm=SignatureAlgorithm.RSA_SHA256, **kwargs):
        return sign_message(private_key_pem, canonical_message(fingerprint), algorithm, **kwargs)

    return _sign


@pytest.fixture
def make_record(db, user, rsa_pair, sign_fingerprint):
    """Persist a record as the signing workflow would, minus the stored file."""

    def _make(fingerprint=TEST_DOCUMENT_FINGERPRINT, certificate_id="CERT-1", owner=None, signature=None, **kwargs):
        values = {
            "owner": owner or user,
            "file_name": "test-document.pdf",
            "fingerprint": fingerprint,
            "signature": signature or sign_fingerprint(rsa_pair.private_key, fingerprint),
            "public_key": rsa_pair.public_key,
            "algorithm": SignatureAlgorithm.RSA_SHA256,
            "message_encoding": CANONICAL_ENCODING,
            "certificate_id": certificate_id,
            "issued_at": timezone.now(),
        }
        values.update(kwargs)
        return SignatureRecord.objects.create(**values)

    return _make


@pytest.fixture
def auth_headers():
    def _headers(u):
        return {"HTTP_AUTHORIZATION": f"Bearer {AccessToken.for_user(u)}"}

    return _headers
