import uuid
from datetime import datetime, timezone

import pytest
from django.test import RequestFactory

from src.auditaction.models import AuditAction, AuditCategory, AuditLog
from src.auditaction.services import audit_action_create


@pytest.mark.django_db
def test_category_follows_action_prefix(user):
    entry = audit_action_create(user=user, action=AuditAction.DOCUMENT_SIGNED, target_id="CERT-1")
    assert entry.category == AuditCategory.DOCUMENT
    assert entry.target_id == "CERT-1"


@pytest.mark.django_db
def test_request_metadata_is_captured(user):
    request = RequestFactory().post(
        "/api/documents/sign",
        HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
        HTTP_USER_AGENT="pytest",
        HTTP_X_REQUEST_ID="req-1",
    )
    entry = audit_action_create(user=user, action=AuditAction.USER_KEYS_UPDATED, request=request)
    assert entry.ip_address == "203.0.113.7"
    assert entry.user_agent == "pytest"
    assert entry.request_id == "req-1"


@pytest.mark.django_db
def test_details_are_made_json_safe(user):
    uid = uuid.uuid4()
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)
    entry = audit_action_create(user=user, action=AuditAction.DOCUMENT_REVOKED, details={"id": uid, "at": when, "tags": {"a"}})
    entry.refresh_from_db()
    assert entry.details == {"id": str(uid), "at": when.isoformat(), "tags": ["a"]}


@pytest.mark.django_db
def test_anonymous_entries_have_no_user():
    entry = audit_action_create(user=None, action=AuditAction.AUTH_LOGIN_FAILED, details={"email": "x@y.z"})
    assert entry.user is None
    assert entry.category == AuditCategory.AUTH


@pytest.mark.django_db
def test_audit_listing_is_admin_only(client, user, admin_user, auth_headers):
    audit_action_create(user=user, action=AuditAction.DOCUMENT_SIGNED, target_id="CERT-1")

    assert client.get("/api/audit/actions", **auth_headers(user)).status_code == 403

    body = client.get("/api/audit/actions", {"target_id": "CERT-1"}, **auth_headers(admin_user)).json()
    assert body["data"]["pagination"]["count"] == 1
    assert body["data"]["items"][0]["action"] == "DOCUMENT_SIGNED"


@pytest.mark.django_db
def test_audit_listing_rejects_malformed_user_id(client, admin_user, auth_headers):
    response = client.get("/api/audit/actions", {"user_id": "nope"}, **auth_headers(admin_user))
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ID"
    assert AuditLog.objects.count() == 0


@pytest.mark.django_db
def test_failed_token_request_is_audited(client, user):
    response = client.post(
        "/api/token/pair",
        {"email": user.email, "password": "wrong-password"},
        content_type="application/json",
    )
    assert response.status_code == 401
    entry = AuditLog.objects.get(action=AuditAction.AUTH_LOGIN_FAILED)
    assert entry.details["email"] == user.email
    assert entry.user is None


@pytest.mark.django_db
def test_token_login_is_audited(client, user):
    user.email_verified_at = datetime.now(timezone.utc)
    user.save(update_fields=["email_verified_at"])

    response = client.post(
        "/api/token/pair",
        {"email": user.email, "password": "s3cret-pass"},
        content_type="application/json",
    )
    assert response.status_code == 200
    entry = AuditLog.objects.get(action=AuditAction.AUTH_LOGIN_SUCCESS)
    assert entry.user == user
    assert entry.details["path"] == "/api/token/pair"


@pytest.mark.django_db
def test_refused_unverified_login_is_not_audited_as_success(client, user):
    response = client.post(
        "/api/token/pair",
        {"email": user.email, "password": "s3cret-pass"},
        content_type="application/json",
    )
    assert response.status_code == 403
    assert not AuditLog.objects.filter(action=AuditAction.AUTH_LOGIN_SUCCESS).exists()
