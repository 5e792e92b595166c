from __future__ import annotations

import uuid
from typing import Any

from django.http import HttpRequest

from src.auditaction.models import AuditLog, AuditCategory, Severity


def _infer_category_from_action(action: str) -> str:
    """Category from the action prefix (DOCUMENT_SIGNED -> DOCUMENT); SYSTEM when unknown."""
    if not action:
        return AuditCategory.SYSTEM
    prefix = action.split("_", 1)[0].upper()
    if prefix in AuditCategory.values:
        return prefix
    return AuditCategory.SYSTEM


def _extract_request_meta(request: HttpRequest | None) -> tuple[str | None, str, str]:
    if not request:
        return None, "", ""
    meta = getattr(request, "META", {}) or {}
    xff = meta.get("HTTP_X_FORWARDED_FOR")
    ip = (xff.split(",")[0].strip() if xff else meta.get("REMOTE_ADDR")) or None
    ua = meta.get("HTTP_USER_AGENT", "")
    req_id = meta.get("HTTP_X_REQUEST_ID") or getattr(request, "id", "") or ""
    if isinstance(req_id, uuid.UUID):
        req_id = str(req_id)
    return ip, ua, str(req_id)


def _json_sanitize(obj: Any) -> Any:
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, uuid.UUID):
        return str(obj)
    if isinstance(obj, dict):
        return {str(k): _json_sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_json_sanitize(v) for v in obj]
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    if hasattr(obj, "pk"):
        return _json_sanitize(obj.pk)
    return str(obj)


def audit_action_create(
    *,
    user,
    action: str,
    details: dict[str, Any] | None = None,
    category: str | None = None,
    target_type: str = "",
    target_id: str | None = None,
    severity: str = Severity.INFO,
    request: HttpRequest | None = None,
) -> AuditLog:
    """
    Create a single audit entry. Safe to call inside the caller's transaction.
    - category defaults to the action prefix
    - IP, user agent and request id are captured when a request is given
    """
    ip, ua, req_id = _extract_request_meta(request)
    return AuditLog.objects.create(
        user=user if getattr(user, "pk", None) else None,
        category=category or _infer_category_from_action(action),
        action=action,
        target_type=target_type or None,
        target_id=str(target_id) if target_id is not None else None,
        details=_json_sanitize(details or {}),
        severity=severity,
        ip_address=ip,
        user_agent=ua,
        request_id=req_id[:64],
    )
