from __future__ import annotations

from django.db.models import QuerySet, Q
from django.utils.dateparse import parse_datetime

from src.auditaction.models import AuditLog


def audit_actions_list(
    *,
    category: str | None = None,
    action: str | None = None,
    user_id: str | None = None,
    target_id: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    q: str | None = None,
) -> QuerySet[AuditLog]:
    qs = AuditLog.objects.select_related("user")

    if category:
        qs = qs.filter(category=category)
    if action:
        qs = qs.filter(action=action)
    if user_id:
        qs = qs.filter(user_id=user_id)
    if target_id:
        qs = qs.filter(target_id=target_id)

    df = parse_datetime(date_from) if date_from else None
    dt = parse_datetime(date_to) if date_to else None
    if df:
        qs = qs.filter(created_at__gte=df)
    if dt:
        qs = qs.filter(created_at__lte=dt)

    if q:
        qs = qs.filter(
            Q(action__icontains=q)
            | Q(user__email__icontains=q)
            | Q(target_id__icontains=q)
        )

    return qs.order_by("-created_at")
