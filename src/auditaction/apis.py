from ninja_extra import api_controller, route
from ninja_jwt.authentication import JWTAuth

from src.api.pagination import Paginator
from src.auditaction import selectors
from src.core.apis import BaseAPIController
from src.common.utils import validate_uuid
from src.core.policies import ensure_elevated


@api_controller("/audit", tags=["Audit"], auth=JWTAuth())
class AuditActionController(BaseAPIController):
    @route.get("/actions")
    def list_actions(
        self,
        category: str | None = None,
        action: str | None = None,
        user_id: str | None = None,
        target_id: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        q: str | None = None,
    ):
        """Administrators only."""
        ensure_elevated(self.context.request.auth)

        qs = selectors.audit_actions_list(
            category=category,
            action=action,
            user_id=validate_uuid(user_id) if user_id else None,
            target_id=target_id,
            date_from=date_from,
            date_to=date_to,
            q=q,
        )
        items, meta = Paginator(default_page_size=50, max_page_size=200).paginate_queryset(qs, self.context.request)
        data = [
            {
                "id": str(obj.id),
                "timestamp": obj.created_at.isoformat(),
                "category": obj.category,
                "action": obj.action,
                "severity": obj.severity,
                "user": obj.user.email if obj.user else None,
                "target_type": obj.target_type,
                "target_id": obj.target_id,
                "details": obj.details,
                "ip": obj.ip_address,
            }
            for obj in items
        ]
        return self.create_response(message="Audit actions fetched", data={"items": data, "pagination": meta})
