from src.core.policies import ensure_owner_or_elevated, is_elevated


def ensure_can_access_record(user, record) -> None:
    """Owner of the record or an elevated role; UnauthorizedError otherwise."""
    ensure_owner_or_elevated(user, record.owner_id)


def can_access_record(user, record) -> bool:
    if user is None or not getattr(user, "is_authenticated", False):
        return False
    return is_elevated(user) or str(record.owner_id) == str(user.id)
