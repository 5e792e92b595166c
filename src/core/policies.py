from src.core.exceptions import UnauthorizedError


def is_elevated(user) -> bool:
    """ADMIN role or Django superuser."""
    if getattr(user, "is_superuser", False):
        return True
    return getattr(user, "role", None) == "ADMIN"


def ensure_elevated(user) -> None:
    if not is_elevated(user):
        raise UnauthorizedError(message="Only administrators can access this")


def ensure_owner_or_elevated(user, owner_id) -> None:
    """Caller must be the owner (UUID or str) or hold an elevated role."""
    if str(getattr(user, "id", None)) == str(owner_id):
        return
    if is_elevated(user):
        return
    raise UnauthorizedError()
