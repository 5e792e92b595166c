from django.utils import timezone

from src.core.exceptions import DomainValidationError, NotFoundError
from src.users.models import User


def user_get_by_id(*, user_id) -> User:
    try:
        return User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise NotFoundError(message="User not found", code="USER_NOT_FOUND")


def user_get_by_email(*, email: str) -> User | None:
    """None when no account uses this email."""
    try:
        return User.objects.get(email=(email or "").strip().lower())
    except User.DoesNotExist:
        return None


def user_get_by_verification_token(*, token: str) -> User:
    if not token:
        raise DomainValidationError(message="Invalid verification link", code="VERIFICATION_INVALID")
    try:
        user = User.objects.get(email_verification_token=token)
    except User.DoesNotExist:
        raise DomainValidationError(message="Invalid verification link", code="VERIFICATION_INVALID")
    if user.email_verification_expires_at and user.email_verification_expires_at < timezone.now():
        raise DomainValidationError(message="Verification link has expired", code="VERIFICATION_EXPIRED")
    return user
