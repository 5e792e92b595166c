from datetime import timedelta

from django.utils import timezone

from src.core.exceptions import APIError


def enforce_min_interval(last_sent_at, *, seconds: int, code: str, message: str) -> None:
    """
    Raise a 429 APIError while less than `seconds` have elapsed since `last_sent_at`.
    Stateless: the timestamp lives on the caller's own row.
    """
    if not last_sent_at:
        return
    elapsed = timezone.now() - last_sent_at
    if elapsed < timedelta(seconds=seconds):
        retry_after = int(seconds - elapsed.total_seconds()) + 1
        raise APIError(message=message, code=code, status=429, extra={"retry_after": retry_after})
