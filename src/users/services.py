import logging
import secrets
from datetime import timedelta
from typing import Any, Iterable, Mapping

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from src.auditaction.models import AuditAction, AuditCategory
from src.auditaction.services import audit_action_create
from src.common.notifications.email import queue_html_email, render_with_layout
from src.core.exceptions import DomainConflictError, DomainValidationError, InternalFault, InvalidInputError
from src.core.ratelimit import enforce_min_interval
from src.documents.crypto.algorithms import KeyAlgorithm
from src.documents.crypto.keys import (
    KeyPair,
    generate_key_pair,
    key_algorithm_of,
    load_public_key,
    normalize_public_key,
    public_key_fingerprint,
)
from src.users import selectors
from src.users.models import User

logger = logging.getLogger(__name__)

VERIFICATION_TOKEN_TTL = timedelta(hours=24)
RESEND_MIN_INTERVAL_SECONDS = 60
KEY_GENERATION_ATTEMPTS = 5


########################################################################################################################################
# Helpers
# ######################################################################################################################################
def merge_user_update(
    current: Mapping[str, Any],
    changes: Mapping[str, Any],
    *,
    preserve: Iterable[str] = ("algorithm",),
) -> dict[str, Any]:
    """
    Values to write for a user update.

    Fields named in `preserve` keep their current value unless `changes` sets
    them explicitly to something non-empty; every other key in `changes` wins.
    Pure: nothing is read from or written to the database.

        >>> merge_user_update({"algorithm": "ECDSA", "name": "a"}, {"name": "b"})
        {'algorithm': 'ECDSA', 'name': 'b'}
    """
    merged = dict(current)
    preserved = set(preserve)
    for field, value in changes.items():
        if field in preserved and value in (None, ""):
            continue
        merged[field] = value
    return merged


def _normalize_key_algorithm(algorithm: str | None) -> KeyAlgorithm:
    value = (algorithm or "").strip().upper()
    if value not in KeyAlgorithm.values:
        raise InvalidInputError(
            message="Invalid algorithm. Choose either 'RSA' or 'ECDSA'",
            code="INVALID_ALGORITHM",
        )
    return KeyAlgorithm(value)


def generate_unique_key_pair(algorithm: str = KeyAlgorithm.RSA) -> KeyPair:
    """Fresh key pair whose public half no other account already holds."""
    for attempt in range(1, KEY_GENERATION_ATTEMPTS + 1):
        pair = generate_key_pair(algorithm)
        if not User.objects.filter(public_key=pair.public_key).exists():
            return pair
        logger.warning("key collision, regenerating", extra={"attempt": attempt, "algorithm": algorithm})
    logger.error("could not generate a unique key pair", extra={"algorithm": algorithm})
    raise InternalFault(extra={"reason": "key_generation_exhausted"})


def _issue_verification_token(user: User) -> str:
    token = secrets.token_hex(32)
    now = timezone.now()
    user.email_verification_token = token
    user.email_verification_expires_at = now + VERIFICATION_TOKEN_TTL
    user.email_verification_sent_at = now
    return token


def _send_verification_email(user: User, token: str) -> None:
    verify_url = f"{settings.FRONTEND_BASE_URL}/verify-email?token={token}"
    ctx = {
        "product_name": settings.PRODUCT_NAME,
        "name": user.name,
        "action_url": verify_url,
        "expires_hours": int(VERIFICATION_TOKEN_TTL.total_seconds() // 3600),
    }
    html = render_with_layout(inner_template="verify_email.html", context=ctx)
    queue_html_email(to=[user.email], subject=f"Verify your {settings.PRODUCT_NAME} account", html=html)


########################################################################################################################################
# Registration & email verification
# ######################################################################################################################################
@transaction.atomic
def user_register(
    *,
    email: str,
    password: str,
    name: str,
    institution: str | None = None,
    request=None,
) -> tuple[User, KeyPair]:
    """
    Create an unverified account with a server generated RSA key pair.
    The private key is returned to the caller and never stored.
    """
    email = (email or "").strip().lower()
    if not email or not password or not (name or "").strip():
        raise InvalidInputError(message="Missing required fields", code="MISSING_FIELDS")

    if User.objects.filter(email=email).exists():
        raise DomainConflictError(message="User already exists", code="USER_EXISTS")

    pair = generate_unique_key_pair(KeyAlgorithm.RSA)
    user = User.objects.create_user(
        email=email,
        password=password,
        name=name.strip(),
        institution=(institution or "").strip(),
        algorithm=KeyAlgorithm.RSA,
        public_key=pair.public_key,
        key_updated_at=timezone.now(),
    )
    token = _issue_verification_token(user)
    user.save(update_fields=[
        "email_verification_token",
        "email_verification_expires_at",
        "email_verification_sent_at",
        "updated_at",
    ])

    transaction.on_commit(lambda: _send_verification_email(user, token))

    audit_action_create(
        user=user,
        category=AuditCategory.USER,
        action=AuditAction.USER_REGISTERED,
        details={"email": user.email, "key_id": public_key_fingerprint(pair.public_key)},
        target_type="user",
        target_id=str(user.id),
        request=request,
    )
    return user, pair


@transaction.atomic
def user_verify_email(*, token: str, request=None) -> User:
    user = selectors.user_get_by_verification_token(token=token)

    user.email_verified_at = timezone.now()
    user.email_verification_token = ""
    user.email_verification_expires_at = None
    user.save(update_fields=[
        "email_verified_at",
        "email_verification_token",
        "email_verification_expires_at",
        "updated_at",
    ])

    audit_action_create(
        user=user,
        category=AuditCategory.USER,
        action=AuditAction.USER_EMAIL_VERIFIED,
        target_type="user",
        target_id=str(user.id),
        request=request,
    )
    return user


@transaction.atomic
def user_resend_verification(*, email: str, request=None) -> None:
    """
    Silent for unknown addresses so the endpoint cannot be used to probe accounts.
    """
    user = selectors.user_get_by_email(email=email)
    if user is None:
        logger.info("verification resend for unknown address")
        return
    if user.is_verified:
        raise DomainValidationError(message="Email is already verified", code="ALREADY_VERIFIED")

    enforce_min_interval(
        user.email_verification_sent_at,
        seconds=RESEND_MIN_INTERVAL_SECONDS,
        code="VERIFICATION_RATE_LIMIT",
        message="Please wait before requesting another verification email.",
    )

    token = _issue_verification_token(user)
    user.save(update_fields=[
        "email_verification_token",
        "email_verification_expires_at",
        "email_verification_sent_at",
        "updated_at",
    ])
    transaction.on_commit(lambda: _send_verification_email(user, token))

    audit_action_create(
        user=user,
        category=AuditCategory.USER,
        action=AuditAction.USER_VERIFICATION_SENT,
        target_type="user",
        target_id=str(user.id),
        request=request,
    )


########################################################################################################################################
# Keys
# ######################################################################################################################################
@transaction.atomic
def user_update_public_key(*, user: User, public_key: str, algorithm: str | None = None, request=None) -> User:
    """
    Store a client supplied public key. The algorithm follows the key type;
    an explicit algorithm that contradicts the key is rejected.
    """
    pem = normalize_public_key(public_key)
    family = key_algorithm_of(load_public_key(pem))
    if algorithm:
        requested = _normalize_key_algorithm(algorithm)
        if requested != family:
            raise InvalidInputError(
                message=f"Public key is not an {requested} key",
                code="ALGORITHM_KEY_MISMATCH",
            )

    values = merge_user_update(
        {"algorithm": user.algorithm, "public_key": user.public_key},
        {"algorithm": family.value, "public_key": pem},
    )
    previous_algorithm = user.algorithm
    user.algorithm = values["algorithm"]
    user.public_key = values["public_key"]
    user.key_updated_at = timezone.now()
    user.save(update_fields=["algorithm", "public_key", "key_updated_at", "updated_at"])

    audit_action_create(
        user=user,
        category=AuditCategory.USER,
        action=AuditAction.USER_KEYS_UPDATED,
        details={
            "key_id": public_key_fingerprint(pem),
            "algorithm": user.algorithm,
            "previous_algorithm": previous_algorithm,
        },
        target_type="user",
        target_id=str(user.id),
        request=request,
    )
    return user


@transaction.atomic
def user_change_algorithm(*, user: User, algorithm: str, request=None) -> KeyPair | None:
    """
    Switch the signing key family and issue a new key pair.
    Returns None (and changes nothing) when the user already uses `algorithm`.
    """
    target = _normalize_key_algorithm(algorithm)
    if (user.algorithm or "").upper() == target:
        return None

    pair = generate_unique_key_pair(target)
    previous = user.algorithm
    user.algorithm = target
    user.public_key = pair.public_key
    user.key_updated_at = timezone.now()
    user.save(update_fields=["algorithm", "public_key", "key_updated_at", "updated_at"])

    audit_action_create(
        user=user,
        category=AuditCategory.USER,
        action=AuditAction.USER_ALGORITHM_CHANGED,
        details={
            "from": previous,
            "to": target.value,
            "key_id": public_key_fingerprint(pair.public_key),
        },
        target_type="user",
        target_id=str(user.id),
        request=request,
    )
    logger.info("signing algorithm changed", extra={"user_id": str(user.id), "algorithm": target.value})
    return pair
