from django.contrib.auth.signals import user_logged_in
from ninja import Schema
from ninja_extra import service_resolver
from ninja_extra.context import RouteContext
from ninja_jwt.schema import TokenObtainPairInputSchema
from pydantic import EmailStr, Field

from src.core.exceptions import UnauthorizedError


class VerifiedTokenObtainPairInputSchema(TokenObtainPairInputSchema):
    """Token pair for active accounts whose email address has been confirmed."""

    def check_user_authentication_rule(self) -> None:
        super().check_user_authentication_rule()
        if not self._user.is_verified:
            raise UnauthorizedError(
                message="Email address has not been verified",
                code="EMAIL_NOT_VERIFIED",
            )
        # token logins never pass through django.contrib.auth.login
        request = service_resolver(RouteContext).request
        user_logged_in.send(sender=self._user.__class__, request=request, user=self._user)


class RegisterPayload(Schema):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=8)
    institution: str | None = None


class VerifyEmailPayload(Schema):
    token: str


class ResendVerificationPayload(Schema):
    email: EmailStr


class UpdateKeysPayload(Schema):
    public_key: str
    algorithm: str | None = None


class ChangeAlgorithmPayload(Schema):
    algorithm: str
