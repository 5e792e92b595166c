from ninja import Body
from ninja_extra import api_controller, route, throttle
from ninja_jwt.authentication import JWTAuth

from src.core.apis import BaseAPIController
from src.users import services
from src.users.presenters import key_pair_to_dto, user_to_profile_dto
from src.users.schemas import (
    ChangeAlgorithmPayload,
    RegisterPayload,
    ResendVerificationPayload,
    UpdateKeysPayload,
    VerifyEmailPayload,
)
from src.users.throttlers import RegistrationThrottle, VerificationEmailThrottle


@api_controller("/auth", tags=["Auth"], auth=None)
class AuthController(BaseAPIController):
    @route.post("/register")
    @throttle(RegistrationThrottle)
    def register(self, body: RegisterPayload = Body(...)):
        user, pair = services.user_register(
            email=body.email,
            password=body.password,
            name=body.name,
            institution=body.institution,
            request=self.context.request,
        )
        return self.create_response(
            message="User registered successfully. Please check your email to verify your account.",
            data={"user": user_to_profile_dto(user), "keys": key_pair_to_dto(pair)},
            status_code=201,
        )

    @route.post("/verify-email")
    def verify_email(self, body: VerifyEmailPayload = Body(...)):
        user = services.user_verify_email(token=body.token, request=self.context.request)
        return self.create_response(
            message="Email verified successfully",
            data={"email": user.email},
            status_code=200,
        )

    @route.post("/resend-verification")
    @throttle(VerificationEmailThrottle)
    def resend_verification(self, body: ResendVerificationPayload = Body(...)):
        services.user_resend_verification(email=body.email, request=self.context.request)
        return self.create_response(
            message="If the address belongs to an unverified account, a new verification email has been sent.",
            status_code=200,
        )


@api_controller("/users", tags=["Users"], auth=JWTAuth())
class UserController(BaseAPIController):
    @route.get("/me")
    def get_current_user(self):
        user = self.context.request.auth
        return self.create_response(
            message="Current user",
            data=user_to_profile_dto(user),
            status_code=200,
        )

    @route.post("/me/keys")
    def update_keys(self, body: UpdateKeysPayload = Body(...)):
        user = services.user_update_public_key(
            user=self.context.request.auth,
            public_key=body.public_key,
            algorithm=body.algorithm,
            request=self.context.request,
        )
        return self.create_response(
            message="Public key updated successfully",
            data=user_to_profile_dto(user),
            status_code=200,
        )

    @route.post("/me/algorithm")
    def change_algorithm(self, body: ChangeAlgorithmPayload = Body(...)):
        user = self.context.request.auth
        pair = services.user_change_algorithm(user=user, algorithm=body.algorithm, request=self.context.request)
        if pair is None:
            return self.create_response(
                message=f"You are already using the {user.algorithm} algorithm",
                data={"algorithm": user.algorithm},
                status_code=200,
                code="ALGORITHM_UNCHANGED",
            )
        return self.create_response(
            message=f"Signing algorithm changed to {pair.algorithm}. Store the private key now; it is not kept on the server.",
            data=key_pair_to_dto(pair),
            status_code=200,
        )
