from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from src.api.exception_handler import attach_exception_handlers

from src.auditaction.apis import AuditActionController
from src.documents.apis import DocumentsController
from src.users.apis import AuthController, UserController


api = NinjaExtraAPI(title="Notar.io API", version="1.0.0", csrf=False)

# JWT Authentication
api.register_controllers(NinjaJWTDefaultController)

# Register exception handlers in one place
attach_exception_handlers(api)

api.register_controllers(
    AuthController,
    UserController,
    DocumentsController,
    AuditActionController,
)
