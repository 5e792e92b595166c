from config.env import env, env_get, env_to_enum
from src.emails.enums import EmailSendingStrategy

# local | provider
EMAIL_SENDING_STRATEGY = env_to_enum(
    EmailSendingStrategy, env("EMAIL_SENDING_STRATEGY", default="local")
)

DEFAULT_FROM_EMAIL = env("DEFAULT_FROM_EMAIL", default="Notar.io <no-reply@notario.local>")

if EMAIL_SENDING_STRATEGY == EmailSendingStrategy.LOCAL:
    EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

if EMAIL_SENDING_STRATEGY == EmailSendingStrategy.PROVIDER:
    EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
    EMAIL_HOST = env("EMAIL_HOST")
    EMAIL_HOST_USER = env("EMAIL_HOST_USER")
    EMAIL_HOST_PASSWORD = env_get("EMAIL_HOST_PASSWORD")
    EMAIL_PORT = env.int("EMAIL_PORT")
    EMAIL_USE_TLS = env.bool("EMAIL_USE_TLS")
    SERVER_EMAIL = EMAIL_HOST_USER
