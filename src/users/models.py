from django.contrib.auth.models import (
    AbstractBaseUser,
    PermissionsMixin,
    BaseUserManager,
)
from django.db import models

from src.common.models import BaseModel
from src.documents.crypto.algorithms import KeyAlgorithm


class UserRole(models.TextChoices):
    USER = "USER", "User"
    ADMIN = "ADMIN", "Administrator"


class UserManager(BaseUserManager):
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required")

        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)

        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.update(
            {
                "is_staff": True,
                "is_superuser": True,
                "is_active": True,
                "role": UserRole.ADMIN,
            }
        )
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, BaseModel, PermissionsMixin):
    """Signers and administrators. Verifiers are anonymous and never have an account."""

    email = models.EmailField(unique=True, db_index=True)
    name = models.CharField(max_length=150)
    institution = models.CharField(max_length=255, blank=True)

    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.USER)

    # Signing material: only the public half is ever stored
    algorithm = models.CharField(
        max_length=10,
        choices=KeyAlgorithm.choices,
        default=KeyAlgorithm.RSA,
        help_text="Preferred signing key family",
    )
    public_key = models.TextField(blank=True, help_text="PEM encoded SPKI public key")
    key_updated_at = models.DateTimeField(null=True, blank=True)

    # Email verification
    email_verified_at = models.DateTimeField(null=True, blank=True)
    email_verification_token = models.CharField(max_length=128, blank=True, db_index=True)
    email_verification_expires_at = models.DateTimeField(null=True, blank=True)
    email_verification_sent_at = models.DateTimeField(null=True, blank=True)

    # Django required
    is_staff = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    class Meta:
        db_table = "users"
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        return f"{self.email} [{self.role}]"

    @property
    def is_verified(self) -> bool:
        return self.email_verified_at is not None

    @property
    def is_elevated(self) -> bool:
        return self.is_superuser or self.role == UserRole.ADMIN
