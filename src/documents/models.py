from django.db import models

from src.common.models import BaseModel
from src.documents.crypto.algorithms import MessageEncoding, SignatureAlgorithm


def signed_file_upload_path(instance, filename: str) -> str:
    return f"signed/{instance.issued_at:%Y/%m}/signed_{instance.certificate_id}_{filename}"


class SignatureRecord(BaseModel):
    """
    Persisted proof binding a document fingerprint to a signer's public key.
    Written once by the signing workflow; only revocation touches it afterwards.
    """

    owner = models.ForeignKey(
        "users.User", on_delete=models.PROTECT, related_name="signature_records"
    )

    file_name = models.CharField(max_length=255)

    fingerprint = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA-256 (hex) of the document as uploaded by the signer",
    )
    signed_fingerprint = models.CharField(
        max_length=64,
        blank=True,
        db_index=True,
        help_text="SHA-256 (hex) of the QR stamped copy",
    )

    signature = models.TextField(help_text="Base64 signature over the canonical message")
    public_key = models.TextField(help_text="PEM public key used at signing time")
    algorithm = models.CharField(max_length=20, choices=SignatureAlgorithm.choices)
    message_encoding = models.CharField(
        max_length=32,
        choices=MessageEncoding.choices,
        default=MessageEncoding.RAW_FINGERPRINT_V1,
    )

    certificate_id = models.CharField(max_length=64, unique=True)
    issued_at = models.DateTimeField()

    signed_file = models.FileField(upload_to=signed_file_upload_path, blank=True, null=True)
    folder_path = models.CharField(max_length=255, blank=True, null=True)

    document_type = models.CharField(max_length=50, default="document")
    document_number = models.CharField(max_length=100, blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)

    revoked = models.BooleanField(default=False, db_index=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    revocation_reason = models.TextField(blank=True)

    class Meta:
        db_table = "signature_records"
        ordering = ["-issued_at"]
        indexes = [
            models.Index(fields=["owner", "-issued_at"], name="sigrec_owner_issued_idx"),
        ]

    def __str__(self):
        return f"{self.certificate_id} ({self.file_name})"

    @property
    def signed_file_url(self) -> str:
        if self.signed_file:
            return self.signed_file.url
        return ""
