import uuid

import django.db.models.deletion
import src.documents.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SignatureRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("file_name", models.CharField(max_length=255)),
                (
                    "fingerprint",
                    models.CharField(
                        help_text="SHA-256 (hex) of the document as uploaded by the signer",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "signed_fingerprint",
                    models.CharField(
                        blank=True, db_index=True, help_text="SHA-256 (hex) of the QR stamped copy", max_length=64
                    ),
                ),
                ("signature", models.TextField(help_text="Base64 signature over the canonical message")),
                ("public_key", models.TextField(help_text="PEM public key used at signing time")),
                (
                    "algorithm",
                    models.CharField(
                        choices=[
                            ("RSA-SHA256", "RSA with SHA-256 (PKCS#1 v1.5)"),
                            ("RSA-SHA1", "RSA with SHA-1 (PKCS#1 v1.5)"),
                            ("RSA-MD5", "RSA with MD5 (PKCS#1 v1.5)"),
                            ("ECDSA-SHA256", "ECDSA with SHA-256"),
                            ("ECDSA-SHA384", "ECDSA with SHA-384"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "message_encoding",
                    models.CharField(
                        choices=[
                            ("raw-fingerprint-v1", "Raw fingerprint bytes"),
                            ("hex-fingerprint-v0", "Hex fingerprint as UTF-8 text (legacy)"),
                        ],
                        default="raw-fingerprint-v1",
                        max_length=32,
                    ),
                ),
                ("certificate_id", models.CharField(max_length=64, unique=True)),
                ("issued_at", models.DateTimeField()),
                (
                    "signed_file",
                    models.FileField(blank=True, null=True, upload_to=src.documents.models.signed_file_upload_path),
                ),
                ("folder_path", models.CharField(blank=True, max_length=255, null=True)),
                ("document_type", models.CharField(default="document", max_length=50)),
                ("document_number", models.CharField(blank=True, max_length=100, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("revoked", models.BooleanField(db_index=True, default=False)),
                ("revoked_at", models.DateTimeField(blank=True, null=True)),
                ("revocation_reason", models.TextField(blank=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="signature_records",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "signature_records",
                "ordering": ["-issued_at"],
                "indexes": [models.Index(fields=["owner", "-issued_at"], name="sigrec_owner_issued_idx")],
            },
        ),
    ]
