from django.db import models


class EmailSendingStrategy(models.TextChoices):
    LOCAL = "local", "Console backend"
    PROVIDER = "provider", "SMTP provider"
