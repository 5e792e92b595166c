import posixpath

from django.core.management.base import BaseCommand
from django.db import transaction

from src.documents.models import SignatureRecord

# Places older records kept the storage folder before it became a column
LEGACY_METADATA_KEYS = ("folderPath", "folder_path", "driveFolderPath")


def legacy_folder_path(record: SignatureRecord) -> str:
    metadata = record.metadata or {}
    for key in LEGACY_METADATA_KEYS:
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    if record.signed_file and record.signed_file.name:
        return posixpath.dirname(record.signed_file.name)
    return f"signed/{record.issued_at:%Y/%m}"


class Command(BaseCommand):
    help = "Copy legacy folder paths from record metadata into SignatureRecord.folder_path"

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Report without writing")
        parser.add_argument("--batch-size", type=int, default=500)

    def handle(self, *args, dry_run=False, batch_size=500, **kwargs):
        qs = SignatureRecord.objects.filter(folder_path__isnull=True).order_by("issued_at")
        total = 0
        batch = []
        for record in qs.iterator(chunk_size=batch_size):
            record.folder_path = legacy_folder_path(record)
            for key in LEGACY_METADATA_KEYS:
                (record.metadata or {}).pop(key, None)
            batch.append(record)
            total += 1
            if len(batch) >= batch_size:
                self._flush(batch, dry_run)
                batch = []
        self._flush(batch, dry_run)

        verb = "Would update" if dry_run else "Updated"
        self.stdout.write(self.style.SUCCESS(f"{verb} {total} record(s)"))

    @transaction.atomic
    def _flush(self, batch, dry_run):
        if dry_run or not batch:
            return
        SignatureRecord.objects.bulk_update(batch, ["folder_path", "metadata"])
