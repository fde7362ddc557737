from django.core.management.base import BaseCommand, CommandError

from estate_core.models.backup import BACKUP_KIND_CHOICES
from estate_core.services import BackupController


class Command(BaseCommand):
    help = "Snapshot the whole store to a backup file."

    def add_arguments(self, parser):
        parser.add_argument(
            "--kind",
            default="local",
            choices=[value for value, _ in BACKUP_KIND_CHOICES],
        )
        parser.add_argument("--dir", dest="backup_dir", default=None, help="Override ESTATE_BACKUP_DIR.")

    def handle(self, *args, **options):
        controller = BackupController(backup_dir=options["backup_dir"])
        record = controller.create_backup(kind=options["kind"])
        if record.status != "completed":
            raise CommandError(f"Backup failed: {record.notes}")
        self.stdout.write(self.style.SUCCESS(f"Backup written to {record.filepath} ({record.size} bytes)"))
