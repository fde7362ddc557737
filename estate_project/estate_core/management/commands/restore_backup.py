from django.core.management.base import BaseCommand, CommandError

from estate_core.exceptions import EstateError
from estate_core.services import BackupController


class Command(BaseCommand):
    help = "Replace the live store with a backup file (a safety snapshot is taken first)."

    def add_arguments(self, parser):
        parser.add_argument("path", help="Backup file to restore from.")

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE(f"Restoring from {options['path']}..."))
        try:
            safety = BackupController().restore_from_backup(options["path"])
        except EstateError as exc:
            raise CommandError(f"{exc.code}: {exc.message}") from exc
        self.stdout.write(self.style.SUCCESS(f"Restored. Previous data kept at {safety}"))
