import logging
import sqlite3
from pathlib import Path

from django.apps import apps
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS, DatabaseError, connections, transaction
from django.utils import timezone

from ..exceptions import NotFound, RestoreError, StorageError, ValidationError
from ..models import BackupRecord
from ..models.backup import BACKUP_KIND_CHOICES
from .audit_helper import log_action
from .validation import atomic_mutation

logger = logging.getLogger(__name__)

BACKUP_KINDS = {value for value, _ in BACKUP_KIND_CHOICES}


def required_tables():
    """Tables an artifact must carry to be restorable."""
    tables = {m._meta.db_table for m in apps.get_app_config("estate_core").get_models()}
    tables.add("django_migrations")
    return tables


def _table_names(conn: sqlite3.Connection):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {name for (name,) in rows}


class BackupController:
    """
    Snapshots the whole SQLite store to a portable file and restores it.

    The controller works on one explicit Django connection alias; it never
    reaches for a global. SQLite's online backup API does the copying in
    both directions, so it works the same for a file database and for the
    in-memory database the test runner uses.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS, backup_dir=None):
        self.using = using
        self.backup_dir = Path(backup_dir or settings.ESTATE_BACKUP_DIR)

    @property
    def connection(self):
        return connections[self.using]

    def _live(self) -> sqlite3.Connection:
        if self.connection.vendor != "sqlite":
            raise StorageError(
                f"Backups need the SQLite backend, not {self.connection.vendor}."
            )
        self.connection.ensure_connection()
        return self.connection.connection

    def _artifact_path(self, label: str = "backup") -> Path:
        stamp = timezone.now().strftime("%Y%m%dT%H%M%S%f")
        return self.backup_dir / f"estate_{label}_{stamp}.sqlite3"

    # ----------------------------
    # Low-level steps
    # ----------------------------
    def _snapshot_to(self, path: Path) -> int:
        """Copy the live store into a new file; returns its size in bytes."""
        live = self._live()
        path.parent.mkdir(parents=True, exist_ok=True)
        target = sqlite3.connect(path)
        try:
            live.backup(target)
        finally:
            target.close()
        return path.stat().st_size

    def _verify(self, path: Path):
        """Artifact must be a sound SQLite file with every table we need."""
        try:
            conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True)
        except sqlite3.Error as exc:
            raise RestoreError(f"{path.name} cannot be opened: {exc}") from exc
        try:
            (result,) = conn.execute("PRAGMA integrity_check").fetchone()
            if result != "ok":
                raise RestoreError(f"{path.name} failed integrity check: {result}")
            missing = required_tables() - _table_names(conn)
        except sqlite3.DatabaseError as exc:
            raise RestoreError(f"{path.name} is not a usable database: {exc}") from exc
        finally:
            conn.close()
        if missing:
            raise RestoreError(f"{path.name} is missing tables: {', '.join(sorted(missing))}")

    def _load_from(self, path: Path):
        """Overwrite the live store, page by page, with the artifact."""
        live = self._live()
        source = sqlite3.connect(path)
        try:
            source.backup(live)
        finally:
            source.close()

    def _reinitialize(self):
        """
        Drop and reopen the Django connection so nothing cached from the
        old store survives, then prove the new one answers.
        """
        self.connection.close()
        self.connection.ensure_connection()
        missing = required_tables() - _table_names(self.connection.connection)
        if missing:
            raise RestoreError(f"Store is missing tables after reload: {', '.join(sorted(missing))}")

    def _rollback_to(self, safety: Path):
        logger.warning("Rolling live store back to %s", safety)
        try:
            self._load_from(safety)
            self._reinitialize()
        except (sqlite3.Error, DatabaseError, OSError, RestoreError) as exc:
            logger.critical("Rollback from %s failed", safety, exc_info=True)
            raise RestoreError(
                f"Restore failed and rollback from {safety.name} also failed: {exc}"
            ) from exc

    # ----------------------------
    # Public operations
    # ----------------------------
    def create_backup(self, kind: str = "local", user=None) -> BackupRecord:
        """
        Snapshot the store and record the attempt.
        A failed snapshot does not raise: it comes back as a BackupRecord
        with status "failed" and the error in notes.
        """
        if kind not in BACKUP_KINDS:
            raise ValidationError(f"Unknown backup kind {kind!r}.")

        path = self._artifact_path()
        try:
            size = self._snapshot_to(path)
        except (sqlite3.Error, OSError, StorageError) as exc:
            logger.exception("Backup to %s failed", path)
            path.unlink(missing_ok=True)
            status, size, filepath, notes = "failed", None, None, str(exc)
        else:
            status, filepath, notes = "completed", str(path), None
            logger.info("Backup written to %s (%d bytes)", path, size)

        with atomic_mutation("record backup"):
            record = BackupRecord.objects.create(
                kind=kind,
                status=status,
                size=size,
                filepath=filepath,
                notes=notes,
                created_by=user if getattr(user, "is_authenticated", False) else None,
            )
            log_action(
                action="BACKUP",
                entity_type="backup",
                entity_id=record.pk,
                user=user,
                details={"kind": kind, "status": status, "filepath": filepath, "error": notes},
            )
        return record

    def restore_from_backup(self, artifact_path, user=None) -> Path:
        """
        Replace the live store with an artifact.

        1. artifact must exist (NotFound otherwise)
        2. safety snapshot of the live store
        3. verify + load the artifact
        4. reopen the connection
        Any failure in 3-4 puts the safety snapshot back and raises
        RestoreError. Returns the safety snapshot's path.
        """
        path = Path(artifact_path)
        if not path.is_file():
            raise NotFound(f"Backup artifact {path} not found.")
        if self.connection.in_atomic_block:
            raise StorageError("A restore cannot run inside a transaction.")

        actor_id = user.pk if getattr(user, "is_authenticated", False) else None
        logger.info("Restoring store from %s", path)

        safety = self._artifact_path("pre_restore")
        try:
            self._snapshot_to(safety)
        except (sqlite3.Error, OSError) as exc:
            # nothing has been replaced yet
            raise RestoreError(f"Could not take the safety snapshot: {exc}") from exc

        try:
            self._verify(path)
            self._load_from(path)
            self._reinitialize()
        except (sqlite3.Error, DatabaseError, OSError, RestoreError) as exc:
            logger.error("Restore from %s failed: %s", path, exc)
            self._rollback_to(safety)
            raise RestoreError(f"Restore from {path.name} failed: {exc}") from exc

        # the restored store may predate the acting user
        actor = get_user_model().objects.filter(pk=actor_id).first() if actor_id else None
        with atomic_mutation("record restore"):
            log_action(
                action="RESTORE",
                entity_type="system",
                user=actor,
                details={"source": str(path), "safety_snapshot": str(safety)},
            )
        logger.info("Restore from %s complete", path)
        return safety

    def prune_backups(self, keep: int, user=None) -> int:
        """Drop completed backups beyond the newest `keep`, files and records."""
        if keep < 0:
            raise ValidationError("keep must not be negative.")

        stale = list(
            BackupRecord.objects.filter(status="completed").order_by("-created_at", "-id")[keep:]
        )
        if not stale:
            return 0

        paths = [Path(r.filepath) for r in stale if r.filepath]
        with atomic_mutation("prune backups"):
            BackupRecord.objects.filter(pk__in=[r.pk for r in stale]).delete()
            log_action(
                action="PRUNE_BACKUPS",
                entity_type="backup",
                user=user,
                details={"kept": keep, "removed": [str(p) for p in paths]},
            )
            for p in paths:
                transaction.on_commit(lambda p=p: p.unlink(missing_ok=True))
        logger.info("Pruned %d backup(s), kept %d", len(stale), keep)
        return len(stale)
