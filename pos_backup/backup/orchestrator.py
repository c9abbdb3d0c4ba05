"""
Backup orchestrator - coordinates a full backup run.

Workflow:
1. Acquire the single-flight guard (fail fast if a run is in flight)
2. Create a pending BackupMetadata and a staging directory <root>/<id>/
3. Snapshot database, uploads and (optionally) logs into the staging directory
4. Archive the staging directory and remove it (if compression is on)
5. Compute artifact size and checksum
6. Append the terminal record (completed/failed) to the history
7. Release the guard

Steps run strictly in sequence. A failure in steps 3-5 (other than a
per-item snapshot skip) marks the run failed, is recorded in history and is
re-raised to the caller.
"""

import logging
import os
import shutil
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional

from pos_backup.models import (
    BackupMetadata,
    BackupOptions,
    BackupStatus,
    STATUS_COMPLETED,
    utcnow,
)
from .checksum import ChecksumCalculator
from .compression import ArchiveBuilder, get_archive_size
from .history import HistoryStore, HistoryError
from .snapshots import DatabaseSnapshotWriter, DirectorySnapshotWriter, SnapshotResult


logger = logging.getLogger(__name__)


class BackupInProgressError(Exception):
    """Raised when a backup is requested while another one is running."""

    def __init__(self, message: str = 'Backup is already in progress'):
        super().__init__(message)


@dataclass
class RunSummary:
    """Per-item snapshot outcomes of one backup run."""

    backup_id: str
    results: List[SnapshotResult] = field(default_factory=list)
    collections: Optional[List[str]] = None

    @property
    def skipped(self) -> List[SnapshotResult]:
        return [r for r in self.results if not r.ok]


class BackupOrchestrator:
    """
    Runs full backups into a backup root directory.

    Args:
        backup_root: Root directory for artifacts and the history document
        history: HistoryStore the outcome of every run is appended to
        database_writer: Writer for data-store collections
        files_writer: Writer for uploaded assets
        logs_writer: Writer for the log directory
        archive_builder: Builder for compressed archives (defaults to tar.gz in backup_root)
        checksum_calculator: Digest used for artifact checksums (defaults to SHA-256)
    """

    def __init__(
        self,
        backup_root: str,
        history: HistoryStore,
        database_writer: DatabaseSnapshotWriter,
        files_writer: DirectorySnapshotWriter,
        logs_writer: DirectorySnapshotWriter,
        archive_builder: Optional[ArchiveBuilder] = None,
        checksum_calculator: Optional[ChecksumCalculator] = None,
    ):
        self.backup_root = backup_root
        self.history = history
        self.database_writer = database_writer
        self.files_writer = files_writer
        self.logs_writer = logs_writer
        self.archive_builder = archive_builder or ArchiveBuilder(backup_root)
        self.checksum_calculator = checksum_calculator or ChecksumCalculator()
        self.last_summary: Optional[RunSummary] = None
        self._guard = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    @contextmanager
    def _single_flight(self):
        # Non-blocking: a second caller is refused, never queued
        if not self._guard.acquire(blocking=False):
            raise BackupInProgressError()
        try:
            yield
        finally:
            self._guard.release()

    def create_full_backup(self, options: Optional[BackupOptions] = None) -> BackupMetadata:
        """
        Run a full backup.

        Args:
            options: What to include; defaults to database + uploads, compressed

        Returns:
            The completed BackupMetadata

        Raises:
            BackupInProgressError: If another backup is running (nothing is written)
            Exception: Whatever stopped the run, after it was recorded as failed
        """
        options = options or BackupOptions()

        with self._single_flight():
            metadata = BackupMetadata(id=self._new_backup_id(), timestamp=utcnow(), type='full')
            summary = RunSummary(backup_id=metadata.id)
            self.last_summary = summary
            staging_dir = os.path.join(self.backup_root, metadata.id)
            artifact_path = None

            logger.info(f"Starting full backup: {metadata.id}")

            try:
                os.makedirs(staging_dir)

                if options.include_database:
                    database_results = self.database_writer.write(os.path.join(staging_dir, 'database'))
                    summary.results.extend(database_results)
                    summary.collections = [r.name for r in database_results if r.ok]
                    logger.info("Database export as JSON completed")

                if options.include_uploads:
                    summary.results.extend(self.files_writer.write(os.path.join(staging_dir, 'files')))

                if options.include_logs:
                    summary.results.extend(self.logs_writer.write(os.path.join(staging_dir, 'logs')))

                if summary.skipped:
                    logger.warning(
                        f"Backup {metadata.id} continues with skipped items: "
                        + ', '.join(f"{r.name} ({r.reason})" for r in summary.skipped)
                    )

                artifact_path = staging_dir
                if options.compress:
                    artifact_path = self.archive_builder.build(
                        staging_dir, self.archive_builder.archive_name(metadata.id)
                    )
                    shutil.rmtree(staging_dir)

                size = get_archive_size(artifact_path)
                checksum = self.checksum_calculator.checksum(artifact_path)

                result = metadata.completed(
                    path=os.path.abspath(artifact_path),
                    size=size,
                    checksum=checksum,
                    collections=summary.collections,
                )
                self.history.append(result)

            except Exception as e:
                failed = metadata.failed(
                    str(e) or e.__class__.__name__,
                    collections=summary.collections,
                )
                try:
                    self.history.append(failed)
                except HistoryError as history_error:
                    logger.error(f"Could not record failed backup {metadata.id}: {history_error}")
                self._cleanup(staging_dir, artifact_path)
                logger.error(f"Full backup failed: {metadata.id}: {e}")
                raise

            logger.info(f"Full backup completed: {result.id} (size={result.size}, path={result.path})")
            return result

    def get_status(self) -> BackupStatus:
        """Whether a run is in flight and the newest completed backup."""
        completed = self.history.list(status=STATUS_COMPLETED, limit=1)
        return BackupStatus(
            is_running=self.is_running,
            last_backup=completed[0] if completed else None,
        )

    def list_history(self, status: Optional[str] = None, backup_type: Optional[str] = None,
                     limit: Optional[int] = None) -> List[BackupMetadata]:
        return self.history.list(status=status, backup_type=backup_type, limit=limit)

    def _new_backup_id(self) -> str:
        millis = int(time.time() * 1000)
        while True:
            backup_id = f"backup_{millis}"
            taken = (
                self.history.contains(backup_id)
                or os.path.exists(os.path.join(self.backup_root, backup_id))
                or os.path.exists(os.path.join(self.backup_root, self.archive_builder.archive_name(backup_id)))
            )
            if not taken:
                return backup_id
            millis += 1

    def _cleanup(self, staging_dir: str, artifact_path: Optional[str]):
        """Remove whatever a failed run left on disk."""
        for path in (staging_dir, artifact_path):
            if not path or not os.path.exists(path):
                continue
            try:
                if os.path.isdir(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
            except OSError as e:
                logger.warning(f"Failed to clean up {path} after failed backup: {e}")
