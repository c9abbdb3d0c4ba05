"""
Retention policy enforcement for backups.

Keeps at most max_backups completed backups. The oldest completed
artifacts beyond that count are deleted from disk and their history
records removed. A record is only removed once its artifact is gone, and
an artifact that could not be deleted keeps its record.
"""

import logging
import os
import shutil
from typing import Dict, Any

from pos_backup.models import STATUS_COMPLETED
from .history import HistoryStore, HistoryError


logger = logging.getLogger(__name__)


class RetentionManager:
    """
    Count-based retention over the backup history.

    Args:
        history: HistoryStore holding backup records
        backup_root: Only artifacts under this directory are ever deleted
        max_backups: Number of completed backups to keep
    """

    def __init__(self, history: HistoryStore, backup_root: str, max_backups: int = 30):
        if max_backups < 0:
            raise ValueError("max_backups must be zero or greater")
        self.history = history
        self.backup_root = os.path.abspath(backup_root)
        self.max_backups = max_backups

    def cleanup_old_backups(self) -> Dict[str, Any]:
        """
        Delete the oldest completed backups beyond max_backups.

        Never raises: failures are logged and reported in the summary.

        Returns:
            Dict with summary of cleanup operations:
            {
                'candidates': int,
                'deleted': List[str],
                'errors': List[str]
            }
        """
        summary = {'candidates': 0, 'deleted': [], 'errors': []}

        try:
            logger.info("Starting backup cleanup")

            completed = sorted(
                self.history.list(status=STATUS_COMPLETED),
                key=lambda record: record.timestamp
            )

            if len(completed) <= self.max_backups:
                logger.info("No backups to cleanup")
                return summary

            to_delete = completed[:len(completed) - self.max_backups]
            summary['candidates'] = len(to_delete)

            for record in to_delete:
                try:
                    self._delete_artifact(record.path)
                except (OSError, ValueError) as e:
                    error_msg = f"Failed to delete backup {record.id}: {e}"
                    logger.error(error_msg)
                    summary['errors'].append(error_msg)
                    continue

                try:
                    self.history.remove(record.id)
                except HistoryError as e:
                    error_msg = f"Deleted backup {record.id} but could not update history: {e}"
                    logger.error(error_msg)
                    summary['errors'].append(error_msg)
                    continue

                summary['deleted'].append(record.id)
                logger.info(f"Deleted old backup: {record.id}")

            logger.info(
                f"Cleanup completed: {len(summary['deleted'])} backups removed, "
                f"{len(summary['errors'])} errors"
            )

        except Exception as e:
            logger.error(f"Backup cleanup failed: {e}")
            summary['errors'].append(str(e))

        return summary

    def _delete_artifact(self, path: str):
        """
        Remove an artifact file or directory.

        A path that no longer exists counts as deleted.

        Raises:
            ValueError: If path is empty or outside the backup root
            OSError: If removal fails
        """
        if not path:
            raise ValueError("Backup record has no artifact path")

        full_path = os.path.abspath(path)
        if os.path.commonpath([full_path, self.backup_root]) != self.backup_root or full_path == self.backup_root:
            raise ValueError(f"Refusing to delete path outside backup root: {path}")

        if os.path.isdir(full_path):
            shutil.rmtree(full_path)
        elif os.path.exists(full_path):
            os.remove(full_path)
        else:
            logger.warning(f"Artifact already missing: {full_path}")
