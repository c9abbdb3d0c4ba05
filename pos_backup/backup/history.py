"""
Durable record of backup attempts.

The history is one JSON array document (backup-history.json). Every change
rewrites the whole document through a temp file + rename, which is fine
because retention keeps the history small.
"""

import json
import logging
import os
import threading
from typing import List, Optional

from pos_backup.models import BackupMetadata
from pos_backup.utils.serialization import write_json_atomic


logger = logging.getLogger(__name__)

HISTORY_FILENAME = 'backup-history.json'


class HistoryError(Exception):
    """Raised when the history document cannot be read or written."""
    pass


class HistoryStore:
    """
    Append-only sequence of BackupMetadata persisted as a single document.

    Only terminal records are appended. Records are never edited: the only
    other mutation is remove(), used by retention once an artifact is gone.

    Args:
        path: Location of the history document
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()
        self._records: List[BackupMetadata] = []

    def load(self) -> List[BackupMetadata]:
        """
        Load the persisted history.

        A missing document means no backups yet and yields an empty history.

        Raises:
            HistoryError: If the document exists but cannot be parsed
        """
        with self._lock:
            if not os.path.exists(self.path):
                self._records = []
                return []

            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    raw = json.load(f)
                self._records = [BackupMetadata.from_dict(item) for item in raw]
            except (OSError, ValueError, KeyError, TypeError) as e:
                raise HistoryError(f"Failed to load backup history from {self.path}: {e}") from e

            logger.info(f"Loaded {len(self._records)} backup history records")
            return list(self._records)

    def append(self, record: BackupMetadata):
        """
        Add a record and rewrite the document.

        Raises:
            HistoryError: If the document cannot be written; the in-memory
                history is left unchanged in that case
        """
        with self._lock:
            self._persist(self._records + [record])
            self._records.append(record)

    def remove(self, backup_id: str) -> bool:
        """
        Drop a record whose artifact has been deleted.

        Returns:
            True if a record was removed

        Raises:
            HistoryError: If the document cannot be written
        """
        with self._lock:
            remaining = [r for r in self._records if r.id != backup_id]
            if len(remaining) == len(self._records):
                return False
            self._persist(remaining)
            self._records = remaining
            return True

    def get(self, backup_id: str) -> Optional[BackupMetadata]:
        with self._lock:
            for record in self._records:
                if record.id == backup_id:
                    return record
        return None

    def contains(self, backup_id: str) -> bool:
        return self.get(backup_id) is not None

    def list(self, status: Optional[str] = None, backup_type: Optional[str] = None,
             limit: Optional[int] = None) -> List[BackupMetadata]:
        """
        List records newest-first.

        Args:
            status: Only records with this status
            backup_type: Only records of this type
            limit: Maximum number of records

        Returns:
            List of BackupMetadata sorted by timestamp, newest first.
            Records with equal timestamps come out latest-appended first.
        """
        with self._lock:
            indexed = list(enumerate(self._records))

        if status:
            indexed = [(i, r) for i, r in indexed if r.status == status]
        if backup_type:
            indexed = [(i, r) for i, r in indexed if r.type == backup_type]

        indexed.sort(key=lambda item: (item[1].timestamp, item[0]), reverse=True)
        records = [r for _, r in indexed]

        if limit is not None and limit >= 0:
            records = records[:limit]
        return records

    def _persist(self, records: List[BackupMetadata]):
        try:
            write_json_atomic(self.path, [r.to_dict() for r in records])
        except OSError as e:
            logger.error(f"Failed to save backup history: {e}")
            raise HistoryError(f"Failed to save backup history: {e}") from e
