"""
Snapshot writers for backup runs.

Each writer serializes one domain into a staging directory:
- DatabaseSnapshotWriter: every configured collection as <name>.json
- DirectorySnapshotWriter: recursive copy of a directory tree (uploads, logs)

A writer never raises for a single bad item. It returns one SnapshotResult
per item, and items that could not be written come back as 'skipped' with
a reason, so one broken collection cannot void a whole backup.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import List, Optional

from pos_backup.datastore import Repository
from pos_backup.utils.serialization import write_json


logger = logging.getLogger(__name__)

RESULT_OK = 'ok'
RESULT_SKIPPED = 'skipped'


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of snapshotting one item (a collection or a directory)."""

    name: str
    status: str
    reason: Optional[str] = None
    count: int = 0

    @property
    def ok(self) -> bool:
        return self.status == RESULT_OK

    @classmethod
    def success(cls, name: str, count: int = 0) -> 'SnapshotResult':
        return cls(name=name, status=RESULT_OK, count=count)

    @classmethod
    def skipped(cls, name: str, reason: str) -> 'SnapshotResult':
        return cls(name=name, status=RESULT_SKIPPED, reason=reason)


class DatabaseSnapshotWriter:
    """
    Writes a fixed set of collections as pretty-printed JSON files.

    Args:
        repository: Data store to read collections from
        collections: Collection names to write, in order
    """

    def __init__(self, repository: Repository, collections: List[str]):
        self.repository = repository
        self.collections = list(collections)

    def write(self, destination_dir: str) -> List[SnapshotResult]:
        """
        Write every collection into destination_dir.

        Args:
            destination_dir: Directory to write <collection>.json files into

        Returns:
            One SnapshotResult per configured collection
        """
        os.makedirs(destination_dir, exist_ok=True)
        results = []

        for name in self.collections:
            file_path = os.path.join(destination_dir, f"{name}.json")
            try:
                records = self.repository.read_all(name)
                write_json(file_path, records)
            except Exception as e:
                logger.error(f"Failed to export {name}: {e}")
                if os.path.exists(file_path):
                    os.remove(file_path)
                results.append(SnapshotResult.skipped(name, str(e)))
                continue

            logger.info(f"Exported {name}: {len(records)} documents")
            results.append(SnapshotResult.success(name, len(records)))

        return results


class DirectorySnapshotWriter:
    """
    Copies a directory tree into the staging area.

    A missing source directory is not an error: the writer logs a warning and
    reports the item as skipped.

    Args:
        source_dir: Directory to copy (e.g. uploaded assets, log directory)
        label: Name used in results and log messages
        exclude_patterns: Glob patterns to leave out (e.g. *.tmp)
    """

    def __init__(self, source_dir: str, label: str, exclude_patterns: List[str] = None):
        self.source_dir = source_dir
        self.label = label
        self.exclude_patterns = exclude_patterns or []

    def _should_exclude(self, path: Path) -> bool:
        """
        Check if a path should be excluded based on exclude patterns.

        Args:
            path: Path to check

        Returns:
            True if path matches any exclude pattern, False otherwise
        """
        path_str = str(path)
        for pattern in self.exclude_patterns:
            if fnmatch(path_str, pattern) or fnmatch(path.name, pattern):
                return True
        return False

    def _ignore(self, directory, names):
        return [name for name in names if self._should_exclude(Path(directory) / name)]

    def write(self, destination_dir: str) -> List[SnapshotResult]:
        """
        Copy source_dir recursively into destination_dir.

        Args:
            destination_dir: Directory the tree is copied into

        Returns:
            A single-item list with the outcome for this directory
        """
        source = Path(self.source_dir)
        os.makedirs(destination_dir, exist_ok=True)

        if not source.is_dir():
            logger.warning(f"{self.label.capitalize()} directory not found, skipping {self.label} backup")
            return [SnapshotResult.skipped(self.label, f"Directory not found: {self.source_dir}")]

        try:
            shutil.copytree(
                source,
                destination_dir,
                symlinks=False,
                ignore=self._ignore if self.exclude_patterns else None,
                dirs_exist_ok=True,
            )
        except shutil.Error as e:
            # copytree keeps going past unreadable files and reports them together
            failures = e.args[0] if e.args and isinstance(e.args[0], list) else []
            logger.error(f"{self.label.capitalize()} backup incomplete: {len(failures)} files could not be copied")
            return [SnapshotResult.skipped(self.label, f"{len(failures)} files could not be copied")]
        except OSError as e:
            logger.error(f"{self.label.capitalize()} backup failed: {e}")
            return [SnapshotResult.skipped(self.label, str(e))]

        copied = sum(1 for p in Path(destination_dir).rglob('*') if p.is_file())
        logger.info(f"{self.label.capitalize()} backup completed ({copied} files)")
        return [SnapshotResult.success(self.label, copied)]
