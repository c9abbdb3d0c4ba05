"""
Backup module for the POS backend.

This module handles the backup engine:
- Snapshot writers (data-store collections, uploads, logs)
- Archiving and checksums
- Backup orchestration and history
- Retention policy enforcement
- Data exports and download resolution
"""

from .orchestrator import BackupOrchestrator, BackupInProgressError
from .snapshots import DatabaseSnapshotWriter, DirectorySnapshotWriter, SnapshotResult
from .compression import ArchiveBuilder, ArchiveError
from .checksum import ChecksumCalculator, ChecksumError
from .history import HistoryStore, HistoryError
from .retention import RetentionManager
from .export import ExportEngine, ExportError, UnsupportedCollectionError, UnsupportedFormatError
from .downloads import DownloadResolver, InvalidFilenameError, ArtifactNotFoundError

__all__ = [
    'BackupOrchestrator',
    'BackupInProgressError',
    'DatabaseSnapshotWriter',
    'DirectorySnapshotWriter',
    'SnapshotResult',
    'ArchiveBuilder',
    'ArchiveError',
    'ChecksumCalculator',
    'ChecksumError',
    'HistoryStore',
    'HistoryError',
    'RetentionManager',
    'ExportEngine',
    'ExportError',
    'UnsupportedCollectionError',
    'UnsupportedFormatError',
    'DownloadResolver',
    'InvalidFilenameError',
    'ArtifactNotFoundError',
]
