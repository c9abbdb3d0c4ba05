"""
Wiring of the backup engine.

All services are built once at startup from plain configuration values and
handed to whoever needs them (routes, scheduler). Nothing here reads
globals.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pos_backup.backup.checksum import ChecksumCalculator
from pos_backup.backup.compression import ArchiveBuilder
from pos_backup.backup.downloads import DownloadResolver
from pos_backup.backup.export import ExportEngine
from pos_backup.backup.history import HistoryStore, HISTORY_FILENAME
from pos_backup.backup.orchestrator import BackupOrchestrator
from pos_backup.backup.retention import RetentionManager
from pos_backup.backup.snapshots import DatabaseSnapshotWriter, DirectorySnapshotWriter
from pos_backup.datastore import Repository, create_repository
from pos_backup.scheduler import RetentionScheduler
from pos_backup.seed import demo_collections


logger = logging.getLogger(__name__)


@dataclass
class BackupServices:
    repository: Repository
    history: HistoryStore
    orchestrator: BackupOrchestrator
    retention: RetentionManager
    exporter: ExportEngine
    downloads: DownloadResolver
    scheduler: RetentionScheduler


def init_backup_directories(backup_root: str):
    """Create the backup root layout (database/, files/, exports/)."""
    for subdir in ('', 'database', 'files', 'exports'):
        os.makedirs(os.path.join(backup_root, subdir), exist_ok=True)
    logger.info("Backup directories initialized")


def build_services(settings: Mapping[str, Any], repository: Optional[Repository] = None) -> BackupServices:
    """
    Build the backup engine from configuration values.

    Args:
        settings: Mapping with the keys defined in pos_backup.config.Config
        repository: Data store to use instead of the configured one

    Returns:
        BackupServices with every component wired together
    """
    backup_root = os.path.abspath(settings['BACKUP_ROOT'])
    exports_root = os.path.join(backup_root, 'exports')
    init_backup_directories(backup_root)

    if repository is None:
        seed = demo_collections() if settings.get('SEED_DEMO_DATA') else None
        repository = create_repository(settings.get('DATA_STORE_URL'), seed)

    history = HistoryStore(os.path.join(backup_root, HISTORY_FILENAME))
    history.load()

    orchestrator = BackupOrchestrator(
        backup_root=backup_root,
        history=history,
        database_writer=DatabaseSnapshotWriter(repository, settings['BACKUP_COLLECTIONS']),
        files_writer=DirectorySnapshotWriter(settings['UPLOADS_DIR'], 'files'),
        logs_writer=DirectorySnapshotWriter(settings['LOGS_DIR'], 'logs'),
        archive_builder=ArchiveBuilder(backup_root),
        checksum_calculator=ChecksumCalculator(),
    )

    retention = RetentionManager(history, backup_root, max_backups=settings['MAX_BACKUPS'])

    scheduler = RetentionScheduler(
        orchestrator,
        retention,
        backup_cron=settings['BACKUP_SCHEDULE_CRON'],
        cleanup_cron=settings['CLEANUP_SCHEDULE_CRON'],
        timezone_name=settings['SCHEDULER_TIMEZONE'],
    )

    return BackupServices(
        repository=repository,
        history=history,
        orchestrator=orchestrator,
        retention=retention,
        exporter=ExportEngine(repository, exports_root),
        downloads=DownloadResolver(backup_root, exports_root),
        scheduler=scheduler,
    )
