"""
Shared pytest fixtures for pos-backup tests.

This module provides fixtures for:
- Flask app and test client with a temporary backup root
- Seeded in-memory data store
- History store, snapshot writers and orchestrator
- Temporary upload/log trees
- Mocked APScheduler
"""

from unittest.mock import MagicMock, patch

import pytest

from pos_backup import create_app, get_services
from pos_backup.backup.history import HistoryStore
from pos_backup.backup.orchestrator import BackupOrchestrator
from pos_backup.backup.retention import RetentionManager
from pos_backup.backup.snapshots import DatabaseSnapshotWriter, DirectorySnapshotWriter
from pos_backup.datastore import InMemoryRepository


COLLECTIONS = ['products', 'sales', 'customers']


@pytest.fixture
def collections_data():
    return {
        'products': [
            {'id': 1, 'name': 'Coffee'},
            {'id': 2, 'name': 'Tea'},
        ],
        'sales': [
            {'id': 1, 'total': 7.56, 'status': 'paid', 'createdAt': '2024-01-05T10:15:00Z'},
            {'id': 2, 'total': 2.38, 'status': 'refunded', 'createdAt': '2024-02-06T08:40:00Z'},
            {'id': 3, 'total': 12.0, 'status': 'paid', 'createdAt': '2024-03-01T12:00:00Z'},
        ],
        'customers': [
            {'id': 1, 'name': 'Ada', 'email': 'ada@example.com', 'createdAt': '2024-01-04T12:00:00Z'},
        ],
    }


@pytest.fixture
def repository(collections_data):
    """In-memory data store with products, sales and customers."""
    return InMemoryRepository(collections_data)


@pytest.fixture
def backup_root(tmp_path):
    root = tmp_path / 'backups'
    root.mkdir()
    return root


@pytest.fixture
def uploads_dir(tmp_path):
    """
    Create an uploads tree.

    Creates:
    - logo.png
    - products/coffee.jpg
    """
    uploads = tmp_path / 'uploads'
    (uploads / 'products').mkdir(parents=True)
    (uploads / 'logo.png').write_bytes(b'\x89PNG fake image')
    (uploads / 'products' / 'coffee.jpg').write_bytes(b'fake jpeg')
    return uploads


@pytest.fixture
def logs_dir(tmp_path):
    logs = tmp_path / 'logs'
    logs.mkdir()
    (logs / 'app.log').write_text('[2024-01-01] INFO started\n')
    return logs


@pytest.fixture
def history(backup_root):
    store = HistoryStore(str(backup_root / 'backup-history.json'))
    store.load()
    return store


@pytest.fixture
def orchestrator(backup_root, history, repository, uploads_dir, logs_dir):
    """BackupOrchestrator writing into a temporary backup root."""
    return BackupOrchestrator(
        backup_root=str(backup_root),
        history=history,
        database_writer=DatabaseSnapshotWriter(repository, COLLECTIONS),
        files_writer=DirectorySnapshotWriter(str(uploads_dir), 'files'),
        logs_writer=DirectorySnapshotWriter(str(logs_dir), 'logs'),
    )


@pytest.fixture
def retention(history, backup_root):
    return RetentionManager(history, str(backup_root), max_backups=2)


@pytest.fixture(scope='function')
def app(tmp_path, repository):
    """
    Create Flask app with test configuration.

    Backups, uploads and logs all live under tmp_path; the scheduler is off.
    """
    app = create_app('testing', repository=repository, overrides={
        'BACKUP_ROOT': str(tmp_path / 'app_backups'),
        'UPLOADS_DIR': str(tmp_path / 'app_uploads'),
        'LOGS_DIR': str(tmp_path / 'app_logs'),
        'MAX_BACKUPS': 2,
    })

    yield app


@pytest.fixture(scope='function')
def client(app):
    """Flask test client for making HTTP requests."""
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services(app)


@pytest.fixture(scope='function')
def mock_scheduler():
    """
    Mock APScheduler for testing scheduler functionality.
    """
    with patch('pos_backup.scheduler.BackgroundScheduler') as mock_sched:
        scheduler_instance = MagicMock()
        mock_sched.return_value = scheduler_instance

        # Mock scheduler methods
        scheduler_instance.running = False
        scheduler_instance.state = 0
        scheduler_instance.get_jobs.return_value = []

        yield scheduler_instance
