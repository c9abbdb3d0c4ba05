"""
Unit tests for retention policy (pos_backup/backup/retention.py).
"""

import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from pos_backup.backup.retention import RetentionManager
from pos_backup.models import BackupMetadata


def add_backup(history, root, backup_id, day, status='completed', as_dir=False, create=True):
    """Append a record and (optionally) create its artifact under root."""
    if as_dir:
        artifact = root / backup_id
        if create:
            (artifact / 'database').mkdir(parents=True)
            (artifact / 'database' / 'products.json').write_text('[]')
    else:
        artifact = root / f'{backup_id}.tar.gz'
        if create:
            artifact.write_bytes(b'archive')

    record = BackupMetadata(
        id=backup_id,
        timestamp=datetime(2024, 1, day, 2, 0, tzinfo=timezone.utc),
    )
    if status == 'completed':
        record = record.completed(path=str(artifact), size=7, checksum='00' * 32)
    else:
        record = record.failed('disk full')
    history.append(record)
    return artifact


class TestRetentionManager:
    """Test RetentionManager.cleanup_old_backups."""

    def test_nothing_to_delete(self, retention, history, backup_root):
        add_backup(history, backup_root, 'backup_1', 1)
        add_backup(history, backup_root, 'backup_2', 2)

        summary = retention.cleanup_old_backups()

        assert summary == {'candidates': 0, 'deleted': [], 'errors': []}
        assert len(history.list()) == 2

    def test_deletes_oldest_beyond_limit(self, retention, history, backup_root):
        """Test only the oldest completed backups beyond max_backups go."""
        # Appended out of order: age comes from the timestamp
        a3 = add_backup(history, backup_root, 'backup_3', 3)
        a1 = add_backup(history, backup_root, 'backup_1', 1)
        a4 = add_backup(history, backup_root, 'backup_4', 4)
        a2 = add_backup(history, backup_root, 'backup_2', 2)

        summary = retention.cleanup_old_backups()

        assert summary['candidates'] == 2
        assert summary['deleted'] == ['backup_1', 'backup_2']
        assert summary['errors'] == []
        assert not a1.exists()
        assert not a2.exists()
        assert a3.exists()
        assert a4.exists()
        assert [r.id for r in history.list()] == ['backup_4', 'backup_3']

    def test_failed_records_are_ignored(self, retention, history, backup_root):
        """Test failed runs neither count toward nor get removed by retention."""
        add_backup(history, backup_root, 'backup_1', 1, status='failed', create=False)
        add_backup(history, backup_root, 'backup_2', 2)
        add_backup(history, backup_root, 'backup_3', 3)

        summary = retention.cleanup_old_backups()

        assert summary['deleted'] == []
        assert history.contains('backup_1')

    def test_deletes_directory_artifacts(self, retention, history, backup_root):
        old = add_backup(history, backup_root, 'backup_1', 1, as_dir=True)
        add_backup(history, backup_root, 'backup_2', 2)
        add_backup(history, backup_root, 'backup_3', 3)

        summary = retention.cleanup_old_backups()

        assert summary['deleted'] == ['backup_1']
        assert not old.exists()

    def test_missing_artifact_counts_as_deleted(self, retention, history, backup_root):
        add_backup(history, backup_root, 'backup_1', 1, create=False)
        add_backup(history, backup_root, 'backup_2', 2)
        add_backup(history, backup_root, 'backup_3', 3)

        summary = retention.cleanup_old_backups()

        assert summary['deleted'] == ['backup_1']
        assert not history.contains('backup_1')

    def test_delete_failure_keeps_record(self, retention, history, backup_root):
        """Test a record stays when its artifact could not be removed."""
        a1 = add_backup(history, backup_root, 'backup_1', 1)
        add_backup(history, backup_root, 'backup_2', 2)
        add_backup(history, backup_root, 'backup_3', 3)
        add_backup(history, backup_root, 'backup_4', 4)

        real_remove = os.remove

        def remove(path):
            if path.endswith('backup_1.tar.gz'):
                raise PermissionError('Permission denied')
            return real_remove(path)

        with patch('pos_backup.backup.retention.os.remove', side_effect=remove):
            summary = retention.cleanup_old_backups()

        assert summary['deleted'] == ['backup_2']
        assert len(summary['errors']) == 1
        assert 'backup_1' in summary['errors'][0]
        assert 'Permission denied' in summary['errors'][0]
        assert a1.exists()
        assert history.contains('backup_1')
        assert not history.contains('backup_2')

    def test_refuses_path_outside_root(self, retention, history, backup_root, tmp_path):
        """Test an artifact path outside the backup root is never deleted."""
        outside = tmp_path / 'important.tar.gz'
        outside.write_bytes(b'keep me')
        history.append(
            BackupMetadata(id='backup_0', timestamp=datetime(2023, 12, 31, tzinfo=timezone.utc))
            .completed(path=str(outside), size=7, checksum='00' * 32)
        )
        add_backup(history, backup_root, 'backup_2', 2)
        add_backup(history, backup_root, 'backup_3', 3)

        summary = retention.cleanup_old_backups()

        assert summary['deleted'] == []
        assert 'Refusing to delete path outside backup root' in summary['errors'][0]
        assert outside.read_bytes() == b'keep me'
        assert history.contains('backup_0')

    def test_refuses_backup_root_itself(self, retention, history, backup_root):
        history.append(
            BackupMetadata(id='backup_0', timestamp=datetime(2023, 12, 31, tzinfo=timezone.utc))
            .completed(path=str(backup_root), size=0, checksum='')
        )
        add_backup(history, backup_root, 'backup_2', 2)
        add_backup(history, backup_root, 'backup_3', 3)

        summary = retention.cleanup_old_backups()

        assert len(summary['errors']) == 1
        assert backup_root.is_dir()

    def test_never_raises(self, retention, history):
        with patch.object(history, 'list', side_effect=RuntimeError('history unavailable')):
            summary = retention.cleanup_old_backups()

        assert summary['errors'] == ['history unavailable']

    def test_zero_keeps_nothing(self, history, backup_root):
        add_backup(history, backup_root, 'backup_1', 1)
        manager = RetentionManager(history, str(backup_root), max_backups=0)

        assert manager.cleanup_old_backups()['deleted'] == ['backup_1']

    def test_negative_limit_rejected(self, history, backup_root):
        with pytest.raises(ValueError, match="max_backups"):
            RetentionManager(history, str(backup_root), max_backups=-1)
