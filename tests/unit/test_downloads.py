"""
Unit tests for download resolution (pos_backup/backup/downloads.py).
"""

from unittest.mock import patch

import pytest

from pos_backup.backup.downloads import (
    ArtifactNotFoundError,
    DownloadResolver,
    InvalidFilenameError,
    content_type_for,
)


@pytest.fixture
def exports_root(backup_root):
    root = backup_root / 'exports'
    root.mkdir()
    return root


@pytest.fixture
def resolver(backup_root, exports_root):
    return DownloadResolver(str(backup_root), str(exports_root))


class TestDownloadResolver:
    """Test DownloadResolver.resolve."""

    @pytest.mark.parametrize("filename", [
        '../etc/passwd',
        '..',
        '..backup.tar.gz',
        'exports/products.csv',
        '/etc/passwd',
        'sub\\file.json',
        'file\0.json',
        '',
    ])
    def test_rejects_unsafe_names_without_touching_disk(self, resolver, filename):
        """Test unsafe names fail validation before any filesystem lookup."""
        with patch('pos_backup.backup.downloads.os.path.isfile') as mock_isfile, \
                patch('pos_backup.backup.downloads.os.listdir') as mock_listdir:
            with pytest.raises(InvalidFilenameError):
                resolver.resolve(filename)

        mock_isfile.assert_not_called()
        mock_listdir.assert_not_called()

    def test_resolves_backup_archive(self, resolver, backup_root):
        archive = backup_root / 'backup_1705284000000.tar.gz'
        archive.write_bytes(b'archive bytes')

        resolved = resolver.resolve('backup_1705284000000.tar.gz')

        assert resolved.path == str(archive)
        assert resolved.filename == 'backup_1705284000000.tar.gz'
        assert resolved.content_type == 'application/gzip'
        assert resolved.size == len(b'archive bytes')

    def test_resolves_export(self, resolver, exports_root):
        export_dir = exports_root / 'products_20240115T020000000000_abc'
        export_dir.mkdir()
        (export_dir / 'products.csv').write_text('id,name\n1,Coffee\n')

        resolved = resolver.resolve('products.csv')

        assert resolved.path == str(export_dir / 'products.csv')
        assert resolved.content_type == 'text/csv'

    def test_backup_root_searched_first(self, resolver, backup_root, exports_root):
        (backup_root / 'products.json').write_text('root')
        export_dir = exports_root / 'products_1'
        export_dir.mkdir()
        (export_dir / 'products.json').write_text('export')

        assert resolver.resolve('products.json').path == str(backup_root / 'products.json')

    def test_export_dirs_searched_in_name_order(self, resolver, exports_root):
        for name in ('sales_2', 'sales_1'):
            (exports_root / name).mkdir()
            (exports_root / name / 'sales.json').write_text(name)

        assert resolver.resolve('sales.json').path == str(exports_root / 'sales_1' / 'sales.json')

    def test_directories_are_not_served(self, resolver, backup_root):
        (backup_root / 'backup_1').mkdir()

        with pytest.raises(ArtifactNotFoundError):
            resolver.resolve('backup_1')

    def test_not_found(self, resolver):
        with pytest.raises(ArtifactNotFoundError, match="File not found"):
            resolver.resolve('backup_0.tar.gz')

    def test_missing_exports_root(self, backup_root):
        resolver = DownloadResolver(str(backup_root), str(backup_root / 'no-exports'))

        with pytest.raises(ArtifactNotFoundError):
            resolver.resolve('products.csv')


@pytest.mark.parametrize("filename,expected", [
    ('products.json', 'application/json'),
    ('sales.csv', 'text/csv'),
    ('backup_1.tar.gz', 'application/gzip'),
    ('SALES.CSV', 'text/csv'),
    ('backup_1.tar.xz', 'application/octet-stream'),
    ('README', 'application/octet-stream'),
])
def test_content_type_for(filename, expected):
    assert content_type_for(filename) == expected
