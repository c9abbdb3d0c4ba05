"""
Download resolution for backup archives and exports.

Maps a bare file name to a file under the backup root (flat) or under one
of the export directories. Names that could escape those roots are
rejected before anything on disk is touched.
"""

import os
from dataclasses import dataclass


CONTENT_TYPES = {
    '.json': 'application/json',
    '.csv': 'text/csv',
    '.gz': 'application/gzip',
}
DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class InvalidFilenameError(Exception):
    """Raised for names containing path separators or parent segments."""
    pass


class ArtifactNotFoundError(Exception):
    """Raised when no backup or export has the requested name."""
    pass


@dataclass(frozen=True)
class ResolvedDownload:
    path: str
    filename: str
    content_type: str
    size: int


def content_type_for(filename: str) -> str:
    """Advisory content type from the file extension."""
    return CONTENT_TYPES.get(os.path.splitext(filename)[1].lower(), DEFAULT_CONTENT_TYPE)


def validate_filename(filename: str):
    """
    Reject names that could leave the download roots.

    Raises:
        InvalidFilenameError: If the name is empty or has '..', '/', '\\' or NUL
    """
    if not filename or '..' in filename or '/' in filename or '\\' in filename or '\0' in filename:
        raise InvalidFilenameError('Invalid filename')


class DownloadResolver:
    """
    Args:
        backup_root: Directory holding backup archives
        exports_root: Directory holding one subdirectory per export
    """

    def __init__(self, backup_root: str, exports_root: str):
        self.backup_root = backup_root
        self.exports_root = exports_root

    def resolve(self, filename: str) -> ResolvedDownload:
        """
        Find the file to serve for a requested name.

        Search order: backup root, then each export directory (sorted by name).
        First match wins.

        Raises:
            InvalidFilenameError: Path traversal attempt
            ArtifactNotFoundError: No matching file
        """
        validate_filename(filename)

        candidate = os.path.join(self.backup_root, filename)
        if os.path.isfile(candidate):
            return self._resolved(candidate, filename)

        if os.path.isdir(self.exports_root):
            for entry in sorted(os.listdir(self.exports_root)):
                export_dir = os.path.join(self.exports_root, entry)
                if not os.path.isdir(export_dir):
                    continue
                candidate = os.path.join(export_dir, filename)
                if os.path.isfile(candidate):
                    return self._resolved(candidate, filename)

        raise ArtifactNotFoundError('File not found')

    def _resolved(self, path: str, filename: str) -> ResolvedDownload:
        return ResolvedDownload(
            path=os.path.abspath(path),
            filename=filename,
            content_type=content_type_for(filename),
            size=os.path.getsize(path),
        )
