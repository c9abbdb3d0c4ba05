"""
Archive builder for backup staging directories.

Supported formats:
- tar.gz: Gzip compressed tar (default)
- tar.bz2: Bzip2 compressed tar
- tar.xz: LZMA compressed tar

Members are stored relative to the staging directory, so an archive never
carries the absolute path of the machine that produced it. tarfile copies
each member in blocks, so file contents are streamed rather than buffered.
"""

import logging
import os
import tarfile
from pathlib import Path


logger = logging.getLogger(__name__)

FORMAT_MODES = {
    'tar.gz': 'w:gz',
    'tar.bz2': 'w:bz2',
    'tar.xz': 'w:xz',
}


class ArchiveError(Exception):
    """Raised when archive creation fails."""
    pass


class ArchiveBuilder:
    """
    Builds compressed archives into a fixed output directory.

    Args:
        output_dir: Directory archives are written to (the backup root)
        compression_format: One of FORMAT_MODES
    """

    def __init__(self, output_dir: str, compression_format: str = 'tar.gz'):
        if compression_format not in FORMAT_MODES:
            raise ValueError(
                f"Invalid compression format: {compression_format}. "
                f"Valid options: {list(FORMAT_MODES.keys())}"
            )
        self.output_dir = output_dir
        self.compression_format = compression_format

    def archive_name(self, base_name: str) -> str:
        """File name of the archive for a backup id."""
        return f"{base_name}.{self.compression_format}"

    def build(self, source_dir: str, archive_name: str) -> str:
        """
        Archive the full contents of source_dir.

        Args:
            source_dir: Directory whose contents go into the archive
            archive_name: File name of the archive inside output_dir

        Returns:
            Full path to the created archive file

        Raises:
            ArchiveError: If the source is missing or any I/O fails
        """
        source = Path(source_dir)
        if not source.is_dir():
            raise ArchiveError(f"Source directory does not exist: {source_dir}")

        archive_path = os.path.join(self.output_dir, archive_name)
        mode = FORMAT_MODES[self.compression_format]

        try:
            os.makedirs(self.output_dir, exist_ok=True)
            with tarfile.open(archive_path, mode) as tar:
                # Children are added one by one so the staging directory name
                # itself does not become a top-level member
                for child in sorted(source.iterdir()):
                    tar.add(str(child), arcname=child.name, recursive=True)
        except Exception as e:
            # Clean up partial archive on failure
            if os.path.exists(archive_path):
                try:
                    os.remove(archive_path)
                except OSError as cleanup_error:
                    logger.warning(f"Failed to remove partial archive {archive_path}: {cleanup_error}")
            raise ArchiveError(f"Failed to create archive: {e}") from e

        bytes_written = get_archive_size(archive_path)
        logger.info(f"Archive created: {archive_path} ({bytes_written} bytes)")
        return archive_path


def get_archive_size(archive_path: str) -> int:
    """
    Get the size of a backup artifact in bytes.

    For an uncompressed backup (a directory) this is the total size of
    every file beneath it.

    Args:
        archive_path: Path to the archive file or backup directory

    Returns:
        Size in bytes

    Raises:
        ArchiveError: If the artifact doesn't exist or cannot be accessed
    """
    try:
        if os.path.isdir(archive_path):
            return sum(p.stat().st_size for p in Path(archive_path).rglob('*') if p.is_file())
        return os.path.getsize(archive_path)
    except FileNotFoundError as e:
        raise ArchiveError(f"Archive not found: {archive_path}") from e
    except OSError as e:
        raise ArchiveError(f"Failed to get archive size: {e}") from e
