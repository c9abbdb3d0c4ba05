"""
Checksum calculation for backup artifacts.

Files are hashed in fixed-size chunks so multi-gigabyte archives never
have to fit in memory.
"""

import hashlib
from pathlib import Path


class ChecksumError(Exception):
    """Raised when an artifact cannot be hashed."""
    pass


class ChecksumCalculator:
    """
    Streaming content hash of a file or directory tree.

    Args:
        algorithm: Any hashlib algorithm name (default: sha256)
        chunk_size: Read size in bytes (default: 1MB)
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, algorithm: str = 'sha256', chunk_size: int = CHUNK_SIZE):
        if algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported checksum algorithm: {algorithm}")
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    def checksum(self, path: str) -> str:
        """
        Compute the hex digest of a file.

        A directory (uncompressed backup) is hashed as the sorted sequence of
        its relative file paths and their contents.

        Args:
            path: File or directory to hash

        Returns:
            Hex-encoded digest

        Raises:
            ChecksumError: If the path is missing or unreadable
        """
        target = Path(path)
        digest = hashlib.new(self.algorithm)

        try:
            if target.is_dir():
                for file_path in sorted(p for p in target.rglob('*') if p.is_file()):
                    relative = file_path.relative_to(target).as_posix()
                    digest.update(relative.encode('utf-8'))
                    digest.update(b'\0')
                    self._update_from_file(digest, file_path)
            elif target.is_file():
                self._update_from_file(digest, target)
            else:
                raise ChecksumError(f"Path not found: {path}")
        except ChecksumError:
            raise
        except OSError as e:
            raise ChecksumError(f"Failed to checksum {path}: {e}") from e

        return digest.hexdigest()

    def _update_from_file(self, digest, file_path: Path):
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(self.chunk_size), b''):
                digest.update(chunk)


def calculate_checksum(path: str) -> str:
    """SHA-256 hex digest of a file or directory."""
    return ChecksumCalculator().checksum(path)
