"""
Data model for backup runs and exports.

BackupMetadata records are immutable: a run builds a pending record and
replaces it with a terminal copy, it never edits one in place.
"""

from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


STATUS_PENDING = 'pending'
STATUS_COMPLETED = 'completed'
STATUS_FAILED = 'failed'

BACKUP_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_FAILED)
BACKUP_TYPES = ('full', 'database', 'files', 'export')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime:
    """
    Parse an ISO-8601 string (or datetime) into an aware UTC datetime.

    Naive values are taken to be UTC. A trailing 'Z' is accepted.

    Raises:
        ValueError: If value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class BackupMetadata:
    """One backup attempt and its outcome."""

    id: str
    timestamp: datetime
    type: str = 'full'
    size: int = 0
    path: str = ''
    checksum: str = ''
    collections: Optional[List[str]] = None
    status: str = STATUS_PENDING
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (STATUS_COMPLETED, STATUS_FAILED)

    def completed(self, path: str, size: int, checksum: str,
                  collections: Optional[List[str]] = None) -> 'BackupMetadata':
        """Return the completed copy of a pending record."""
        if self.is_terminal:
            raise ValueError(f"Backup {self.id} is already {self.status}")
        return replace(
            self,
            path=path,
            size=size,
            checksum=checksum,
            collections=collections,
            status=STATUS_COMPLETED,
        )

    def failed(self, error: str, collections: Optional[List[str]] = None) -> 'BackupMetadata':
        """Return the failed copy of a pending record."""
        if self.is_terminal:
            raise ValueError(f"Backup {self.id} is already {self.status}")
        return replace(
            self,
            collections=collections if collections is not None else self.collections,
            status=STATUS_FAILED,
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        if data['collections'] is None:
            del data['collections']
        if data['error'] is None:
            del data['error']
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BackupMetadata':
        return cls(
            id=data['id'],
            timestamp=parse_timestamp(data['timestamp']),
            type=data.get('type', 'full'),
            size=int(data.get('size') or 0),
            path=data.get('path') or '',
            checksum=data.get('checksum') or '',
            collections=data.get('collections'),
            status=data.get('status', STATUS_PENDING),
            error=data.get('error'),
        )


@dataclass
class BackupOptions:
    """What a full backup run includes."""

    include_database: bool = True
    include_uploads: bool = True
    include_logs: bool = False
    compress: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'BackupOptions':
        """
        Build options from a request payload.

        Accepts camelCase keys (includeDatabase, includeUploads, includeLogs,
        compress / compression). Anything not given keeps its default.
        """
        data = data or {}
        compress = data.get('compress', data.get('compression', True))
        return cls(
            include_database=data.get('includeDatabase', True) is not False,
            include_uploads=data.get('includeUploads', True) is not False,
            include_logs=bool(data.get('includeLogs', False)),
            compress=compress is not False,
        )


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, 'start', parse_timestamp(self.start))
        object.__setattr__(self, 'end', parse_timestamp(self.end))

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass
class ExportOptions:
    """Input to one export: which collection, which format, which records and fields."""

    collection: str
    format: str
    date_range: Optional[DateRange] = None
    filters: Optional[Dict[str, Any]] = None
    fields: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExportOptions':
        """
        Build options from a request payload.

        Raises:
            ValueError: If dateRange, filters or fields are malformed
        """
        date_range = None
        raw_range = data.get('dateRange')
        if raw_range:
            try:
                date_range = DateRange(
                    start=parse_timestamp(raw_range['start']),
                    end=parse_timestamp(raw_range['end']),
                )
            except (KeyError, TypeError) as e:
                raise ValueError(f"Invalid dateRange: {e}")

        filters = data.get('filters') or None
        if filters is not None and not isinstance(filters, dict):
            raise ValueError("Invalid filters: expected an object of field values")

        fields = data.get('fields') or None
        if fields is not None and (
            not isinstance(fields, list) or not all(isinstance(name, str) for name in fields)
        ):
            raise ValueError("Invalid fields: expected a list of field names")

        return cls(
            collection=data.get('collection'),
            format=data.get('format'),
            date_range=date_range,
            filters=filters,
            fields=fields,
        )


@dataclass
class BackupStatus:
    is_running: bool
    last_backup: Optional[BackupMetadata] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isRunning': self.is_running,
            'lastBackup': self.last_backup.to_dict() if self.last_backup else None,
        }
