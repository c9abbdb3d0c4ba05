"""JSON helpers shared by snapshots, exports and the history store."""

import json
import os
import tempfile
from datetime import date, datetime
from decimal import Decimal


def json_default(value):
    """Serialize the non-JSON types a data store hands back."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(path: str, data):
    """Write data as pretty-printed JSON (2-space indent)."""
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, default=json_default)


def write_json_atomic(path: str, data):
    """
    Write JSON to a sibling temp file, then rename it over path.

    A crash mid-write leaves the previous document intact.
    """
    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(prefix='.tmp-', suffix='.json', dir=directory)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=json_default)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise
