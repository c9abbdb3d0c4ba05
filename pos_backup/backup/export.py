"""
Ad-hoc data exports.

An export reads one collection from the data store, narrows it by date
range, exact-match filters and a field projection (in that order), and
writes it as JSON or CSV into its own directory under <root>/exports/.
Exports do not take the backup guard: they only read the data store and
every export writes to a freshly created directory.
"""

import csv
import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pos_backup.datastore import Repository, Record
from pos_backup.models import ExportOptions, parse_timestamp, utcnow
from pos_backup.utils.serialization import json_default, write_json


logger = logging.getLogger(__name__)

_MISSING = object()


class ExportError(Exception):
    """Raised when an export cannot be produced."""
    pass


class UnsupportedCollectionError(ExportError):
    """Raised for a collection that cannot be exported."""
    pass


class UnsupportedFormatError(ExportError):
    """Raised for an export format other than json or csv."""
    pass


def _inventory_view(products: List[Record]) -> List[Record]:
    return [
        {
            'id': product.get('id'),
            'name': product.get('name'),
            'category': product.get('category'),
            'currentStock': product.get('quantity'),
            'barcode': product.get('barcode'),
            'cost': product.get('cost'),
            'price': product.get('price'),
            'supplierId': product.get('supplierId'),
            'minStockLevel': product.get('minStockLevel'),
        }
        for product in products
    ]


@dataclass(frozen=True)
class ExportCollection:
    name: str
    display_name: str
    description: str
    source: str
    date_field: Optional[str] = None
    transform: Optional[Callable[[List[Record]], List[Record]]] = None

    def to_dict(self) -> Dict[str, str]:
        return {
            'name': self.name,
            'displayName': self.display_name,
            'description': self.description,
        }


EXPORT_COLLECTIONS = {
    'products': ExportCollection('products', 'Products', 'Product inventory data', source='products'),
    'sales': ExportCollection(
        'sales', 'Sales', 'Sales transaction data', source='sales', date_field='createdAt'
    ),
    'customers': ExportCollection(
        'customers', 'Customers', 'Customer records', source='customers', date_field='createdAt'
    ),
    'inventory': ExportCollection(
        'inventory', 'Inventory Report', 'Current inventory status',
        source='products', transform=_inventory_view
    ),
}

EXPORT_FORMATS = {
    'json': {'value': 'json', 'label': 'JSON', 'description': 'JavaScript Object Notation'},
    'csv': {'value': 'csv', 'label': 'CSV', 'description': 'Comma Separated Values'},
}


class ExportEngine:
    """
    Filtered, projected exports of a single collection.

    Args:
        repository: Data store to read from
        exports_root: Directory export directories are created in
    """

    def __init__(self, repository: Repository, exports_root: str):
        self.repository = repository
        self.exports_root = exports_root

    def list_collections(self) -> List[Dict[str, str]]:
        return [collection.to_dict() for collection in EXPORT_COLLECTIONS.values()]

    def list_formats(self) -> List[Dict[str, str]]:
        return list(EXPORT_FORMATS.values())

    def export(self, options: ExportOptions) -> str:
        """
        Export a collection to a file.

        Args:
            options: Collection, format, and optional dateRange/filters/fields

        Returns:
            Absolute path of the written file

        Raises:
            UnsupportedCollectionError: Unknown collection (nothing written)
            UnsupportedFormatError: Unknown format (nothing written)
            ExportError: If the data cannot be read or written
        """
        collection = EXPORT_COLLECTIONS.get(options.collection)
        if collection is None:
            raise UnsupportedCollectionError(f"Unsupported collection: {options.collection}")
        if options.format not in EXPORT_FORMATS:
            raise UnsupportedFormatError(f"Unsupported format: {options.format}")

        logger.info(f"Starting data export: {options.collection}")

        try:
            records = self.repository.read_all(collection.source)
        except KeyError as e:
            raise ExportError(f"Collection not available in data store: {collection.source}") from e

        records = self.select_records(collection, records, options)

        export_dir = self._create_export_dir(collection.name)
        file_path = os.path.join(export_dir, f"{collection.name}.{options.format}")

        try:
            if options.format == 'json':
                write_json(file_path, records)
            else:
                write_csv(file_path, records, options.fields)
        except Exception as e:
            shutil.rmtree(export_dir, ignore_errors=True)
            logger.error(f"Data export failed: {e}")
            raise ExportError(f"Failed to write export: {e}") from e

        logger.info(f"Data export completed: {file_path} ({len(records)} records)")
        return os.path.abspath(file_path)

    def select_records(self, collection: ExportCollection, records: List[Record],
                       options: ExportOptions) -> List[Record]:
        """Apply transform, date range, filters and projection, in that order."""
        if collection.transform:
            records = collection.transform(records)

        if options.date_range and collection.date_field:
            records = [
                record for record in records
                if _in_range(record.get(collection.date_field), options.date_range)
            ]

        if options.filters:
            records = [
                record for record in records
                if all(record.get(key, _MISSING) == value for key, value in options.filters.items())
            ]

        if options.fields:
            records = [{name: record.get(name) for name in options.fields} for record in records]

        return records

    def _create_export_dir(self, collection_name: str) -> str:
        os.makedirs(self.exports_root, exist_ok=True)
        stamp = utcnow().strftime('%Y%m%dT%H%M%S%f')
        # mkdtemp guarantees a fresh directory even for concurrent exports
        return tempfile.mkdtemp(prefix=f"{collection_name}_{stamp}_", dir=self.exports_root)


def _in_range(value, date_range) -> bool:
    if value is None:
        return False
    try:
        moment = parse_timestamp(value)
    except ValueError:
        return False
    return date_range.contains(moment)


def _csv_value(value):
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(',', ':'), default=json_default)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def write_csv(file_path: str, records: List[Record], fields: Optional[List[str]] = None):
    """
    Write records as CSV.

    The header comes from fields when given, otherwise from the keys of the
    first record; every row follows that column order. Values containing the
    delimiter or quotes are quoted, missing values are written empty.
    """
    with open(file_path, 'w', encoding='utf-8', newline='') as f:
        if not records and not fields:
            return

        headers = list(fields) if fields else list(records[0].keys())
        writer = csv.writer(f, lineterminator='\n')
        writer.writerow(headers)
        for record in records:
            writer.writerow([_csv_value(record.get(header)) for header in headers])
