"""
Data-store collaborators for snapshots and exports.

The backup core only needs to enumerate collections and read every record
of one collection. Two implementations:
- InMemoryRepository: named lists of records held in process
- SQLRepository: any SQLAlchemy database, one table per collection
"""

import copy
import logging
import threading
from typing import Dict, List, Any, Iterable, Optional

from sqlalchemy import create_engine, inspect, select, MetaData, Table


logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class Repository:
    """Read-only view of the data store used by the backup core."""

    def list_collection_names(self) -> List[str]:
        raise NotImplementedError

    def read_all(self, collection: str) -> List[Record]:
        """
        Read every record of a collection, in storage order.

        Raises:
            KeyError: If the collection does not exist
        """
        raise NotImplementedError


class InMemoryRepository(Repository):
    """
    Collections held as lists of dicts.

    Reads return deep copies, so a snapshot or export can never mutate
    what the rest of the application sees.
    """

    def __init__(self, collections: Optional[Dict[str, Iterable[Record]]] = None):
        self._lock = threading.Lock()
        self._collections = {
            name: [dict(record) for record in records]
            for name, records in (collections or {}).items()
        }

    def list_collection_names(self) -> List[str]:
        with self._lock:
            return list(self._collections.keys())

    def read_all(self, collection: str) -> List[Record]:
        with self._lock:
            if collection not in self._collections:
                raise KeyError(f"Unknown collection: {collection}")
            return copy.deepcopy(self._collections[collection])


class SQLRepository(Repository):
    """
    Tables of a SQL database exposed as collections.

    Table structure is reflected on each read, so schema changes made by the
    owning application are picked up without restarting.
    """

    def __init__(self, url: str, engine=None):
        self.url = url
        self.engine = engine or create_engine(url)

    def list_collection_names(self) -> List[str]:
        return inspect(self.engine).get_table_names()

    def read_all(self, collection: str) -> List[Record]:
        if collection not in self.list_collection_names():
            raise KeyError(f"Unknown collection: {collection}")

        table = Table(collection, MetaData(), autoload_with=self.engine)
        with self.engine.connect() as connection:
            rows = connection.execute(select(table)).fetchall()

        logger.debug(f"Read {len(rows)} rows from table {collection}")
        return [dict(row._mapping) for row in rows]


def create_repository(url: Optional[str] = None, seed: Optional[Dict[str, List[Record]]] = None) -> Repository:
    """
    Factory function to create the configured repository.

    Args:
        url: SQLAlchemy database URL, or None for the in-memory store
        seed: Initial collections for the in-memory store

    Returns:
        SQLRepository or InMemoryRepository instance
    """
    if url:
        logger.info("Using SQL data store for backups and exports")
        return SQLRepository(url)
    return InMemoryRepository(seed or {})
