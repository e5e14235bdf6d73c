"""
Record store port and its SQLAlchemy implementation.
"""

from linkos.store.base import Collection, RecordStore, split_fields, split_lookup
from linkos.store.sql import SQLAlchemyCollection, SQLAlchemyRecordStore


__all__ = [
    "Collection",
    "RecordStore",
    "split_fields",
    "split_lookup",
    "SQLAlchemyCollection",
    "SQLAlchemyRecordStore",
]
