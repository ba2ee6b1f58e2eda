"""Document store contract and backends."""
from .base import SERVER_TIMESTAMP, DocumentStore, Subscription, WriteBatch
from .memory import InMemoryDocumentStore
from .query import DocumentSnapshot, Filter, QuerySnapshot, where
from .sql import SqlDocumentStore

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentStore",
    "Subscription",
    "WriteBatch",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "DocumentSnapshot",
    "Filter",
    "QuerySnapshot",
    "where",
]
