"""
Persistence: record-store protocol, stores and the best-effort writer.

Core modules:
- records: Plain records exchanged with the store
- store: RecordStore protocol and InMemoryRecordStore
- sql_store: SQLAlchemy-backed SqlRecordStore
- writer: PersistenceWriter ("attempt, log failure, continue")
"""

from .records import ChildProfile, QuestionResponseRecord, SessionTotals
from .sql_store import SqlRecordStore
from .store import InMemoryRecordStore, RecordStore
from .writer import PersistenceWriter, WriteResult

__all__ = [
    "ChildProfile",
    "QuestionResponseRecord",
    "SessionTotals",
    "SqlRecordStore",
    "InMemoryRecordStore",
    "RecordStore",
    "PersistenceWriter",
    "WriteResult",
]
