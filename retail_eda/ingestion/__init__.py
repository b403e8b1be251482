"""
Snapshot Ingestion Module
"""
from .loader import SnapshotFormat, load_snapshot, write_snapshot

__all__ = [
    "SnapshotFormat",
    "load_snapshot",
    "write_snapshot",
]
