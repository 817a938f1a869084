"""
==============================================================================
Scan Engine Package - Offline-Resilient Lookup and Sync
==============================================================================

Client-side engine that answers "is this barcode halal?" from a local cache
or the registry, and keeps working while the registry is unreachable.

Architecture:
------------
    scan ─▶ ScanDebouncer ─▶ LookupResolver ─▶ LocalProductCache
                                   │                  ▲
                                   ▼                  │
                             RegistryClient ◀── ProductSubmitter ─▶ PendingWriteQueue
                                   ▲                                      │
                                   └──────────── SyncReconciler ◀─────────┘

ScanSession wires these together for a UI; ConnectivityState carries the
online/offline belief they share.

==============================================================================
"""

from .cache import LocalProductCache
from .connectivity import ConnectivityState, ConnectivityStatus
from .debouncer import DebounceState, ScanDebouncer
from .pending_queue import PendingWriteQueue
from .reconciler import ConnectivityProbe, SyncReconciler
from .remote import RegistryClient
from .resolver import LookupResolver, ResolverState
from .session import ReconnectTaskManager, ScanSession
from .storage import JsonFileStore
from .submitter import ProductSubmitter, build_record

__all__ = [
    "JsonFileStore",
    "LocalProductCache",
    "PendingWriteQueue",
    "ConnectivityState",
    "ConnectivityStatus",
    "ScanDebouncer",
    "DebounceState",
    "RegistryClient",
    "LookupResolver",
    "ResolverState",
    "ProductSubmitter",
    "build_record",
    "SyncReconciler",
    "ConnectivityProbe",
    "ScanSession",
    "ReconnectTaskManager",
]
