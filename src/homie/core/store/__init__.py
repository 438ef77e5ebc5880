"""Homie Core Store -- 内存任务存储与离线缓存"""

from .offline_cache import META_LAST_SYNC_AT, OfflineCache
from .protocols import SyncSink
from .sqlite_init import init_db, verify_wal_mode
from .task_store import TaskStore
from .window import WindowMaintainer

__all__ = [
    "TaskStore",
    "WindowMaintainer",
    "SyncSink",
    "OfflineCache",
    "META_LAST_SYNC_AT",
    "init_db",
    "verify_wal_mode",
]
