"""Homie Sync -- 本地与远端存储的协调层

homie.sync 的公开接口导出。
"""

# 配置
from .config import SyncConfig, load_sync_config

# 异常
from .exceptions import RemoteAuthError, RemoteDecodeError, RemoteError, RemoteUnreachableError

# 远端实现
from .memory_remote import InMemoryRemoteStore
from .protocols import RemoteStore

# 核心组件
from .reconciler import SyncReconciler, SyncStatus
from .records import PersonRecord, TaskRecord
from .rest_client import RestRemoteStore
from .session import HomieSession, build_remote, create_session

__all__ = [
    "TaskRecord",
    "PersonRecord",
    "RemoteStore",
    "RestRemoteStore",
    "InMemoryRemoteStore",
    "SyncReconciler",
    "SyncStatus",
    "HomieSession",
    "create_session",
    "build_remote",
    "SyncConfig",
    "load_sync_config",
    "RemoteError",
    "RemoteUnreachableError",
    "RemoteAuthError",
    "RemoteDecodeError",
]
