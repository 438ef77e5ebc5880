"""HomieSession -- 一次运行会话的组件组

TaskStore + OfflineCache + RemoteStore + SyncReconciler 共同组成一个会话，
由 create_session() 统一装配：先用离线缓存恢复本地状态，
再由调用方决定何时拉取远端。
"""

from collections.abc import Callable
from datetime import datetime, tzinfo

import structlog

from homie.core.config import get_db_path
from homie.core.models import MergeResult
from homie.core.store import OfflineCache, TaskStore

from .config import SyncConfig, load_sync_config
from .memory_remote import InMemoryRemoteStore
from .protocols import RemoteStore
from .reconciler import SyncReconciler
from .rest_client import RestRemoteStore

log = structlog.get_logger()


def build_remote(config: SyncConfig) -> RemoteStore:
    """按同步模式构造远端实现"""
    if config.sync_mode == "rest":
        return RestRemoteStore(
            base_url=config.remote_base_url,
            api_key=config.remote_api_key.get_secret_value(),
            timeout_s=config.timeout_s,
        )
    return InMemoryRemoteStore()


class HomieSession:
    """会话组件组"""

    def __init__(
        self,
        store: TaskStore,
        cache: OfflineCache,
        remote: RemoteStore,
        reconciler: SyncReconciler,
        config: SyncConfig,
    ) -> None:
        self.store = store
        self.cache = cache
        self.remote = remote
        self.reconciler = reconciler
        self.config = config

    async def sync(self) -> MergeResult | None:
        """拉取并合并远端快照，成功后写回离线缓存"""
        result = await self.reconciler.pull_and_merge()
        if result is not None:
            await self.save()
        return result

    async def save(self) -> None:
        """把当前本地状态写入离线缓存"""
        await self.cache.save_snapshot(self.store.list_tasks(), self.store.list_persons())
        if self.reconciler.last_sync_at is not None:
            await self.cache.set_last_sync_at(self.reconciler.last_sync_at)

    async def close(self) -> None:
        """发送剩余写入、保存快照并释放连接"""
        try:
            await self.reconciler.close()
            await self.save()
        finally:
            close = getattr(self.remote, "close", None)
            if close is not None:
                await close()
            await self.cache.close()
        log.info("session_closed", account_id=self.config.account_id)


async def create_session(
    config: SyncConfig | None = None,
    *,
    db_path: str | None = None,
    remote: RemoteStore | None = None,
    clock: Callable[[], datetime] | None = None,
    tz: tzinfo | None = None,
) -> HomieSession:
    """创建会话

    Args:
        config: 同步配置，默认从环境变量加载
        db_path: 离线缓存路径，默认 get_db_path()
        remote: 远端实现，默认按 config.sync_mode 构造
        clock: Store 时钟
        tz: 日历时区

    Returns:
        已从离线缓存恢复状态的 HomieSession
    """
    config = config or load_sync_config()
    cache = await OfflineCache.open(db_path or get_db_path())

    store = TaskStore(account_id=config.account_id, clock=clock, tz=tz)
    tasks, persons = await cache.load_snapshot()
    store.load_snapshot(tasks, persons)

    if remote is None:
        remote = build_remote(config)
    reconciler = SyncReconciler(
        store,
        remote,
        account_id=config.account_id,
        last_sync_at=await cache.get_last_sync_at(),
    )
    store.window.ensure_default_window()

    log.info(
        "session_created",
        account_id=config.account_id,
        sync_mode=config.sync_mode,
        cached_tasks=len(tasks),
        cached_persons=len(persons),
    )
    return HomieSession(store, cache, remote, reconciler, config)
