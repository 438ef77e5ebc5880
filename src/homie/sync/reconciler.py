"""SyncReconciler -- 本地与远端的双向协调

外发：Store 的每次变更通过 persist_* 进入有序 outbox，
由后台 asyncio 任务按入队顺序逐条写到远端，调用方不等待结果。

拉取：pull_and_merge() 拉取远端快照并按 ID 合并（远端覆盖本地，
仅本地存在的 ID 保留）。拉取开始后本地有变更、或仍有待发送写入的 ID
以本地为准，不被覆盖。

远端失败只记录日志与 last_sync_error，不自动重试，也不回滚本地状态。
"""

import asyncio
import contextlib
from collections import Counter
from datetime import datetime
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from homie.core.models import MergeResult, Person, Task
from homie.core.store import TaskStore

from .protocols import RemoteStore
from .records import PersonRecord, TaskRecord

log = structlog.get_logger()

OutboxKind = Literal["upsert_task", "delete_task", "upsert_person"]


class OutboxItem(BaseModel):
    """一条待发送的远端写入（持有快照，不引用 Store 内部对象）"""

    kind: OutboxKind
    object_id: str
    task: Task | None = None
    person: Person | None = None


class SyncStatus(BaseModel):
    """同步状态摘要"""

    account_id: str = Field(description="当前账号 ID")
    last_sync_at: datetime | None = Field(default=None, description="最后一次成功拉取时间")
    last_sync_error: str | None = Field(default=None, description="最近一次远端失败描述")
    pending_writes: int = Field(default=0, description="outbox 中待发送的写入数")
    failed_writes: int = Field(default=0, description="累计失败的外发写入数")


class SyncReconciler:
    """本地/远端协调器，实现 SyncSink 接口"""

    def __init__(
        self,
        store: TaskStore,
        remote: RemoteStore,
        *,
        account_id: str | None = None,
        last_sync_at: datetime | None = None,
    ) -> None:
        """
        Args:
            store: 本地任务存储，构造时自动挂接为其 SyncSink
            remote: 远端存储实现
            account_id: 拉取所用账号，默认取 store.account_id
            last_sync_at: 上次成功同步时间（从离线缓存恢复）
        """
        self._store = store
        self._remote = remote
        self._account_id = store.account_id if account_id is None else account_id

        self._outbox: asyncio.Queue[OutboxItem] = asyncio.Queue()
        self._pending: Counter[str] = Counter()
        self._worker: asyncio.Task | None = None
        self._pull_lock = asyncio.Lock()
        self._closed = False

        self.last_sync_at = last_sync_at
        self.last_sync_error: str | None = None
        self.failed_writes = 0

        store.attach_sync(self)

    @property
    def remote(self) -> RemoteStore:
        return self._remote

    @property
    def pending_writes(self) -> int:
        return sum(self._pending.values())

    def has_pending(self, object_id: str) -> bool:
        return self._pending[object_id] > 0

    def status(self) -> SyncStatus:
        return SyncStatus(
            account_id=self._account_id,
            last_sync_at=self.last_sync_at,
            last_sync_error=self.last_sync_error,
            pending_writes=self.pending_writes,
            failed_writes=self.failed_writes,
        )

    # ---- 外发（SyncSink） ----

    def persist_create_or_update(self, task: Task) -> None:
        self._enqueue(OutboxItem(kind="upsert_task", object_id=task.task_id, task=task.model_copy()))

    def persist_delete(self, task_id: str) -> None:
        self._enqueue(OutboxItem(kind="delete_task", object_id=task_id))

    def persist_person(self, person: Person) -> None:
        self._enqueue(
            OutboxItem(kind="upsert_person", object_id=person.person_id, person=person.model_copy())
        )

    def _enqueue(self, item: OutboxItem) -> None:
        if self._closed:
            log.warning("sync_write_after_close", kind=item.kind, object_id=item.object_id)
            return
        self._pending[item.object_id] += 1
        self._outbox.put_nowait(item)
        self._ensure_worker()

    def _ensure_worker(self) -> None:
        """在当前运行中的事件循环上启动 outbox 消费任务

        没有运行中的循环时写入保留在队列中，直到 flush() 被调用。
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            item = await self._outbox.get()
            try:
                await self._send(item)
            except Exception as e:
                self.failed_writes += 1
                self.last_sync_error = f"{item.kind} {item.object_id}: {e}"
                log.warning(
                    "sync_write_failed",
                    kind=item.kind,
                    object_id=item.object_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            finally:
                self._pending[item.object_id] -= 1
                if self._pending[item.object_id] <= 0:
                    del self._pending[item.object_id]
                self._outbox.task_done()

    async def _send(self, item: OutboxItem) -> None:
        if item.kind == "upsert_task" and item.task is not None:
            await self._remote.upsert_task(TaskRecord.from_task(item.task))
        elif item.kind == "delete_task":
            await self._remote.delete_task(item.object_id)
        elif item.kind == "upsert_person" and item.person is not None:
            await self._remote.upsert_person(PersonRecord.from_person(item.person))
        log.debug("sync_write_sent", kind=item.kind, object_id=item.object_id)

    async def flush(self) -> None:
        """等待 outbox 中所有写入发送完毕（成功或失败）"""
        if self._outbox.empty() and not self._pending:
            return
        self._ensure_worker()
        await self._outbox.join()

    async def close(self) -> None:
        """发送剩余写入并停止消费任务"""
        await self.flush()
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    # ---- 拉取 ----

    async def pull_and_merge(self) -> MergeResult | None:
        """拉取远端快照并合并到本地

        Returns:
            任务合并结果；远端失败时返回 None（错误记录在 last_sync_error）
        """
        async with self._pull_lock:
            since = self._store.revision
            log.info("sync_pull_start", account_id=self._account_id, revision=since)
            try:
                task_records = await self._remote.fetch_tasks(self._account_id)
                person_records = await self._remote.fetch_persons(self._account_id)
                tasks = [r.to_task() for r in task_records]
                persons = [r.to_person() for r in person_records]
            except Exception as e:
                self.last_sync_error = f"pull: {e}"
                log.warning(
                    "sync_pull_failed",
                    account_id=self._account_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

            result = self._store.merge_remote_tasks(tasks, since_revision=since)
            self._store.merge_remote_persons(persons, since_revision=since)
            self._store.window.ensure_default_window()

            self.last_sync_at = self._store.now()
            if self.last_sync_error and self.last_sync_error.startswith("pull:"):
                self.last_sync_error = None
            log.info(
                "sync_pull_done",
                account_id=self._account_id,
                remote_tasks=len(tasks),
                remote_persons=len(persons),
                protected=len(result.protected),
            )
            return result
