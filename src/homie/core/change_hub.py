"""ChangeHub -- 内存中变更广播器

Store 每次 mutation / 合并后发布 StoreChange。
两种订阅方式：
- subscribe(): 获取 asyncio.Queue（SSE 等异步消费者）
- add_listener(): 注册同步回调
"""

import asyncio
from collections.abc import Callable

import structlog

from .models.change import StoreChange

log = structlog.get_logger()

ChangeListener = Callable[[StoreChange], None]


class ChangeHub:
    """变更广播器 -- 基于 asyncio.Queue 的发布/订阅模式"""

    def __init__(self, queue_maxsize: int = 100) -> None:
        self._queues: set[asyncio.Queue] = set()
        self._listeners: list[ChangeListener] = []
        self._queue_maxsize = queue_maxsize

    def subscribe(self) -> asyncio.Queue:
        """订阅变更流

        Returns:
            asyncio.Queue 实例，新变更会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._queues.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        """取消订阅"""
        self._queues.discard(queue)

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """注册同步回调

        Returns:
            取消注册函数
        """
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    @property
    def subscriber_count(self) -> int:
        return len(self._queues) + len(self._listeners)

    def publish(self, change: StoreChange) -> None:
        """向所有订阅者广播变更

        回调异常只记录日志，不影响 Store 调用方。
        队列已满的订阅者被移除。
        """
        dead_queues = []
        for queue in self._queues:
            try:
                queue.put_nowait(change)
            except asyncio.QueueFull:
                dead_queues.append(queue)

        for q in dead_queues:
            self._queues.discard(q)

        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                log.exception("change_listener_failed", kind=change.kind)
