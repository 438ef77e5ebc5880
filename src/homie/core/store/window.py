"""WindowMaintainer -- 查询前的窗口补齐策略

每次范围查询前，保证所有周期根任务的实例已生成到查询范围末端。
生成只从今天零点开始，过去的日期不会被回填。
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from ..config import DEFAULT_WINDOW_DAYS
from ..generator import generate_occurrences
from ..models.enums import ChangeKind
from ..models.task import Task
from ..recurrence import start_of_day

if TYPE_CHECKING:
    from .task_store import TaskStore

log = structlog.get_logger()


class WindowMaintainer:
    """周期实例窗口维护"""

    def __init__(self, store: "TaskStore") -> None:
        self._store = store

    def ensure_occurrences_through(self, horizon: datetime) -> list[Task]:
        """为每个周期根任务生成 horizon 之前缺失的实例

        新实例写入 Store 并调度远端同步，整批只发送一次变更通知。

        Returns:
            本次新生成的实例
        """
        store = self._store
        not_before = store.start_of_today()
        if horizon <= not_before:
            return []

        now = store.now()
        generated: list[Task] = []
        for root in store.roots():
            generated += generate_occurrences(
                root,
                store.occurrences_of(root.task_id),
                horizon=horizon,
                not_before=not_before,
                tz=store.tz,
                created_at=now,
            )

        if generated:
            store.insert_occurrences(generated)
            log.debug(
                "window_topped_up",
                horizon=horizon.isoformat(),
                generated=len(generated),
            )
            store.notify(ChangeKind.OCCURRENCES_GENERATED, [t.task_id for t in generated])
        return generated

    def ensure_default_window(self) -> list[Task]:
        """补齐默认窗口（今天起 DEFAULT_WINDOW_DAYS 天）"""
        store = self._store
        horizon = start_of_day(store.today() + timedelta(days=DEFAULT_WINDOW_DAYS + 1), store.tz)
        return self.ensure_occurrences_through(horizon)
