"""InMemoryRemoteStore -- 进程内远端

离线/演示模式下充当权威远端，也用作测试替身。
保存线上格式的深拷贝，调用方后续修改不会影响已写入的数据。
"""

from collections import deque

import structlog

from .records import PersonRecord, TaskRecord

log = structlog.get_logger()

# 调用记录保留的最近条数
CALL_LOG_SIZE = 256


class InMemoryRemoteStore:
    """RemoteStore 的内存实现"""

    def __init__(
        self,
        tasks: list[TaskRecord] | None = None,
        persons: list[PersonRecord] | None = None,
        call_log_size: int = CALL_LOG_SIZE,
    ) -> None:
        """
        Args:
            tasks: 初始任务记录
            persons: 初始成员记录
            call_log_size: calls 保留的最近调用条数
        """
        self.tasks: dict[str, TaskRecord] = {}
        self.persons: dict[str, PersonRecord] = {}
        for record in tasks or []:
            self.tasks[record.id] = record.model_copy(deep=True)
        for record in persons or []:
            self.persons[record.id] = record.model_copy(deep=True)
        self.calls: deque[tuple[str, str]] = deque(maxlen=call_log_size)

    async def fetch_tasks(self, account_id: str) -> list[TaskRecord]:
        self.calls.append(("fetch_tasks", account_id))
        return [
            r.model_copy(deep=True)
            for r in self.tasks.values()
            if not account_id or r.owner_id == account_id
        ]

    async def upsert_task(self, record: TaskRecord) -> None:
        self.calls.append(("upsert_task", record.id))
        self.tasks[record.id] = record.model_copy(deep=True)

    async def delete_task(self, task_id: str) -> None:
        self.calls.append(("delete_task", task_id))
        self.tasks.pop(task_id, None)

    async def fetch_persons(self, account_id: str) -> list[PersonRecord]:
        self.calls.append(("fetch_persons", account_id))
        return [
            r.model_copy(deep=True)
            for r in self.persons.values()
            if not account_id or r.owner_id == account_id
        ]

    async def upsert_person(self, record: PersonRecord) -> None:
        self.calls.append(("upsert_person", record.id))
        self.persons[record.id] = record.model_copy(deep=True)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        log.debug("memory_remote_closed", task_count=len(self.tasks))
