"""RemoteStore 接口定义

SyncReconciler 只依赖该结构化接口，具体实现在构造时显式注入：
- RestRemoteStore: PostgREST 风格 HTTP 后端
- InMemoryRemoteStore: 进程内远端（离线/演示模式与测试）
"""

from typing import Protocol

from .records import PersonRecord, TaskRecord


class RemoteStore(Protocol):
    """权威远端存储

    所有方法均为异步，失败时抛出 RemoteError 子类。
    """

    async def fetch_tasks(self, account_id: str) -> list[TaskRecord]:
        """拉取账号下的全部任务"""
        ...

    async def upsert_task(self, record: TaskRecord) -> None:
        """按 ID 创建或覆盖任务"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """按 ID 删除任务（不存在时视为成功）"""
        ...

    async def fetch_persons(self, account_id: str) -> list[PersonRecord]:
        """拉取账号下的全部成员"""
        ...

    async def upsert_person(self, record: PersonRecord) -> None:
        """按 ID 创建或覆盖成员"""
        ...

    async def health_check(self) -> bool:
        """远端可达性检查，不抛出异常"""
        ...
