"""Store 协作方接口定义

TaskStore 只依赖 SyncSink 这一结构化接口把本地变更向外镜像，
具体实现（SyncReconciler）在 homie.sync 中，构造时显式注入。
"""

from typing import Protocol

from ..models.person import Person
from ..models.task import Task


class SyncSink(Protocol):
    """本地变更的外发通道

    所有方法都必须立即返回（不阻塞调用方），结果不回传给调用方。
    """

    def persist_create_or_update(self, task: Task) -> None:
        """调度任务的远端创建/更新"""
        ...

    def persist_delete(self, task_id: str) -> None:
        """调度任务的远端删除"""
        ...

    def persist_person(self, person: Person) -> None:
        """调度成员的远端创建/更新"""
        ...

    def has_pending(self, object_id: str) -> bool:
        """该 ID 是否仍有未完成的外发写入"""
        ...
