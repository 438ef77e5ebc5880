"""Homie Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .change import MergeResult, StoreChange
from .enums import ChangeKind, RepeatOption
from .person import DEFAULT_PERSON_ICON, Person
from .task import Task, TaskPatch

__all__ = [
    # 枚举
    "RepeatOption",
    "ChangeKind",
    # Task
    "Task",
    "TaskPatch",
    # Person
    "Person",
    "DEFAULT_PERSON_ICON",
    # 变更通知
    "StoreChange",
    "MergeResult",
]
