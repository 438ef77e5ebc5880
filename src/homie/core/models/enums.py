"""枚举定义

包含 RepeatOption 周期规则和 ChangeKind 变更类型。
"""

from enum import StrEnum


class RepeatOption(StrEnum):
    """周期规则 -- 固定步长，不支持更复杂的 RRULE"""

    NEVER = "never"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def from_wire(cls, raw: object) -> "RepeatOption":
        """远端值解析，缺失或未知值视为 never"""
        if not raw:
            return cls.NEVER
        try:
            return cls(str(raw).lower())
        except ValueError:
            return cls.NEVER

    @property
    def is_repeating(self) -> bool:
        return self is not RepeatOption.NEVER


class ChangeKind(StrEnum):
    """Store 变更类型（用于变更通知）"""

    TASK_ADDED = "TASK_ADDED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    OCCURRENCES_GENERATED = "OCCURRENCES_GENERATED"
    PERSON_ADDED = "PERSON_ADDED"
    REMOTE_MERGED = "REMOTE_MERGED"
    SNAPSHOT_LOADED = "SNAPSHOT_LOADED"
