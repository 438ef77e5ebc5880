"""Task Domain Model

根任务（parent_task_id 为空且 repeat_option != never）是周期模板，
实例（parent_task_id 非空）是某一天的具体任务，仅由根任务驱动生成。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from .enums import RepeatOption


def _ensure_aware(value: datetime | None) -> datetime | None:
    """naive datetime 视为 UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式，创建后不可变")
    name: str = Field(description="显示名称")
    due_date: datetime = Field(description="到期时间（带时区）")
    is_completed: bool = Field(default=False, description="是否已完成")
    assigned_to: str | None = Field(default=None, description="负责人 person_id（弱引用）")
    notes: str | None = Field(default=None, description="备注")
    repeat_option: RepeatOption = Field(default=RepeatOption.NEVER, description="周期规则")
    parent_task_id: str | None = Field(default=None, description="生成该实例的根任务 ID")
    owner_id: str = Field(default="", description="所属账号 ID")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="创建时间",
    )

    @field_validator("due_date", "created_at")
    @classmethod
    def _normalize_tz(cls, value: datetime) -> datetime:
        return _ensure_aware(value)

    @property
    def is_recurrence_root(self) -> bool:
        """是否为周期根任务"""
        return self.parent_task_id is None and self.repeat_option.is_repeating

    @property
    def is_occurrence(self) -> bool:
        """是否为生成的实例"""
        return self.parent_task_id is not None


class TaskPatch(BaseModel):
    """Task 部分更新

    只应用显式设置过的字段（model_fields_set），
    显式传入 assigned_to=None / notes=None 表示清空。
    """

    name: str | None = None
    due_date: datetime | None = None
    is_completed: bool | None = None
    assigned_to: str | None = None
    notes: str | None = None
    repeat_option: RepeatOption | None = None

    @field_validator("due_date")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return _ensure_aware(value)

    def changes(self) -> dict:
        """返回显式设置的字段；name/due_date/is_completed/repeat_option 不接受 None"""
        fields = self.model_dump(exclude_unset=True)
        for key in ("name", "due_date", "is_completed", "repeat_option"):
            if key in fields and fields[key] is None:
                del fields[key]
        return fields
