"""远端线上格式（wire records）

TaskRecord / PersonRecord 使用 camelCase 字段名，日期为 ISO-8601 字符串。
与领域模型互转；畸形记录抛出 RemoteDecodeError。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from homie.core.models import DEFAULT_PERSON_ICON, Person, RepeatOption, Task

from .exceptions import RemoteDecodeError


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TaskRecord(BaseModel):
    """任务的线上格式"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    owner_id: str = Field(default="", alias="ownerId")
    name: str
    due_date: datetime = Field(alias="dueDate")
    is_completed: bool = Field(default=False, alias="isCompleted")
    assigned_to: str | None = Field(default=None, alias="assignedTo")
    notes: str | None = None
    repeat_option: RepeatOption = Field(default=RepeatOption.NEVER, alias="repeatOption")
    parent_task_id: str | None = Field(default=None, alias="parentTaskId")
    created_at: datetime | None = Field(default=None, alias="createdAt")

    @field_validator("repeat_option", mode="before")
    @classmethod
    def _decode_repeat(cls, value: Any) -> RepeatOption:
        # 未知取值按 never 处理
        return RepeatOption.from_wire(value)

    @field_validator("assigned_to", "parent_task_id", mode="before")
    @classmethod
    def _decode_reference(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("owner_id", mode="before")
    @classmethod
    def _decode_owner(cls, value: Any) -> Any:
        return value or ""

    @classmethod
    def from_wire(cls, data: Any) -> "TaskRecord":
        """解析远端返回的单条记录

        Raises:
            RemoteDecodeError: 记录缺少必填字段或类型错误
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise RemoteDecodeError(f"任务记录解析失败: {e.error_count()} 个字段错误") from e

    @classmethod
    def from_task(cls, task: Task) -> "TaskRecord":
        return cls(
            id=task.task_id,
            owner_id=task.owner_id,
            name=task.name,
            due_date=task.due_date,
            is_completed=task.is_completed,
            assigned_to=task.assigned_to,
            notes=task.notes,
            repeat_option=task.repeat_option,
            parent_task_id=task.parent_task_id,
            created_at=task.created_at,
        )

    def to_task(self) -> Task:
        kwargs: dict = {}
        if self.created_at is not None:
            kwargs["created_at"] = self.created_at
        return Task(
            task_id=self.id,
            name=self.name,
            due_date=self.due_date,
            is_completed=self.is_completed,
            assigned_to=self.assigned_to,
            notes=self.notes,
            repeat_option=self.repeat_option,
            parent_task_id=self.parent_task_id,
            owner_id=self.owner_id,
            **kwargs,
        )

    def to_wire(self) -> dict[str, Any]:
        """camelCase 字段名 + ISO-8601 日期"""
        return self.model_dump(mode="json", by_alias=True)


class PersonRecord(BaseModel):
    """成员的线上格式"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    owner_id: str = Field(default="", alias="ownerId")
    name: str
    icon: str = DEFAULT_PERSON_ICON
    color: str = "gray"
    created_at: datetime | None = Field(default=None, alias="createdAt")

    @field_validator("owner_id", mode="before")
    @classmethod
    def _decode_owner(cls, value: Any) -> Any:
        return value or ""

    @field_validator("icon", mode="before")
    @classmethod
    def _decode_icon(cls, value: Any) -> Any:
        return value or DEFAULT_PERSON_ICON

    @field_validator("color", mode="before")
    @classmethod
    def _decode_color(cls, value: Any) -> Any:
        return value or "gray"

    @classmethod
    def from_wire(cls, data: Any) -> "PersonRecord":
        """解析远端返回的单条成员记录

        Raises:
            RemoteDecodeError: 记录缺少必填字段或类型错误
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise RemoteDecodeError(f"成员记录解析失败: {e.error_count()} 个字段错误") from e

    @classmethod
    def from_person(cls, person: Person) -> "PersonRecord":
        return cls(
            id=person.person_id,
            owner_id=person.owner_id,
            name=person.name,
            icon=person.icon,
            color=person.color,
            created_at=person.created_at,
        )

    def to_person(self) -> Person:
        kwargs: dict = {}
        if self.created_at is not None:
            kwargs["created_at"] = self.created_at
        return Person(
            person_id=self.id,
            name=self.name,
            icon=self.icon,
            color=self.color,
            owner_id=self.owner_id,
            **kwargs,
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
