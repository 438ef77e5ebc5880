"""Person Domain Model -- 家庭成员，被任务按 ID 引用"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

DEFAULT_PERSON_ICON = "person.circle.fill"


class Person(BaseModel):
    """家庭成员"""

    person_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="显示名称")
    icon: str = Field(default=DEFAULT_PERSON_ICON, description="图标名称")
    color: str = Field(default="gray", description="颜色标签")
    owner_id: str = Field(default="", description="所属账号 ID")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="创建时间",
    )
