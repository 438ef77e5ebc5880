"""StoreChange -- Store 变更通知载荷"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ChangeKind


class StoreChange(BaseModel):
    """一次变更（mutation / 合并）的摘要"""

    kind: ChangeKind = Field(description="变更类型")
    task_ids: list[str] = Field(default_factory=list, description="受影响的任务 ID")
    person_ids: list[str] = Field(default_factory=list, description="受影响的成员 ID")
    revision: int = Field(description="变更后的 Store 版本号")
    ts: datetime = Field(description="变更时间")


class MergeResult(BaseModel):
    """远端快照合并结果

    合并规则：按 ID 求并集，冲突时远端覆盖本地，仅本地存在的 ID 保留。
    protected 为本轮未被覆盖的 ID（拉取期间本地有更新的变更或仍有待发送的写入）。
    """

    added: list[str] = Field(default_factory=list, description="新增的远端 ID")
    replaced: list[str] = Field(default_factory=list, description="被远端内容覆盖的 ID")
    unchanged: list[str] = Field(default_factory=list, description="与远端一致的 ID")
    kept_local: list[str] = Field(default_factory=list, description="远端缺失、本地保留的 ID")
    protected: list[str] = Field(default_factory=list, description="本地优先、未覆盖的 ID")

    @property
    def changed(self) -> bool:
        return bool(self.added or self.replaced)
