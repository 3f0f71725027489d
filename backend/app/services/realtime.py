"""
变更通知合并

推送通道按表名订阅、不做服务端过滤，事件里带的是 stock_entries 原始行。
apply_change 是纯函数：(快照, 事件) -> 新快照，按 id 合并，不修改入参
"""

from typing import Any, Dict, List, Literal, Sequence

from pydantic import BaseModel, Field, field_validator

from app.models.entry import StockEntry
from app.models.entry_row import row_to_entry


class ChangeEvent(BaseModel):
    """
    单条变更事件

    delete 事件的 row 可能只有 id（以及可选的 user_id）
    """
    event_type: Literal["insert", "update", "delete"] = Field(
        description="变更类型，大小写不敏感（INSERT / UPDATE / DELETE）"
    )
    row: Dict[str, Any] = Field(
        default_factory=dict,
        description="stock_entries 行数据（snake_case）"
    )

    @field_validator("event_type", mode="before")
    @classmethod
    def _lower_event_type(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


def _belongs_to(row: Dict[str, Any], owner_id: int, missing_is_owner: bool = False) -> bool:
    user_id = row.get("user_id")
    if user_id is None:
        return missing_is_owner
    return user_id == owner_id


def apply_change(snapshot: Sequence[StockEntry], event: ChangeEvent, owner_id: int) -> List[StockEntry]:
    """
    把一条变更事件合并进记录快照

    - insert: id 已存在时不变（幂等去重），否则插到最前
    - update: 按 id 替换，未知 id 不变
    - delete: 按 id 移除；行里没有 user_id 时也执行
    - 其他归属者的行一律忽略

    Args:
        snapshot: 当前记录快照（最新在前）
        event: 变更事件
        owner_id: 当前归属者 ID

    Returns:
        新的记录列表
    """
    entries = list(snapshot)
    row = event.row

    if event.event_type == "delete":
        if not _belongs_to(row, owner_id, missing_is_owner=True):
            return entries
        return [entry for entry in entries if entry.id != row.get("id")]

    if not _belongs_to(row, owner_id):
        return entries

    changed = row_to_entry(row)
    if event.event_type == "insert":
        if any(entry.id == changed.id for entry in entries):
            return entries
        return [changed] + entries

    return [changed if entry.id == changed.id else entry for entry in entries]
