"""
记录域模型 - stock_entries 持久化表
一行对应一条 StockEntry，列名为 snake_case，与领域字段一一对应
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import TypeAdapter
from sqlalchemy import BigInteger
from sqlmodel import Field, Column, JSON

from .base import TimestampModel, from_epoch_ms, to_epoch_ms
from .entry import NILL, EntryKind, StockEntry, new_entry_id

_datetime_adapter = TypeAdapter(datetime)


class StockEntryRow(TimestampModel, table=True):
    """
    stock_entries 表
    除领域字段外，额外保存归属者、创建/更新时间和 legacy_timestamp
    """
    __tablename__ = "stock_entries"

    # 主键：uuid 字符串，由应用层分配
    id: str = Field(default_factory=new_entry_id, primary_key=True)

    # 外键：归属用户；推送通道不做服务端过滤，消费方按此列自行过滤
    user_id: int = Field(foreign_key="users.id", index=True, nullable=False)

    # 字段值与字段日期整体存 JSON，日期为 ISO-8601 字符串或 null
    field_set: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))
    field_dates: Dict[str, Optional[str]] = Field(default_factory=dict, sa_column=Column(JSON))

    classification: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    attachment: Optional[str] = Field(default=None)
    entry_type: str = Field(default=EntryKind.COMMON.value, nullable=False)

    # 迁移前的排序键（毫秒）；旧的本地数据导入时保留原值
    legacy_timestamp: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, nullable=True)
    )


def encode_field_dates(field_dates: Mapping[str, Optional[datetime]]) -> Dict[str, Optional[str]]:
    return {
        name: value.isoformat() if value is not None else None
        for name, value in field_dates.items()
    }


def row_sequence_key(row: Mapping[str, Any]) -> int:
    """行的排序键：优先 legacy_timestamp，否则取 created_at 的毫秒值"""
    legacy = row.get("legacy_timestamp")
    if legacy:
        return int(legacy)
    created_at = row.get("created_at")
    if created_at is None:
        return 0
    return to_epoch_ms(_datetime_adapter.validate_python(created_at))


def row_to_entry(row: Mapping[str, Any]) -> StockEntry:
    """
    行数据 -> StockEntry

    同时用于 ORM 行（先 model_dump）和变更通知里的原始行字典
    """
    return StockEntry(
        id=row["id"],
        sequence_key=row_sequence_key(row),
        field_set=dict(row.get("field_set") or {}),
        field_dates=dict(row.get("field_dates") or {}),
        classification=row.get("classification") or NILL,
        notes=row.get("notes") or None,
        attachment=row.get("attachment") or None,
        entry_kind=row.get("entry_type") or EntryKind.COMMON,
    )


def entry_to_row(entry: StockEntry, user_id: int, keep_legacy_timestamp: bool = False) -> StockEntryRow:
    """
    StockEntry -> 新行

    created_at 由 sequence_key 还原，保证读回的排序键不变；
    keep_legacy_timestamp=True 时（导入 / 迁移）额外写入 legacy_timestamp
    """
    created_at = from_epoch_ms(entry.sequence_key)
    return StockEntryRow(
        id=entry.id,
        user_id=user_id,
        field_set=dict(entry.field_set),
        field_dates=encode_field_dates(entry.field_dates),
        classification=entry.classification,
        notes=entry.notes,
        attachment=entry.attachment,
        entry_type=EntryKind(entry.entry_kind).value,
        legacy_timestamp=entry.sequence_key if keep_legacy_timestamp else None,
        created_at=created_at,
        updated_at=created_at,
    )


def copy_entry_onto_row(row: StockEntryRow, entry: StockEntry) -> StockEntryRow:
    """编辑：整体替换字段，id / 排序键 / 归属者不变"""
    row.field_set = dict(entry.field_set)
    row.field_dates = encode_field_dates(entry.field_dates)
    row.classification = entry.classification
    row.notes = entry.notes
    row.attachment = entry.attachment
    row.entry_type = EntryKind(entry.entry_kind).value
    return row
