"""
基础数据库配置模块
提供所有模型共用的时间戳基类和毫秒时间戳换算工具
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlmodel import SQLModel, Field

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# datetime 可表示的毫秒范围（0001-01-01 ~ 9999-12-31）
MIN_EPOCH_MS = (datetime.min.replace(tzinfo=timezone.utc) - EPOCH) // timedelta(milliseconds=1)
MAX_EPOCH_MS = (datetime.max.replace(tzinfo=timezone.utc) - EPOCH) // timedelta(milliseconds=1)


def utc_now() -> datetime:
    """返回 timezone-aware 的当前 UTC 时间"""
    return datetime.now(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """
    datetime -> 毫秒时间戳（整数运算，避免浮点误差）

    SQLite 读回的时间不带时区，按 UTC 处理
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    """毫秒时间戳 -> UTC datetime"""
    return EPOCH + timedelta(milliseconds=ms)


class TimestampModel(SQLModel):
    """时间戳基类，为所有表模型提供 created_at 和 updated_at 字段"""
    created_at: Optional[datetime] = Field(
        default_factory=utc_now,
        nullable=False
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now,
        nullable=False,
        sa_column_kwargs={"onupdate": utc_now}
    )
