"""
数据库模型模块
导出表模型、领域模型和枚举类型
"""

# 归属者
from .user import User

# 记录域模型
from .entry import (
    Classification,
    EntryKind,
    EntryForm,
    StockEntry,
    IDENTIFYING_FIELDS,
    PART_ONE_FIELDS,
    PART_TWO_FIELDS,
    PART_TWO_MARKER_FIELDS,
    FIELD_NAMES,
    DATED_FIELDS,
)
from .entry_row import StockEntryRow

# 基础模型
from .base import TimestampModel

# 定义导出的内容
__all__ = [
    "User",
    "Classification", "EntryKind", "EntryForm", "StockEntry",
    "IDENTIFYING_FIELDS", "PART_ONE_FIELDS", "PART_TWO_FIELDS",
    "PART_TWO_MARKER_FIELDS", "FIELD_NAMES", "DATED_FIELDS",
    "StockEntryRow",
    "TimestampModel"
]
