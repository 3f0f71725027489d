"""
记录域模型 - 手工分类的 stock entry
一条记录 = 一次人工观察：约 20 个字段值 + 若干字段日期 + 一个分类结果
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import MAX_EPOCH_MS, MIN_EPOCH_MS, to_epoch_ms, utc_now


class Classification(str, Enum):
    """分类结果枚举（闭集合，保存/编辑时只接受这些值）"""
    ACT = "Act"
    FRONT_ACT = "Front Act"
    CONSOLIDATION_ACT = "Consolidation Act"
    CONSOLIDATION_FRONT_ACT = "Consolidation Front Act"
    CONSOLIDATION_CLOSE = "Consolidation Close"
    ACT_DOUBT = "Act doubt"
    THIRD_ACT = "3rd act"
    FOURTH_ACT = "4th act"
    FIFTH_ACT = "5th act"
    NILL = "NILL"


class EntryKind(str, Enum):
    """录入流程阶段标记"""
    PART_ONE = "part1"
    PART_TWO = "part2"
    COMMON = "common"


# 参与去重 / 检索的四个识别字段：intro 组合、candle 编号、open、close
IDENTIFYING_FIELDS = ("intro", "candle", "open_a", "close_a")

PART_ONE_FIELDS = IDENTIFYING_FIELDS + (
    "intro_color",
    "monthly_open",
    "monthly_close",
    "weekly_open",
    "weekly_close",
    "daily_open",
    "daily_close",
)

# 出现任意一个即视为 Part 2 数据（编辑 PartOne 时触发分叉）
PART_TWO_MARKER_FIELDS = (
    "og_direction_a",
    "og_direction_b",
    "og_direction_c",
    "og_direction_d",
    "og_candle",
    "og_open_a",
    "og_close_a",
)

PART_TWO_FIELDS = PART_TWO_MARKER_FIELDS + ("sd_open_a", "sd_close_a")

FIELD_NAMES = PART_ONE_FIELDS + PART_TWO_FIELDS

DATED_FIELDS = tuple(name for name in PART_ONE_FIELDS if name != "intro_color") + (
    "og_open_a",
    "og_close_a",
)

# Part 1 保存时必填，值为界面上的提示名称
PART_ONE_REQUIRED = {
    "monthly_open": "MONTHLY OPEN",
    "monthly_close": "MONTHLY CLOSE",
    "weekly_open": "WEEKLY OPEN",
    "weekly_close": "WEEKLY CLOSE",
}

NILL = Classification.NILL.value

CLASSIFICATION_VALUES = frozenset(item.value for item in Classification)


def is_known_classification(value: Optional[str]) -> bool:
    """判断分类值是否属于闭集合"""
    return value in CLASSIFICATION_VALUES


def new_entry_id() -> str:
    return str(uuid.uuid4())


def now_sequence_key() -> int:
    return to_epoch_ms(utc_now())


class StockEntry(BaseModel):
    """
    记录（领域对象，与存储无关）

    - id: 创建时分配，之后不可变
    - sequence_key: 创建时间（毫秒），只用于排序，快速连续录入时可能重复；
      必须落在 datetime 可表示的范围内
    - field_set: 字段名 -> 字符串值，未设置为缺省或空串
    - field_dates: 字段名 -> 日期；值为 None 表示 NILL，键缺省表示从未设置
    - classification: 分类结果；备份导入时未知值原样保留
    - entry_kind: part1 / part2 / common

    备份文件使用 camelCase 键名；未知键原样保留（向前兼容旧备份）
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str = Field(default_factory=new_entry_id)
    sequence_key: int = Field(default_factory=now_sequence_key, ge=MIN_EPOCH_MS, le=MAX_EPOCH_MS)
    field_set: Dict[str, str] = Field(default_factory=dict)
    field_dates: Dict[str, Optional[datetime]] = Field(default_factory=dict)
    classification: str = NILL
    notes: Optional[str] = None
    attachment: Optional[str] = None
    entry_kind: EntryKind = EntryKind.COMMON

    def value(self, name: str) -> str:
        """读取字段值，未设置返回空串"""
        return self.field_set.get(name) or ""

    def has_part_two_data(self) -> bool:
        return any(self.value(name).strip() for name in PART_TWO_MARKER_FIELDS)


class EntryForm(BaseModel):
    """
    录入 / 编辑表单

    Part 1、Part 2、Common 保存以及编辑共用同一个表单结构，
    各保存路径自行决定取用哪些字段
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field_set: Dict[str, str] = Field(default_factory=dict)
    field_dates: Dict[str, Optional[datetime]] = Field(default_factory=dict)
    classification: Optional[str] = None
    notes: Optional[str] = None
    attachment: Optional[str] = None

    def value(self, name: str) -> str:
        return self.field_set.get(name) or ""
