"""
重复分组与冲突检测

按复合键分组后把每组归入三类之一：
- conflicting: 组内 ≥2 条且分类不一致
- consistent: 组内 ≥2 条、分类一致，且 sequence_key 至少有两个不同值
- ignored: 单条组，或同分类同时间戳的退化组
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from app.models.entry import StockEntry

from .keys import composite_key, sort_newest_first


@dataclass(frozen=True)
class DuplicateReport:
    conflicting: List[StockEntry] = field(default_factory=list)
    consistent: List[StockEntry] = field(default_factory=list)
    ignored: List[StockEntry] = field(default_factory=list)


def group_by_key(entries: Iterable[StockEntry]) -> Dict[str, List[StockEntry]]:
    """复合键 -> 组内记录（最新在前）；组的顺序为该键首次出现的顺序"""
    groups: Dict[str, List[StockEntry]] = {}
    for entry in sort_newest_first(entries):
        groups.setdefault(composite_key(entry), []).append(entry)
    return groups


def _classify_group(group: List[StockEntry]) -> str:
    if len(group) < 2:
        return "ignored"
    if len({entry.classification for entry in group}) > 1:
        return "conflicting"
    if len({entry.sequence_key for entry in group}) > 1:
        return "consistent"
    return "ignored"


def partition_duplicates(entries: Iterable[StockEntry]) -> DuplicateReport:
    """
    对完整记录集分组并归类

    每条记录恰好落入三类之一；结果是平铺列表，
    同组记录相邻且最新在前。记录集变化后需整体重算

    Args:
        entries: 完整记录集快照（不会被修改）

    Returns:
        DuplicateReport
    """
    report = DuplicateReport()
    for group in group_by_key(entries).values():
        getattr(report, _classify_group(group)).extend(group)
    return report


def conflicting_duplicates(entries: Iterable[StockEntry]) -> List[StockEntry]:
    """复合键相同但分类不同的记录"""
    return partition_duplicates(entries).conflicting


def consistent_duplicates(entries: Iterable[StockEntry]) -> List[StockEntry]:
    """复合键、分类都相同，但录入时间不同的记录"""
    return partition_duplicates(entries).consistent
