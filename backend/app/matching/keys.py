"""
复合键与字段匹配

复合键只由四个识别字段决定，与 classification / notes 无关
"""

import json
from typing import Iterable, List, Mapping, Sequence

from app.models.entry import IDENTIFYING_FIELDS, StockEntry


def composite_key(entry: StockEntry, field_names: Sequence[str] = IDENTIFYING_FIELDS) -> str:
    """
    生成复合键

    以 JSON 数组编码各字段值：任何字段内容都不会与分隔符混淆。
    不做大小写或空白归一化，"CG UP" 与 "CG  UP" 是不同的键；
    缺失字段按空串参与（不报错）

    Args:
        entry: 记录
        field_names: 参与的字段，默认四个识别字段

    Returns:
        确定性的字符串键
    """
    return json.dumps([entry.value(name) for name in field_names], ensure_ascii=False)


def fields_match(
    criteria: Mapping[str, str],
    entry: StockEntry,
    field_names: Iterable[str] = IDENTIFYING_FIELDS,
) -> bool:
    """
    检索条件与候选记录的字段匹配（非对称）

    - criteria 中某字段为空（或只有空白）时视为通配，不构成不匹配
    - 非空条件与记录值两侧都转大写后做完全相等比较，不去除内部空白
    - 记录中的空串是普通值：非空条件不会匹配空字段

    Args:
        criteria: 字段名 -> 检索值
        entry: 候选记录
        field_names: 参与比较的字段

    Returns:
        所有非空条件都命中时返回 True
    """
    for name in field_names:
        wanted = criteria.get(name) or ""
        if not wanted.strip():
            continue
        if entry.value(name).upper() != wanted.upper():
            return False
    return True


def sort_newest_first(entries: Iterable[StockEntry]) -> List[StockEntry]:
    """按 sequence_key 倒序排列（稳定排序，同键保持原顺序）"""
    return sorted(entries, key=lambda entry: entry.sequence_key, reverse=True)
