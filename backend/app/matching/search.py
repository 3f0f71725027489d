"""
检索过滤管道

条件全部可选，生效的条件之间为 AND；一个条件都没有时返回空结果，
避免界面上误把整张表全部列出
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.models.entry import FIELD_NAMES, IDENTIFYING_FIELDS, EntryKind, StockEntry

from .keys import fields_match, sort_newest_first


@dataclass(frozen=True)
class SearchCriteria:
    serial_number: str = ""
    classification: str = ""
    notes: str = ""
    field_criteria: Dict[str, str] = field(default_factory=dict)
    # 只限定范围（对应 Part 1 / Part 2 / Common 标签页），本身不算检索条件
    scope: Optional[EntryKind] = None

    @property
    def serial(self) -> str:
        """去掉前导 # 的序号"""
        return self.serial_number.strip().lstrip("#").strip()

    def has_field_criteria(self) -> bool:
        return any(value.strip() for value in self.field_criteria.values())

    def is_empty(self) -> bool:
        return not (
            self.serial
            or self.classification.strip()
            or self.notes.strip()
            or self.has_field_criteria()
        )


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def normalize_criteria(raw: Mapping[str, Any]) -> SearchCriteria:
    """
    从表单 / 请求字典构造 SearchCriteria

    同时接受 camelCase 与 snake_case 键；字段条件既可放在
    fieldCriteria 里，也可直接作为顶层键（仅限已知字段名）
    """
    field_criteria: Dict[str, str] = {}
    nested = raw.get("fieldCriteria") or raw.get("field_criteria") or {}
    for name in FIELD_NAMES:
        value = nested.get(name, raw.get(name))
        if value is not None:
            field_criteria[name] = _as_str(value)

    scope = raw.get("scope") or None
    if scope is not None:
        try:
            scope = EntryKind(scope)
        except ValueError:
            scope = None

    return SearchCriteria(
        serial_number=_as_str(raw.get("serialNumber", raw.get("serial_number"))),
        classification=_as_str(
            raw.get("classificationFilter", raw.get("classification_filter", raw.get("classification")))
        ),
        notes=_as_str(raw.get("notesSubstring", raw.get("notes_substring", raw.get("notes")))),
        field_criteria=field_criteria,
        scope=scope,
    )


def with_serial_numbers(entries: Iterable[StockEntry]) -> List[Tuple[int, StockEntry]]:
    """
    (显示序号, 记录) 列表，最新在前

    序号从最旧的 1 开始，最新一条等于总数
    """
    ordered = sort_newest_first(entries)
    total = len(ordered)
    return [(total - index, entry) for index, entry in enumerate(ordered)]


def _notes_match(entry: StockEntry, query: str) -> bool:
    if not entry.notes:
        return False
    return query.lower() in entry.notes.lower()


def search_entries(entries: Iterable[StockEntry], criteria: SearchCriteria) -> List[StockEntry]:
    """
    按条件过滤记录集

    序号基于完整记录集计算，再依次应用范围、序号、分类、备注、字段条件；
    不修改传入的记录集

    Args:
        entries: 完整记录集快照
        criteria: 检索条件

    Returns:
        命中的记录，最新在前；无任何条件时为空列表
    """
    if criteria.is_empty():
        return []

    numbered = with_serial_numbers(entries)

    if criteria.scope is not None:
        numbered = [(serial, entry) for serial, entry in numbered if entry.entry_kind == criteria.scope]

    if criteria.serial:
        numbered = [(serial, entry) for serial, entry in numbered if str(serial) == criteria.serial]

    wanted = criteria.classification.lower()
    if wanted.strip():
        numbered = [(serial, entry) for serial, entry in numbered if entry.classification.lower() == wanted]

    query = criteria.notes
    if query.strip():
        numbered = [(serial, entry) for serial, entry in numbered if _notes_match(entry, query)]

    if criteria.has_field_criteria():
        names = [name for name in FIELD_NAMES if name in criteria.field_criteria] or list(IDENTIFYING_FIELDS)
        numbered = [
            (serial, entry) for serial, entry in numbered
            if fields_match(criteria.field_criteria, entry, names)
        ]

    return [entry for _, entry in numbered]
