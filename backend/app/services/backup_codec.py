"""
备份编解码

备份文件是一个 JSON 数组，每个元素是一条 camelCase 形式的记录：
- 日期编码为 ISO-8601 字符串，显式清空的日期为 null，从未设置的日期键直接省略
- 没有版本号字段；解码时未知键原样保留，缺失键取默认值
"""

import json
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.exceptions import FormatError
from app.models.entry import StockEntry

# 值为 None 时直接省略的顶层键
_OMIT_WHEN_NONE = ("notes", "attachment")


def serialize(entries: Iterable[StockEntry]) -> List[Dict[str, Any]]:
    """
    记录集 -> 备份文档（可直接 json.dump 的列表）

    Args:
        entries: 记录集

    Returns:
        对象数组
    """
    document = []
    for entry in entries:
        item = entry.model_dump(mode="json", by_alias=True)
        for key in _OMIT_WHEN_NONE:
            if item.get(key) is None:
                item.pop(key, None)
        document.append(item)
    return document


def deserialize(document: Any) -> List[StockEntry]:
    """
    备份文档 -> 记录集

    只检查结构：顶层必须是数组、元素必须是对象；
    分类值不做闭集合校验，未知值原样保留

    Raises:
        FormatError: 顶层不是数组，或某个元素无法转换为记录
    """
    if not isinstance(document, list):
        raise FormatError(f"Backup document must be a JSON array, got {type(document).__name__}")

    entries = []
    for index, item in enumerate(document):
        if not isinstance(item, dict):
            raise FormatError(f"Entry #{index} is not an object")
        try:
            entries.append(StockEntry.model_validate(item))
        except PydanticValidationError as exc:
            raise FormatError(f"Entry #{index} is malformed: {exc}") from exc
    return entries


def dumps(entries: Iterable[StockEntry]) -> str:
    return json.dumps(serialize(entries), ensure_ascii=False, indent=2)


def loads(text: Union[str, bytes]) -> List[StockEntry]:
    """
    解析备份文件内容

    Raises:
        FormatError: 不是合法 JSON，或结构不符合要求
    """
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FormatError(f"Backup file is not valid JSON: {exc}") from exc
    return deserialize(document)


def backup_filename(prefix: str, today: Optional[date] = None) -> str:
    """带日期戳的备份文件名，例如 stock-entries-2024-03-01.json"""
    today = today or date.today()
    return f"{prefix}-{today.isoformat()}.json"
