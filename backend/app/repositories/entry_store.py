"""
记录存储接口

匹配 / 分组 / 检索核心只依赖这个接口，测试时可以替换为任意实现
"""

from typing import List, Optional, Protocol, runtime_checkable

from app.models.entry import StockEntry


@runtime_checkable
class EntryStore(Protocol):
    """按 id 增删改查的记录存储"""

    def list_all(self) -> List[StockEntry]:
        ...

    def get(self, entry_id: str) -> Optional[StockEntry]:
        ...

    def create(self, entry: StockEntry, keep_legacy_timestamp: bool = False) -> StockEntry:
        ...

    def update(self, entry: StockEntry) -> StockEntry:
        ...

    def delete(self, entry_id: str) -> bool:
        ...
