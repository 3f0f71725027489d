"""
记录 Repository
提供 stock_entries 的增删改查操作，对外只暴露领域对象 StockEntry
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, col

from app.exceptions import NotFoundError, RemoteError
from app.models.entry import StockEntry
from app.models.entry_row import StockEntryRow, copy_entry_onto_row, entry_to_row, row_to_entry
from app.matching.keys import sort_newest_first

logger = logging.getLogger(__name__)


class EntryRepository:
    """
    记录数据访问对象
    所有查询都按归属者过滤；数据库异常回滚后统一转换为 RemoteError
    """

    def __init__(self, session: Session, user_id: int):
        """
        初始化 Repository

        Args:
            session: SQLModel 数据库会话
            user_id: 归属者 ID
        """
        self.session = session
        self.user_id = user_id

    def _fail(self, action: str, exc: Exception) -> RemoteError:
        self.session.rollback()
        logger.error(f"[EntryRepository] {action} 失败 (user_id: {self.user_id}): {exc}")
        return RemoteError(f"{action} failed: {exc}")

    def _get_row(self, entry_id: str) -> Optional[StockEntryRow]:
        row = self.session.get(StockEntryRow, entry_id)
        if row is None or row.user_id != self.user_id:
            return None
        return row

    def list_all(self) -> List[StockEntry]:
        """
        获取全部记录

        Returns:
            StockEntry 列表，按 sequence_key 倒序（最新在前）
        """
        statement = select(StockEntryRow).where(
            StockEntryRow.user_id == self.user_id
        ).order_by(col(StockEntryRow.created_at).desc())
        try:
            rows = self.session.exec(statement).all()
        except SQLAlchemyError as exc:
            raise self._fail("list entries", exc)
        return sort_newest_first(row_to_entry(row.model_dump()) for row in rows)

    def get(self, entry_id: str) -> Optional[StockEntry]:
        """
        根据 ID 获取记录

        Args:
            entry_id: 记录 ID

        Returns:
            StockEntry，不存在或不属于当前用户则返回 None
        """
        try:
            row = self._get_row(entry_id)
        except SQLAlchemyError as exc:
            raise self._fail("get entry", exc)
        return row_to_entry(row.model_dump()) if row else None

    def create(self, entry: StockEntry, keep_legacy_timestamp: bool = False) -> StockEntry:
        """
        新建记录

        Args:
            entry: 领域记录（id 与 sequence_key 已由调用方分配）
            keep_legacy_timestamp: 导入 / 迁移时保留原排序键

        Returns:
            读回的 StockEntry
        """
        try:
            row = entry_to_row(entry, self.user_id, keep_legacy_timestamp=keep_legacy_timestamp)
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except (SQLAlchemyError, OverflowError) as exc:
            raise self._fail("create entry", exc)
        logger.info(f"[EntryRepository] 新记录已保存 (id: {row.id}, type: {row.entry_type})")
        return row_to_entry(row.model_dump())

    def update(self, entry: StockEntry) -> StockEntry:
        """
        整体替换记录字段，id 与排序键不变

        Args:
            entry: 新内容（按 entry.id 定位）

        Returns:
            更新后的 StockEntry

        Raises:
            NotFoundError: 记录不存在
        """
        try:
            row = self._get_row(entry.id)
            if row is None:
                raise NotFoundError(entry.id)
            copy_entry_onto_row(row, entry)
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise self._fail("update entry", exc)
        return row_to_entry(row.model_dump())

    def delete(self, entry_id: str) -> bool:
        """
        删除记录（永久删除，无回收站）

        Args:
            entry_id: 记录 ID

        Returns:
            删除成功返回 True，记录不存在返回 False
        """
        try:
            row = self._get_row(entry_id)
            if row is None:
                return False
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete entry", exc)
        logger.info(f"[EntryRepository] 记录已删除 (id: {entry_id})")
        return True
