"""
Pytest 测试配置
提供测试数据库、记录构造工具、内存存储等测试基础设施
"""

import sys
from pathlib import Path
from typing import Dict, Generator, List, Optional

import pytest
from sqlmodel import Session, create_engine

# 添加项目根目录到 sys.path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.db.init_db import create_tables
from app.exceptions import NotFoundError, RemoteError
from app.matching.keys import sort_newest_first
from app.models import EntryKind, StockEntry, User


# ==================== 记录构造工具 ====================

def make_entry(
    intro: str = "CG UP",
    candle: str = "3",
    open_a: str = "O1",
    close_a: str = "C1",
    classification: str = "Act",
    sequence_key: int = 1_000,
    entry_kind: EntryKind = EntryKind.COMMON,
    notes: Optional[str] = None,
    entry_id: Optional[str] = None,
    **extra_fields: str,
) -> StockEntry:
    """
    构造一条测试记录
    四个识别字段给出默认值，其余字段通过关键字参数补充
    """
    field_set = {"intro": intro, "candle": candle, "open_a": open_a, "close_a": close_a}
    field_set.update(extra_fields)
    values = dict(
        sequence_key=sequence_key,
        field_set=field_set,
        classification=classification,
        notes=notes,
        entry_kind=entry_kind,
    )
    if entry_id is not None:
        values["id"] = entry_id
    return StockEntry(**values)


PART_ONE_FORM = {
    "intro": "cg up",
    "candle": "3",
    "open_a": "o1",
    "close_a": "c1",
    "intro_color": "green",
    "monthly_open": "m-open",
    "monthly_close": "m-close",
    "weekly_open": "w-open",
    "weekly_close": "w-close",
}


# ==================== 内存存储 ====================

class InMemoryEntryStore:
    """
    内存版记录存储
    用于服务层测试，fail_on 中的 id 写入时抛出 RemoteError
    """

    def __init__(self, entries: Optional[List[StockEntry]] = None, fail_on: Optional[set] = None):
        self.entries: Dict[str, StockEntry] = {entry.id: entry for entry in entries or []}
        self.fail_on = set(fail_on or ())
        self.created_with_legacy: List[str] = []

    def list_all(self) -> List[StockEntry]:
        return sort_newest_first(self.entries.values())

    def get(self, entry_id: str) -> Optional[StockEntry]:
        return self.entries.get(entry_id)

    def create(self, entry: StockEntry, keep_legacy_timestamp: bool = False) -> StockEntry:
        if entry.id in self.fail_on:
            raise RemoteError(f"create entry failed: {entry.id}")
        self.entries[entry.id] = entry
        if keep_legacy_timestamp:
            self.created_with_legacy.append(entry.id)
        return entry

    def update(self, entry: StockEntry) -> StockEntry:
        if entry.id not in self.entries:
            raise NotFoundError(entry.id)
        self.entries[entry.id] = entry
        return entry

    def delete(self, entry_id: str) -> bool:
        return self.entries.pop(entry_id, None) is not None


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def test_db_engine():
    """
    创建测试用的内存数据库引擎
    每个测试函数都会获得一个全新的数据库
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False}
    )

    create_tables(engine)

    yield engine


@pytest.fixture(scope="function")
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """
    创建测试用的数据库会话
    """
    with Session(test_db_engine) as session:
        yield session


# ==================== 测试数据 Fixtures ====================

@pytest.fixture(scope="function")
def test_user(test_db_session: Session) -> User:
    """
    创建测试用户
    """
    user = User(username="test_user", display_name="测试用户")
    test_db_session.add(user)
    test_db_session.commit()
    test_db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def other_user(test_db_session: Session) -> User:
    """
    另一个归属者，用于验证按用户隔离
    """
    user = User(username="other_user", display_name="其他用户")
    test_db_session.add(user)
    test_db_session.commit()
    test_db_session.refresh(user)
    return user


# ==================== Repository / Service Fixtures ====================

@pytest.fixture(scope="function")
def entry_repository(test_db_session: Session, test_user: User):
    """
    创建 EntryRepository 实例
    """
    from app.repositories.entry_repository import EntryRepository
    return EntryRepository(test_db_session, test_user.id)


@pytest.fixture(scope="function")
def memory_store() -> InMemoryEntryStore:
    return InMemoryEntryStore()


@pytest.fixture(scope="function")
def entry_service(entry_repository):
    """
    创建基于数据库存储的 EntryService 实例
    """
    from app.services.entry_service import EntryService
    return EntryService(entry_repository)


@pytest.fixture(scope="function")
def backup_service(entry_repository):
    """
    创建基于数据库存储的 BackupService 实例
    """
    from app.config import AppConfig
    from app.services.backup_service import BackupService
    return BackupService(entry_repository, config=AppConfig(config_path="/nonexistent/app_config.json"))


# ==================== Pytest 配置 ====================

def pytest_configure(config):
    """
    Pytest 初始化配置
    """
    config.addinivalue_line(
        "markers", "unit: Unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests"
    )
