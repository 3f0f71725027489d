"""
服务层模块
提供业务逻辑的抽象层，封装录入流程、备份和变更合并
"""

from .entry_service import EntryService, EditResult
from .backup_service import BackupService, ImportResult
from .realtime import ChangeEvent, apply_change

__all__ = [
    "EntryService",
    "EditResult",
    "BackupService",
    "ImportResult",
    "ChangeEvent",
    "apply_change"
]
