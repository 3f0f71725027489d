"""
备份服务层

导出：把存储中的全部记录编码为备份文件
导入：先完整解码（格式错误时一条也不写），再逐条写入；
已存在的 id 跳过，单条写入失败计数后继续
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from app.config import AppConfig, get_config
from app.exceptions import RemoteError
from app.repositories.entry_store import EntryStore

from .backup_codec import backup_filename, dumps, loads

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    imported: int = 0
    skipped: int = 0
    failed: int = 0


class BackupService:
    """
    备份服务类

    使用示例：
        service = BackupService(EntryRepository(session, user_id))
        text = service.export_text()
        result = service.import_text(text)
    """

    def __init__(self, store: EntryStore, config: Optional[AppConfig] = None):
        self.store = store
        self.config = config or get_config()

    def export_text(self) -> str:
        """导出全部记录为 JSON 文本"""
        entries = self.store.list_all()
        logger.info(f"[BackupService] 导出 {len(entries)} 条记录")
        return dumps(entries)

    def export_filename(self, today: Optional[date] = None) -> str:
        return backup_filename(self.config.backup_filename_prefix, today)

    def import_text(self, text: Union[str, bytes]) -> ImportResult:
        """
        导入备份文件内容

        Args:
            text: 备份文件内容

        Returns:
            ImportResult(imported, skipped, failed)

        Raises:
            FormatError: 文件格式错误，未写入任何记录
        """
        entries = loads(text)

        imported = skipped = failed = 0
        for entry in entries:
            if self.store.get(entry.id) is not None:
                skipped += 1
                continue
            try:
                self.store.create(entry, keep_legacy_timestamp=True)
                imported += 1
            except RemoteError as exc:
                failed += 1
                logger.error(f"[BackupService] 导入记录失败 (id: {entry.id}): {exc}")

        logger.info(f"[BackupService] 导入完成: imported={imported}, skipped={skipped}, failed={failed}")
        return ImportResult(imported=imported, skipped=skipped, failed=failed)
