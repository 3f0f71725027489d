"""
业务异常定义

- ValidationError: 保存时缺少必填项，界面以列表形式提示缺失字段
- FormatError: 备份文件无法解析或结构不对，整个导入中止
- RemoteError: 存储层失败（网络、权限、约束）
- NotFoundError: 编辑 / 删除目标已不存在，调用方按空操作处理
"""

from typing import Iterable, List


class EntryError(Exception):
    """所有业务异常的基类"""


class ValidationError(EntryError):
    """必填字段缺失或取值不合法"""

    def __init__(self, missing_fields: Iterable[str], message: str = "Missing information"):
        self.missing_fields: List[str] = list(missing_fields)
        if self.missing_fields:
            message = f"{message}: {', '.join(self.missing_fields)}"
        super().__init__(message)


class DuplicateEntryError(ValidationError):
    """编辑后会与另一条记录完全相同（识别字段、分类、日期、备注均一致）"""

    def __init__(self, duplicate_id: str):
        self.duplicate_id = duplicate_id
        super().__init__([], message=f"Identical entry already exists ({duplicate_id})")


class FormatError(EntryError):
    """备份文档格式错误"""


class RemoteError(EntryError):
    """存储层调用失败"""


class NotFoundError(EntryError):
    """目标记录不存在"""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")
