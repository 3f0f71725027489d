"""
匹配引擎模块
复合键、字段匹配、重复分组和检索过滤；全部是纯函数，不访问存储
"""

from .keys import composite_key, fields_match, sort_newest_first
from .duplicates import (
    DuplicateReport,
    partition_duplicates,
    conflicting_duplicates,
    consistent_duplicates,
)
from .search import SearchCriteria, normalize_criteria, search_entries, with_serial_numbers

__all__ = [
    "composite_key", "fields_match", "sort_newest_first",
    "DuplicateReport", "partition_duplicates",
    "conflicting_duplicates", "consistent_duplicates",
    "SearchCriteria", "normalize_criteria", "search_entries", "with_serial_numbers",
]
