"""
接口请求 / 响应模型
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.entry import EntryKind


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(CamelModel):
    """检索条件，全部为空时返回空结果"""
    serial_number: str = ""
    classification_filter: str = ""
    notes_substring: str = ""
    field_criteria: Dict[str, str] = Field(default_factory=dict)
    scope: Optional[EntryKind] = None


class EditResponse(CamelModel):
    changed: bool
    forked: bool = False
    entry: Optional[dict] = None


class DeleteResponse(CamelModel):
    changed: bool


class ImportResponse(CamelModel):
    imported: int
    skipped: int
    failed: int


class ValidationErrorResponse(CamelModel):
    error: str
    missing_fields: List[str] = Field(default_factory=list)
    dismiss_after_seconds: int = 5
