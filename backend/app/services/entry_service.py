"""
记录服务层

封装录入流程的业务逻辑，包括：
1. Part 1 / Part 2 / Common 三种保存路径及必填校验
2. 编辑：整体替换字段；PartOne 记录补录 Part 2 数据时分叉出新的 Common 记录
3. 删除、检索、重复报告
4. 旧数据迁移（逐条写入，单条失败只计数不中止）
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from app.exceptions import DuplicateEntryError, NotFoundError, RemoteError, ValidationError
from app.matching.duplicates import DuplicateReport, partition_duplicates
from app.matching.search import SearchCriteria, normalize_criteria, search_entries, with_serial_numbers
from app.models.entry import (
    FIELD_NAMES,
    IDENTIFYING_FIELDS,
    NILL,
    PART_ONE_FIELDS,
    PART_ONE_REQUIRED,
    PART_TWO_FIELDS,
    PART_TWO_MARKER_FIELDS,
    EntryForm,
    EntryKind,
    StockEntry,
    is_known_classification,
    new_entry_id,
    now_sequence_key,
)
from app.repositories.entry_store import EntryStore

logger = logging.getLogger(__name__)

FieldValues = Tuple[Dict[str, str], Dict[str, Optional[datetime]]]


@dataclass(frozen=True)
class EditResult:
    """编辑结果：forked=True 时 entry 是新建的 Common 记录，original 保持不变"""
    entry: StockEntry
    original: StockEntry
    forked: bool = False


def _pick(source: EntryForm, names: Sequence[str]) -> FieldValues:
    """从表单中取出指定字段的值和日期；字段值统一转大写"""
    field_set = {
        name: value.upper()
        for name, value in source.field_set.items()
        if name in names and value is not None
    }
    field_dates = {
        name: value
        for name, value in source.field_dates.items()
        if name in names
    }
    return field_set, field_dates


def _copy(source: StockEntry, names: Sequence[str]) -> FieldValues:
    """从已存记录中原样复制指定字段的值和日期（不做大小写转换）"""
    field_set = {name: value for name, value in source.field_set.items() if name in names}
    field_dates = {name: value for name, value in source.field_dates.items() if name in names}
    return field_set, field_dates


def _merge(*parts: FieldValues) -> FieldValues:
    field_set: Dict[str, str] = {}
    field_dates: Dict[str, Optional[datetime]] = {}
    for values, dates in parts:
        field_set.update(values)
        field_dates.update(dates)
    return field_set, field_dates


def _upper_notes(notes: Optional[str]) -> Optional[str]:
    if not notes:
        return None
    return notes.upper()


def _missing_part_one(form: EntryForm) -> List[str]:
    return [label for name, label in PART_ONE_REQUIRED.items() if not form.value(name).strip()]


def _calendar_day(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


class EntryService:
    """
    记录服务类

    核心职责：
    1. 把表单转换为 StockEntry 并写入注入的存储
    2. 保证分类值属于闭集合、PartOne 记录不携带 Part 2 字段
    3. 编辑 PartOne 时保留原记录（分叉规则）

    使用示例：
        service = EntryService(EntryRepository(session, user_id))
        entry = service.save_part_one(EntryForm(field_set={...}))
    """

    def __init__(self, store: EntryStore):
        """
        Args:
            store: 记录存储（list/get/create/update/delete）
        """
        self.store = store

    # ==================== 校验 ====================

    @staticmethod
    def _require_classification(value: Optional[str], label: str) -> str:
        if not value or not value.strip():
            raise ValidationError([label])
        if not is_known_classification(value):
            raise ValidationError([label], message=f"Unknown classification '{value}'")
        return value

    def _find_identical(self, candidate: StockEntry, exclude_id: str) -> Optional[StockEntry]:
        """查找与候选记录完全相同的另一条记录（识别字段、分类、日期、备注）"""
        for other in self.store.list_all():
            if other.id == exclude_id or other.id == candidate.id:
                continue
            if other.classification != candidate.classification:
                continue
            if any(other.value(name) != candidate.value(name) for name in IDENTIFYING_FIELDS):
                continue
            if any(
                _calendar_day(other.field_dates.get(name)) != _calendar_day(candidate.field_dates.get(name))
                for name in IDENTIFYING_FIELDS
            ):
                continue
            if (other.notes or "").strip() != (candidate.notes or "").strip():
                continue
            return other
        return None

    # ==================== 保存路径 ====================

    def save_part_one(self, form: EntryForm) -> StockEntry:
        """
        Part 1 保存

        Args:
            form: 录入表单，MONTHLY/WEEKLY OPEN/CLOSE 四项必填

        Returns:
            新建的 PartOne 记录

        Raises:
            ValidationError: 必填项缺失或分类值非法
        """
        missing = _missing_part_one(form)
        if missing:
            raise ValidationError(missing)
        classification = self._require_classification(form.classification or NILL, "RESULT")

        field_set, field_dates = _pick(form, PART_ONE_FIELDS)
        entry = StockEntry(
            field_set=field_set,
            field_dates=field_dates,
            classification=classification,
            notes=_upper_notes(form.notes),
            attachment=form.attachment,
            entry_kind=EntryKind.PART_ONE,
        )
        return self.store.create(entry)

    def save_part_two(self, form: EntryForm) -> StockEntry:
        """
        Part 2 保存：只保留 Part 2 字段、备注和附件

        Raises:
            ValidationError: 未选择 RESULT
        """
        classification = self._require_classification(form.classification, "RESULT")

        field_set, field_dates = _pick(form, PART_TWO_FIELDS)
        entry = StockEntry(
            field_set=field_set,
            field_dates=field_dates,
            classification=classification,
            notes=_upper_notes(form.notes),
            attachment=form.attachment,
            entry_kind=EntryKind.PART_TWO,
        )
        return self.store.create(entry)

    def _resolve_part_one(self, form: EntryForm, part_one_id: Optional[str]) -> Optional[FieldValues]:
        """
        Common 保存时确定 Part 1 数据来源

        优先级：指定的 PartOne 记录 > 表单中已填完的 Part 1 字段 > 最新的 PartOne 记录
        """
        if part_one_id:
            source = self.store.get(part_one_id)
            if source is not None and source.entry_kind == EntryKind.PART_ONE:
                return _copy(source, PART_ONE_FIELDS)
            logger.warning(f"[EntryService] 指定的 Part 1 记录不可用 (id: {part_one_id})，改用表单数据")

        if not _missing_part_one(form):
            return _pick(form, PART_ONE_FIELDS)

        for entry in self.store.list_all():
            if entry.entry_kind == EntryKind.PART_ONE:
                return _copy(entry, PART_ONE_FIELDS)
        return None

    def save_common(self, form: EntryForm, part_one_id: Optional[str] = None) -> StockEntry:
        """
        Common 保存：Part 1 数据 + 本次录入的 Part 2 数据合并为一条记录

        Args:
            form: 录入表单
            part_one_id: 显式指定的 PartOne 记录（可选）

        Returns:
            新建的 Common 记录

        Raises:
            ValidationError: 找不到 Part 1 数据，或未选择 Part 2 RESULT
        """
        part_one = self._resolve_part_one(form, part_one_id)
        if part_one is None:
            raise ValidationError(_missing_part_one(form) or ["Part 1 data"])
        classification = self._require_classification(form.classification, "Part 2 RESULT")

        field_set, field_dates = _merge(part_one, _pick(form, PART_TWO_FIELDS))
        entry = StockEntry(
            field_set=field_set,
            field_dates=field_dates,
            classification=classification,
            notes=_upper_notes(form.notes),
            attachment=form.attachment,
            entry_kind=EntryKind.COMMON,
        )
        return self.store.create(entry)

    def save_all_nill(self, form: EntryForm) -> StockEntry:
        """快捷录入：识别字段与颜色全部记为 NILL 的 PartOne 记录"""
        field_set, field_dates = _pick(form, PART_ONE_FIELDS)
        for name in IDENTIFYING_FIELDS + ("intro_color",):
            field_set[name] = NILL
        entry = StockEntry(
            field_set=field_set,
            field_dates=field_dates,
            classification=NILL,
            notes=_upper_notes(form.notes),
            attachment=form.attachment,
            entry_kind=EntryKind.PART_ONE,
        )
        return self.store.create(entry)

    # ==================== 编辑 / 删除 ====================

    def edit_entry(self, entry_id: str, form: EntryForm) -> Optional[EditResult]:
        """
        编辑记录

        PartOne 记录在编辑中新增了任一 Part 2 识别字段时，不覆盖原记录，
        而是新建一条 Common 记录：原记录的 Part 1 字段 + 本次的 Part 2 字段。
        其他情况整体替换字段，id 和 sequence_key 不变

        Args:
            entry_id: 记录 ID
            form: 新内容

        Returns:
            EditResult；目标已不存在时返回 None（空操作）

        Raises:
            ValidationError: 未选择 RESULT
            DuplicateEntryError: 修改后会与另一条记录完全相同
        """
        original = self.store.get(entry_id)
        if original is None:
            logger.info(f"[EntryService] 编辑目标不存在，忽略 (id: {entry_id})")
            return None
        classification = self._require_classification(form.classification, "RESULT")
        attachment = form.attachment or original.attachment

        forking = original.entry_kind == EntryKind.PART_ONE and any(
            form.value(name).strip() for name in PART_TWO_MARKER_FIELDS
        )

        if forking:
            field_set, field_dates = _merge(_copy(original, PART_ONE_FIELDS), _pick(form, PART_TWO_FIELDS))
            candidate = StockEntry(
                id=new_entry_id(),
                sequence_key=now_sequence_key(),
                field_set=field_set,
                field_dates=field_dates,
                classification=classification,
                notes=_upper_notes(form.notes),
                attachment=attachment,
                entry_kind=EntryKind.COMMON,
            )
        else:
            allowed = PART_ONE_FIELDS if original.entry_kind == EntryKind.PART_ONE else FIELD_NAMES
            field_set, field_dates = _pick(form, allowed)
            candidate = original.model_copy(update={
                "field_set": field_set,
                "field_dates": field_dates,
                "classification": classification,
                "notes": _upper_notes(form.notes),
                "attachment": attachment,
            })

        duplicate = self._find_identical(candidate, exclude_id=original.id)
        if duplicate is not None:
            raise DuplicateEntryError(duplicate.id)

        if forking:
            created = self.store.create(candidate)
            logger.info(f"[EntryService] Part 1 记录 {original.id} 补录完成，分叉为 Common 记录 {created.id}")
            return EditResult(entry=created, original=original, forked=True)

        try:
            updated = self.store.update(candidate)
        except NotFoundError:
            logger.info(f"[EntryService] 编辑目标已被删除，忽略 (id: {entry_id})")
            return None
        return EditResult(entry=updated, original=original)

    def delete_entry(self, entry_id: str) -> bool:
        """
        删除记录

        Returns:
            删除成功返回 True；记录不存在时为空操作，返回 False
        """
        deleted = self.store.delete(entry_id)
        if not deleted:
            logger.info(f"[EntryService] 删除目标不存在，忽略 (id: {entry_id})")
        return deleted

    # ==================== 查询 ====================

    def list_entries(self) -> List[StockEntry]:
        return self.store.list_all()

    def numbered_entries(self) -> List[Tuple[int, StockEntry]]:
        """带显示序号的记录列表，最新在前"""
        return with_serial_numbers(self.store.list_all())

    def search(self, criteria: Union[SearchCriteria, Mapping]) -> List[StockEntry]:
        if not isinstance(criteria, SearchCriteria):
            criteria = normalize_criteria(criteria)
        return search_entries(self.store.list_all(), criteria)

    def duplicate_report(self) -> DuplicateReport:
        return partition_duplicates(self.store.list_all())

    # ==================== 迁移 ====================

    def migrate_entries(self, entries: Iterable[StockEntry]) -> int:
        """
        批量迁移旧数据（保留原 id 与排序键）

        单条记录写入失败只记录日志并计为未迁移，不中止整批

        Returns:
            成功迁移的条数
        """
        migrated = 0
        for entry in entries:
            try:
                self.store.create(entry, keep_legacy_timestamp=True)
                migrated += 1
            except RemoteError as exc:
                logger.error(f"[EntryService] 迁移记录失败 (id: {entry.id}): {exc}")
        logger.info(f"[EntryService] 迁移完成: {migrated} 条")
        return migrated
