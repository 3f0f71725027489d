"""
FastAPI 应用入口

启动：uvicorn app.api.main:app --reload（在 backend 目录下）
"""

import logging
from functools import lru_cache
from typing import Dict, Iterable, Generator, List, Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session

from app.api.schemas import (
    DeleteResponse,
    EditResponse,
    ImportResponse,
    SearchRequest,
    ValidationErrorResponse,
)
from app.config import get_config
from app.db.init_db import create_tables, get_engine
from app.exceptions import FormatError, RemoteError, ValidationError
from app.matching.search import normalize_criteria, with_serial_numbers
from app.models.entry import EntryForm, StockEntry
from app.repositories.entry_repository import EntryRepository
from app.repositories.user_repository import UserRepository
from app.services.backup_codec import serialize
from app.services.backup_service import BackupService
from app.services.entry_service import EntryService

logger = logging.getLogger(__name__)

app = FastAPI(title="Stock Entry Journal API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== 依赖 ====================

@lru_cache(maxsize=1)
def _engine():
    engine = get_engine()
    create_tables(engine)
    return engine


def get_session() -> Generator[Session, None, None]:
    with Session(_engine()) as session:
        yield session


def get_owner_id(session: Session = Depends(get_session)) -> int:
    """身份锚定：配置中的 owner_username -> users.id"""
    return UserRepository(session).get_or_create(get_config().owner_username).id


def get_entry_store(
    session: Session = Depends(get_session),
    owner_id: int = Depends(get_owner_id),
) -> EntryRepository:
    return EntryRepository(session, owner_id)


def get_entry_service(store: EntryRepository = Depends(get_entry_store)) -> EntryService:
    return EntryService(store)


def get_backup_service(store: EntryRepository = Depends(get_entry_store)) -> BackupService:
    return BackupService(store)


# ==================== 响应编码 ====================

def _payload(entries: Iterable[StockEntry], serials: Dict[str, int]) -> List[dict]:
    """camelCase 记录 + serialNumber"""
    entries = list(entries)
    items = []
    for entry, item in zip(entries, serialize(entries)):
        item["serialNumber"] = serials.get(entry.id)
        items.append(item)
    return items


def _serials(all_entries: Iterable[StockEntry]) -> Dict[str, int]:
    return {entry.id: serial for serial, entry in with_serial_numbers(all_entries)}


def _single(service: EntryService, entry: StockEntry) -> dict:
    return _payload([entry], _serials(service.list_entries()))[0]


# ==================== 异常映射 ====================

@app.exception_handler(ValidationError)
def _validation_error(request: Request, exc: ValidationError):
    body = ValidationErrorResponse(
        error=str(exc),
        missing_fields=exc.missing_fields,
        dismiss_after_seconds=get_config().notice_dismiss_seconds,
    )
    return JSONResponse(
        status_code=422,
        content=body.model_dump(by_alias=True),
    )


@app.exception_handler(FormatError)
def _format_error(request: Request, exc: FormatError):
    logger.warning(f"[API] 备份文件格式错误: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc), "type": "FormatError"})


@app.exception_handler(RemoteError)
def _remote_error(request: Request, exc: RemoteError):
    logger.error(f"[API] 存储层调用失败 ({request.method} {request.url.path}): {exc}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": str(exc), "type": "RemoteError"})


# ==================== 记录 ====================

@app.get("/entries")
def list_entries(service: EntryService = Depends(get_entry_service)):
    entries = service.list_entries()
    return {"entries": _payload(entries, _serials(entries))}


@app.post("/entries/part-one", status_code=status.HTTP_201_CREATED)
def save_part_one(form: EntryForm, service: EntryService = Depends(get_entry_service)):
    return _single(service, service.save_part_one(form))


@app.post("/entries/part-two", status_code=status.HTTP_201_CREATED)
def save_part_two(form: EntryForm, service: EntryService = Depends(get_entry_service)):
    return _single(service, service.save_part_two(form))


@app.post("/entries/common", status_code=status.HTTP_201_CREATED)
def save_common(
    form: EntryForm,
    part_one_id: Optional[str] = Query(default=None, alias="partOneId"),
    service: EntryService = Depends(get_entry_service),
):
    return _single(service, service.save_common(form, part_one_id=part_one_id))


@app.post("/entries/all-nill", status_code=status.HTTP_201_CREATED)
def save_all_nill(form: EntryForm, service: EntryService = Depends(get_entry_service)):
    return _single(service, service.save_all_nill(form))


@app.put("/entries/{entry_id}", response_model=EditResponse)
def edit_entry(entry_id: str, form: EntryForm, service: EntryService = Depends(get_entry_service)):
    result = service.edit_entry(entry_id, form)
    if result is None:
        return EditResponse(changed=False)
    return EditResponse(changed=True, forked=result.forked, entry=_single(service, result.entry))


@app.delete("/entries/{entry_id}", response_model=DeleteResponse)
def delete_entry(entry_id: str, service: EntryService = Depends(get_entry_service)):
    return DeleteResponse(changed=service.delete_entry(entry_id))


@app.post("/entries/search")
def search_entries(request: SearchRequest, service: EntryService = Depends(get_entry_service)):
    criteria = normalize_criteria(request.model_dump(by_alias=True))
    all_entries = service.list_entries()
    results = service.search(criteria)
    return {"entries": _payload(results, _serials(all_entries))}


@app.get("/entries/duplicates")
def duplicates(service: EntryService = Depends(get_entry_service)):
    all_entries = service.list_entries()
    serials = _serials(all_entries)
    report = service.duplicate_report()
    return {
        "conflicting": _payload(report.conflicting, serials),
        "consistent": _payload(report.consistent, serials),
    }


# ==================== 备份 ====================

@app.get("/backup/export")
def export_backup(service: BackupService = Depends(get_backup_service)):
    filename = service.export_filename()
    return Response(
        content=service.export_text(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/backup/import", response_model=ImportResponse)
async def import_backup(request: Request, service: BackupService = Depends(get_backup_service)):
    body = await request.body()
    result = await run_in_threadpool(service.import_text, body)
    return ImportResponse(imported=result.imported, skipped=result.skipped, failed=result.failed)
