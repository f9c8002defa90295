"""
Public HTTP routes: site data, submission forms, sign-in and member upload.
"""

from __future__ import annotations

import logging
from typing import Optional, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from portal_backend.attachments import (
    QRETA_ALLOWED_TYPES,
    REPORT_ALLOWED_TYPES,
    storage_path,
    validate_attachment,
)
from portal_backend.auth import (
    COOKIE_NAME,
    authenticate,
    create_access_token,
    get_current_account,
)
from portal_backend.config import Settings, get_settings
from portal_backend.db import (
    AccountRecord,
    DbClient,
    MembershipApplicationRecord,
    QretaRecord,
    ReportRecord,
)
from portal_backend.dependencies import get_db_client, get_storage_client
from portal_backend.errors import ApiError
from portal_backend.member_import import MemberImportError, import_members, woreda_choices
from portal_backend.schemas import (
    LoginIn,
    MemberOut,
    MemberUploadResponse,
    MembershipApplicationIn,
    MembershipApplicationOut,
    NavigationResponse,
    QretaOut,
    QretaSubmissionIn,
    ReportOut,
    ReportSubmissionIn,
    SessionResponse,
    TokenResponse,
    UploadStats,
)
from portal_backend.site_content import NAV_LINKS, SITE_TITLE
from portal_backend.storage import StorageClient

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_MEMBERS_LIMIT = 50

M = TypeVar("M", bound=BaseModel)


def _validate_form(model_cls: type[M], **values) -> M:
    """Validate multipart form fields with the same rules as a JSON body."""
    try:
        return model_cls(**values)
    except ValidationError as exc:
        raise RequestValidationError(
            exc.errors(include_url=False, include_context=False)
        ) from exc


def _store_attachment(
    storage: StorageClient, folder: str, upload: UploadFile, data: bytes
) -> str:
    path = storage_path(folder, upload.filename)
    try:
        storage.upload_bytes(path, data, upload.content_type or "application/octet-stream")
    except (BotoCoreError, ClientError, OSError) as exc:
        logger.exception("Storage upload failed for %s", path)
        raise ApiError(502, "storage_failed") from exc
    logger.info("Stored attachment %s (%d bytes)", path, len(data))
    return storage.public_url(path)


def _insert(insert, record):
    try:
        return insert(record)
    except SQLAlchemyError as exc:
        logger.exception("Insert failed for %s", type(record).__name__)
        raise ApiError(500, "insert_failed") from exc


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/site/navigation", response_model=NavigationResponse)
def site_navigation():
    return NavigationResponse(title=SITE_TITLE, links=NAV_LINKS)


@router.get("/site/woredas", response_model=list[str])
def site_woredas(settings: Settings = Depends(get_settings)):
    return woreda_choices(settings.woreda_count)


@router.post("/qreta", response_model=QretaOut, status_code=201)
async def submit_qreta(
    full_name: str = Form(""),
    phone: str = Form(""),
    email: Optional[str] = Form(None),
    category: str = Form(""),
    woreda: str = Form(""),
    kebele: str = Form(""),
    message: str = Form(""),
    file: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    """
    Accept a complaint, tip or suggestion with an optional attachment.
    """
    form = _validate_form(
        QretaSubmissionIn,
        full_name=full_name,
        phone=phone,
        email=email,
        category=category,
        woreda=woreda,
        kebele=kebele,
        message=message,
    )

    file_url = None
    if file is not None and file.filename:
        data = await file.read()
        validate_attachment(
            file.content_type, len(data), QRETA_ALLOWED_TYPES, settings.max_attachment_bytes
        )
        file_url = _store_attachment(storage, "qreta/qreta_submissions", file, data)

    record = _insert(
        db.insert_qreta, QretaRecord(**form.model_dump(), file_url=file_url)
    )
    logger.info("Stored qreta submission %s", record.id)
    return QretaOut.model_validate(record)


@router.post("/reports", response_model=ReportOut, status_code=201)
async def submit_report(
    full_name: str = Form(""),
    phone: str = Form(""),
    email: Optional[str] = Form(None),
    woreda: str = Form(""),
    kebele: str = Form(""),
    report_type: str = Form(""),
    report_details: str = Form(""),
    report_file: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    form = _validate_form(
        ReportSubmissionIn,
        full_name=full_name,
        phone=phone,
        email=email,
        woreda=woreda,
        kebele=kebele,
        report_type=report_type,
        report_details=report_details,
    )
    if report_file is None or not report_file.filename:
        raise ApiError(400, "report_file_required")

    data = await report_file.read()
    validate_attachment(
        report_file.content_type, len(data), REPORT_ALLOWED_TYPES, settings.max_attachment_bytes
    )
    file_url = _store_attachment(storage, "reports/reports", report_file, data)

    record = _insert(
        db.insert_report, ReportRecord(**form.model_dump(), file_url=file_url)
    )
    logger.info("Stored report submission %s", record.id)
    return ReportOut.model_validate(record)


@router.post(
    "/membership-applications", response_model=MembershipApplicationOut, status_code=201
)
def submit_membership_application(
    payload: MembershipApplicationIn,
    db: DbClient = Depends(get_db_client),
):
    record = _insert(
        db.insert_application, MembershipApplicationRecord(**payload.model_dump())
    )
    logger.info("Stored membership application %s", record.id)
    return MembershipApplicationOut.model_validate(record)


@router.post("/auth/login", response_model=TokenResponse)
def login(
    payload: LoginIn,
    response: Response,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    account = authenticate(db, payload.email, payload.password)
    if not account:
        logger.warning("Rejected sign-in for %s", payload.email)
        raise ApiError(401, "invalid_credentials", headers={"WWW-Authenticate": "Bearer"})

    token = create_access_token(account, settings)
    max_age = settings.access_token_expire_minutes * 60
    response.set_cookie(
        key=COOKIE_NAME,
        value=f"Bearer {token}",
        httponly=True,
        max_age=max_age,
        expires=max_age,
        samesite="lax",
    )
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        email=account.email,
        is_admin=db.is_admin(account.email),
    )


@router.post("/auth/logout")
def logout(response: Response):
    response.delete_cookie(key=COOKIE_NAME)
    return {"status": "ok"}


@router.get("/auth/session", response_model=SessionResponse)
def session(
    account: AccountRecord = Depends(get_current_account),
    db: DbClient = Depends(get_db_client),
):
    return SessionResponse(email=account.email, is_admin=db.is_admin(account.email))


@router.post("/members/upload", response_model=MemberUploadResponse)
async def upload_members(
    file: UploadFile = File(...),
    woreda: str = Form(""),
    account: AccountRecord = Depends(get_current_account),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    """
    Bulk-insert members from an .xlsx register for one woreda.
    """
    if woreda not in woreda_choices(settings.woreda_count):
        raise ApiError(400, "woreda_required")
    if not (file.filename or "").lower().endswith(".xlsx"):
        raise ApiError(400, "xlsx_required")

    data = await file.read()
    try:
        result = import_members(
            data,
            woreda,
            db,
            uploaded_by=account.id,
            uploaded_by_email=account.email,
            default_subcity=settings.default_subcity,
            woreda_count=settings.woreda_count,
        )
    except MemberImportError as exc:
        logger.warning("Member upload by %s rejected: %s", account.email, exc.code)
        raise ApiError(400, exc.code) from exc
    except SQLAlchemyError as exc:
        logger.exception("Member upload by %s failed", account.email)
        raise ApiError(500, "insert_failed") from exc

    recent = db.list_members(limit=RECENT_MEMBERS_LIMIT)
    return MemberUploadResponse(
        stats=UploadStats(**result.stats.as_dict()),
        members=[MemberOut.model_validate(member) for member in recent],
    )
