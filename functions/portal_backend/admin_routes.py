"""
Admin HTTP routes: dashboard counts, submission tables, exports and admins.

Every route here requires an account on the admins allow-list.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from portal_backend import export
from portal_backend.auth import ensure_admin, require_admin
from portal_backend.db import DbClient
from portal_backend.dependencies import get_db_client
from portal_backend.errors import ApiError, message
from portal_backend.filters import (
    QRETA_SEARCH_FIELDS,
    REPORT_SEARCH_FIELDS,
    filter_by_status,
    paginate,
    search_applications,
    search_members,
    search_submissions,
)
from portal_backend.schemas import (
    AdminCreateIn,
    AdminCreateResponse,
    AdminListResponse,
    DashboardResponse,
    MemberOut,
    MemberPageResponse,
    MembershipApplicationOut,
    NavigationResponse,
    QretaOut,
    ReportOut,
    StatusUpdateIn,
)
from portal_backend.site_content import ADMIN_NAV_LINKS, SITE_TITLE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _xlsx(rows, columns, filename: str) -> Response:
    return _attachment(export.to_xlsx(rows, columns), filename, export.XLSX_MEDIA_TYPE)


def _csv(rows, columns, filename: str) -> Response:
    return _attachment(export.to_csv(rows, columns), filename, export.CSV_MEDIA_TYPE)


def _found(record):
    if record is None:
        raise ApiError(404, "not_found")
    return record


@router.get("/navigation", response_model=NavigationResponse)
def admin_navigation():
    return NavigationResponse(title=SITE_TITLE, links=ADMIN_NAV_LINKS)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(db: DbClient = Depends(get_db_client)):
    return DashboardResponse(**db.count_summary())


@router.get("/members", response_model=MemberPageResponse)
def list_members(
    q: str = Query(""),
    page: int = Query(1, ge=1),
    db: DbClient = Depends(get_db_client),
):
    result = paginate(search_members(db.list_members(), q), page)
    return MemberPageResponse(
        items=[MemberOut.model_validate(m) for m in result.items],
        page=result.page,
        page_count=result.page_count,
        total=result.total,
    )


@router.get("/members/export")
def export_members(q: str = Query(""), db: DbClient = Depends(get_db_client)):
    rows = [export.format_member(m) for m in search_members(db.list_members(), q)]
    return _xlsx(rows, export.MEMBER_COLUMNS, "members.xlsx")


@router.get("/members/{member_id}", response_model=MemberOut)
def get_member(member_id: str, db: DbClient = Depends(get_db_client)):
    return MemberOut.model_validate(_found(db.get_member(member_id)))


def _filtered_applications(db: DbClient, status: Optional[str], q: str):
    return search_applications(filter_by_status(db.list_applications(), status), q)


@router.get(
    "/membership-applications", response_model=list[MembershipApplicationOut]
)
def list_applications(
    status: str = Query("all"),
    q: str = Query(""),
    db: DbClient = Depends(get_db_client),
):
    return [
        MembershipApplicationOut.model_validate(a)
        for a in _filtered_applications(db, status, q)
    ]


@router.get("/membership-applications/export")
def export_applications(
    status: str = Query("all"),
    q: str = Query(""),
    db: DbClient = Depends(get_db_client),
):
    rows = [export.format_application(a) for a in _filtered_applications(db, status, q)]
    return _xlsx(rows, export.APPLICATION_COLUMNS, "abalat_submissions.xlsx")


@router.get(
    "/membership-applications/{app_id}", response_model=MembershipApplicationOut
)
def get_application(app_id: str, db: DbClient = Depends(get_db_client)):
    return MembershipApplicationOut.model_validate(_found(db.get_application(app_id)))


@router.get("/membership-applications/{app_id}/export")
def export_application(app_id: str, db: DbClient = Depends(get_db_client)):
    record = _found(db.get_application(app_id))
    return _xlsx(
        [export.format_application(record)],
        export.APPLICATION_COLUMNS,
        f"abalat_{record.id}.xlsx",
    )


@router.patch(
    "/membership-applications/{app_id}/status",
    response_model=MembershipApplicationOut,
)
def update_application_status(
    app_id: str,
    payload: StatusUpdateIn,
    db: DbClient = Depends(get_db_client),
):
    record = _found(db.update_application_status(app_id, payload.status))
    logger.info("Application %s marked %s", app_id, payload.status)
    return MembershipApplicationOut.model_validate(record)


@router.get("/qreta", response_model=list[QretaOut])
def list_qreta(q: str = Query(""), db: DbClient = Depends(get_db_client)):
    rows = search_submissions(db.list_qreta(), q, QRETA_SEARCH_FIELDS)
    return [QretaOut.model_validate(r) for r in rows]


@router.get("/qreta/export")
def export_qreta(q: str = Query(""), db: DbClient = Depends(get_db_client)):
    rows = search_submissions(db.list_qreta(), q, QRETA_SEARCH_FIELDS)
    return _xlsx(
        [export.format_qreta(r) for r in rows],
        export.QRETA_COLUMNS,
        "qreta_submissions.xlsx",
    )


@router.get("/qreta/{qreta_id}", response_model=QretaOut)
def get_qreta(qreta_id: str, db: DbClient = Depends(get_db_client)):
    return QretaOut.model_validate(_found(db.get_qreta(qreta_id)))


@router.get("/qreta/{qreta_id}/export")
def export_single_qreta(qreta_id: str, db: DbClient = Depends(get_db_client)):
    record = _found(db.get_qreta(qreta_id))
    return _xlsx(
        [export.format_qreta(record)], export.QRETA_COLUMNS, f"qreta_{record.id}.xlsx"
    )


@router.get("/reports", response_model=list[ReportOut])
def list_reports(q: str = Query(""), db: DbClient = Depends(get_db_client)):
    rows = search_submissions(db.list_reports(), q, REPORT_SEARCH_FIELDS)
    return [ReportOut.model_validate(r) for r in rows]


@router.get("/reports/export")
def export_reports(q: str = Query(""), db: DbClient = Depends(get_db_client)):
    rows = search_submissions(db.list_reports(), q, REPORT_SEARCH_FIELDS)
    return _csv(
        [export.format_report(r) for r in rows],
        export.REPORT_COLUMNS,
        "report_submissions.csv",
    )


@router.get("/reports/{report_id}", response_model=ReportOut)
def get_report(report_id: str, db: DbClient = Depends(get_db_client)):
    return ReportOut.model_validate(_found(db.get_report(report_id)))


@router.get("/reports/{report_id}/export")
def export_single_report(report_id: str, db: DbClient = Depends(get_db_client)):
    record = _found(db.get_report(report_id))
    return _csv(
        [export.format_report(record)], export.REPORT_COLUMNS, f"report_{record.id}.csv"
    )


@router.get("/admins", response_model=AdminListResponse)
def list_admins(db: DbClient = Depends(get_db_client)):
    return AdminListResponse(admins=[a.email for a in db.list_admins()])


@router.post("/admins", response_model=AdminCreateResponse, status_code=201)
def create_admin(
    payload: AdminCreateIn,
    response: Response,
    db: DbClient = Depends(get_db_client),
):
    outcome = ensure_admin(db, payload.email, payload.password)
    if outcome == "exists":
        response.status_code = 200
        text = message("admin_exists")
    else:
        text = message("admin_created")
    return AdminCreateResponse(status=outcome, email=payload.email.lower(), message=text)
