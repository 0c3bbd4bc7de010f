"""Report generation, history and downloads (admin only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from messmate.api import deps
from messmate.core.pagination import PaginationParams, pagination_meta
from messmate.models.enums import ExportFormat, ReportType
from messmate.models.user import User
from messmate.schemas.common import SuccessResponse
from messmate.schemas.report import ReportRecordResponse, ReportRequest
from messmate.services.report_service import ReportFile, ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def _respond(report, message: Optional[str] = None):
    if isinstance(report, ReportFile):
        return Response(
            content=report.content,
            media_type=report.media_type,
            headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
        )
    return SuccessResponse.create(message=message, data=report)


@router.post("/generate")
def generate_report(
    payload: ReportRequest,
    admin: User = Depends(deps.require_admin),
    report_service: ReportService = Depends(deps.get_report_service),
):
    report = report_service.generate(
        payload.report_type, payload.format, payload.date_from, payload.date_to, generated_by=admin
    )
    return _respond(report, "Report generated successfully")


@router.get("/history")
def report_history(
    report_type: Optional[ReportType] = Query(None, alias="type"),
    params: PaginationParams = Depends(deps.get_pagination),
    admin: User = Depends(deps.require_admin),
    report_service: ReportService = Depends(deps.get_report_service),
):
    reports, total = report_service.history(params, report_type)
    return SuccessResponse.create(
        data=[ReportRecordResponse.model_validate(r) for r in reports],
        pagination=pagination_meta(params, total),
    )


@router.get("/users/download")
def download_users(
    export_format: ExportFormat = Query(ExportFormat.CSV, alias="format"),
    admin: User = Depends(deps.require_admin),
    report_service: ReportService = Depends(deps.get_report_service),
):
    return _respond(report_service.generate(ReportType.USERS, export_format, generated_by=admin))


@router.get("/{report_id}/download")
def download_report(
    report_id: str,
    export_format: Optional[ExportFormat] = Query(None, alias="format"),
    admin: User = Depends(deps.require_admin),
    report_service: ReportService = Depends(deps.get_report_service),
):
    return _respond(report_service.regenerate(report_id, export_format, admin))
