"""Report request and history schemas."""

from datetime import date, datetime
from typing import Any, Dict, Optional

from messmate.models.enums import ExportFormat, ReportType
from messmate.schemas.common import BaseSchema


class ReportRequest(BaseSchema):
    report_type: ReportType
    format: ExportFormat = ExportFormat.JSON
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class ReportRecordResponse(BaseSchema):
    id: str
    report_type: ReportType
    format: ExportFormat
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    generated_by_id: Optional[str] = None
    row_count: int
    summary: Dict[str, Any]
    created_at: datetime
