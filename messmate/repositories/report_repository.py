"""Generated report records."""

from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from messmate.core.pagination import PaginationParams
from messmate.models.enums import ReportType
from messmate.models.report import Report
from messmate.repositories.base_repository import BaseRepository


class ReportRepository(BaseRepository[Report]):
    resource_name = "Report"

    def __init__(self, db: Session):
        super().__init__(Report, db)

    def history(
        self, params: PaginationParams, report_type: Optional[ReportType] = None
    ) -> Tuple[List[Report], int]:
        stmt = select(Report)
        if report_type is not None:
            stmt = stmt.where(Report.report_type == report_type)
        return self.paginate(stmt.order_by(Report.created_at.desc()), params)
