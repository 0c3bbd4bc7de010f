"""Record of every report an admin has generated."""

from datetime import date
from typing import Optional

from sqlalchemy import JSON, Date, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from messmate.models.base import TimestampModel, enum_column
from messmate.models.enums import ExportFormat, ReportType


class Report(TimestampModel):
    __tablename__ = "reports"

    report_type: Mapped[ReportType] = mapped_column(enum_column(ReportType), nullable=False, index=True)
    format: Mapped[ExportFormat] = mapped_column(enum_column(ExportFormat), nullable=False)
    date_from: Mapped[Optional[date]] = mapped_column(Date)
    date_to: Mapped[Optional[date]] = mapped_column(Date)
    generated_by_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    summary: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
