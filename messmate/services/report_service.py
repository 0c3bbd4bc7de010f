"""
Admin reports exported as JSON, CSV or PDF.
"""

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from messmate.core.exceptions import ValidationError
from messmate.core.pagination import PaginationParams
from messmate.models.base import utcnow
from messmate.models.booking import Booking
from messmate.models.enums import ExportFormat, PaymentStatus, ReportType, Sentiment, UserRole
from messmate.models.feedback import Feedback
from messmate.models.inventory import InventoryItem
from messmate.models.report import Report
from messmate.models.user import User
from messmate.repositories.report_repository import ReportRepository
from messmate.services.base_service import BaseService, track_performance
from messmate.utils.pdf import PDFGenerator


@dataclass
class ReportFile:
    filename: str
    media_type: str
    content: bytes


COLUMNS: Dict[ReportType, List[Tuple[str, str]]] = {
    ReportType.USERS: [
        ("name", "Name"),
        ("email", "Email"),
        ("student_id", "Student ID"),
        ("department", "Department"),
        ("role", "Role"),
        ("wallet_balance", "Wallet Balance"),
        ("total_bookings", "Bookings"),
        ("total_spent", "Total Spent"),
        ("is_active", "Active"),
        ("created_at", "Joined"),
    ],
    ReportType.SALES: [
        ("booking_id", "Booking ID"),
        ("booking_date", "Date"),
        ("meal_type", "Meal"),
        ("menu_item", "Item"),
        ("user", "User"),
        ("quantity", "Qty"),
        ("final_amount", "Amount"),
        ("status", "Status"),
        ("payment_status", "Payment"),
    ],
    ReportType.INVENTORY: [
        ("item_code", "Code"),
        ("item_name", "Item"),
        ("category", "Category"),
        ("current_stock", "Stock"),
        ("unit", "Unit"),
        ("reorder_level", "Reorder Level"),
        ("unit_price", "Unit Price"),
        ("total_value", "Value"),
        ("stock_status", "Status"),
        ("expiry_date", "Expiry"),
    ],
    ReportType.FEEDBACK: [
        ("feedback_id", "Feedback ID"),
        ("created_at", "Date"),
        ("feedback_type", "Type"),
        ("user", "User"),
        ("rating_overall", "Rating"),
        ("sentiment", "Sentiment"),
        ("status", "Status"),
        ("comment", "Comment"),
    ],
}

MEDIA_TYPES = {ExportFormat.CSV: "text/csv", ExportFormat.PDF: "application/pdf"}


def _value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class ReportService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.pdf = PDFGenerator()
        self.reports = ReportRepository(db)

    @track_performance("generate_report")
    def generate(
        self,
        report_type: ReportType,
        export_format: ExportFormat = ExportFormat.JSON,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        generated_by: Optional[User] = None,
    ):
        """
        Build a report.

        Returns a dict for JSON, otherwise a ``ReportFile`` ready to stream.
        With ``generated_by`` the run is kept in the report history.
        """
        if date_from and date_to and date_from > date_to:
            raise ValidationError(
                "Invalid date range", field_errors={"date_from": ["must not be after date_to"]}
            )

        builders = {
            ReportType.USERS: self._users,
            ReportType.SALES: self._sales,
            ReportType.INVENTORY: self._inventory,
            ReportType.FEEDBACK: self._feedback,
        }
        rows, summary = builders[report_type](date_from, date_to)
        if generated_by is not None:
            with self.transaction():
                self.reports.create(
                    report_type=report_type,
                    format=export_format,
                    date_from=date_from,
                    date_to=date_to,
                    generated_by_id=generated_by.id,
                    row_count=len(rows),
                    summary=summary,
                )
        self._logger.info(
            "Report generated",
            extra={"report_type": report_type.value, "format": export_format.value, "rows": len(rows)},
        )

        if export_format == ExportFormat.JSON:
            return {
                "report_type": report_type.value,
                "generated_at": utcnow().isoformat(),
                "date_from": date_from.isoformat() if date_from else None,
                "date_to": date_to.isoformat() if date_to else None,
                "summary": summary,
                "rows": rows,
            }

        stamp = utcnow().strftime("%Y%m%d%H%M%S")
        filename = f"{report_type.value}_report_{stamp}.{export_format.value}"
        if export_format == ExportFormat.CSV:
            content = self._to_csv(report_type, rows)
        else:
            content = self._to_pdf(report_type, rows, summary, date_from, date_to)
        return ReportFile(filename=filename, media_type=MEDIA_TYPES[export_format], content=content)

    def history(
        self, params: PaginationParams, report_type: Optional[ReportType] = None
    ) -> Tuple[List[Report], int]:
        return self.reports.history(params, report_type)

    def regenerate(self, report_id: str, export_format: Optional[ExportFormat], admin: User):
        """Rebuild a past report over its original range, from current data."""
        report = self.reports.get_or_404(report_id)
        return self.generate(
            ReportType(report.report_type),
            export_format or ExportFormat(report.format),
            report.date_from,
            report.date_to,
            generated_by=admin,
        )

    # ==================== Builders ====================

    @staticmethod
    def _datetime_bounds(date_from: Optional[date], date_to: Optional[date]):
        start = datetime.combine(date_from, time.min) if date_from else None
        end = datetime.combine(date_to + timedelta(days=1), time.min) if date_to else None
        return start, end

    def _users(self, date_from, date_to):
        start, end = self._datetime_bounds(date_from, date_to)
        stmt = select(User)
        if start:
            stmt = stmt.where(User.created_at >= start)
        if end:
            stmt = stmt.where(User.created_at < end)
        users = self.db.scalars(stmt.order_by(User.created_at)).all()
        rows = [
            {key: _value(getattr(u, key)) for key, _ in COLUMNS[ReportType.USERS]}
            for u in users
        ]
        summary = {
            "total_users": len(users),
            "students": sum(1 for u in users if u.role == UserRole.STUDENT),
            "active": sum(1 for u in users if u.is_active),
            "total_wallet_balance": float(sum((Decimal(u.wallet_balance) for u in users), Decimal("0"))),
        }
        return rows, summary

    def _sales(self, date_from, date_to):
        stmt = select(Booking).options(selectinload(Booking.user), selectinload(Booking.menu_item))
        if date_from:
            stmt = stmt.where(Booking.booking_date >= date_from)
        if date_to:
            stmt = stmt.where(Booking.booking_date <= date_to)
        bookings = self.db.scalars(stmt.order_by(Booking.booking_date, Booking.created_at)).all()
        rows = []
        for b in bookings:
            rows.append(
                {
                    "booking_id": b.booking_id,
                    "booking_date": _value(b.booking_date),
                    "meal_type": _value(b.meal_type),
                    "menu_item": b.menu_item.name if b.menu_item else None,
                    "user": b.user.name if b.user else None,
                    "quantity": b.quantity,
                    "final_amount": _value(b.final_amount),
                    "status": _value(b.status),
                    "payment_status": _value(b.payment_status),
                }
            )
        paid = [b for b in bookings if b.payment_status == PaymentStatus.PAID]
        summary = {
            "total_bookings": len(bookings),
            "paid_bookings": len(paid),
            "total_revenue": float(sum((Decimal(b.final_amount) for b in paid), Decimal("0"))),
        }
        return rows, summary

    def _inventory(self, date_from, date_to):
        items = self.db.scalars(
            select(InventoryItem).where(InventoryItem.is_active.is_(True)).order_by(InventoryItem.item_name)
        ).all()
        rows = [
            {key: _value(getattr(i, key)) for key, _ in COLUMNS[ReportType.INVENTORY]}
            for i in items
        ]
        summary = {
            "total_items": len(items),
            "total_value": float(sum((i.total_value for i in items), Decimal("0"))),
            "needs_reorder": sum(1 for i in items if Decimal(i.current_stock) <= Decimal(i.reorder_level)),
        }
        return rows, summary

    def _feedback(self, date_from, date_to):
        start, end = self._datetime_bounds(date_from, date_to)
        stmt = select(Feedback).options(selectinload(Feedback.user))
        if start:
            stmt = stmt.where(Feedback.created_at >= start)
        if end:
            stmt = stmt.where(Feedback.created_at < end)
        entries = self.db.scalars(stmt.order_by(Feedback.created_at)).all()
        rows = []
        for f in entries:
            rows.append(
                {
                    "feedback_id": f.feedback_id,
                    "created_at": _value(f.created_at),
                    "feedback_type": _value(f.feedback_type),
                    "user": "Anonymous" if f.is_anonymous else (f.user.name if f.user else None),
                    "rating_overall": f.rating_overall,
                    "sentiment": _value(f.sentiment),
                    "status": _value(f.status),
                    "comment": f.comment,
                }
            )
        ratings = [f.rating_overall for f in entries]
        summary = {
            "total_feedback": len(entries),
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
            "positive": sum(1 for f in entries if f.sentiment == Sentiment.POSITIVE),
            "negative": sum(1 for f in entries if f.sentiment == Sentiment.NEGATIVE),
        }
        return rows, summary

    # ==================== Rendering ====================

    @staticmethod
    def _to_csv(report_type: ReportType, rows: List[Dict[str, Any]]) -> bytes:
        columns = COLUMNS[report_type]
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([label for _, label in columns])
        for row in rows:
            writer.writerow(["" if row.get(key) is None else row.get(key) for key, _ in columns])
        return buffer.getvalue().encode("utf-8")

    def _to_pdf(self, report_type, rows, summary, date_from, date_to) -> bytes:
        columns = COLUMNS[report_type]
        header_info: Dict[str, Any] = {"Generated": utcnow().strftime("%Y-%m-%d %H:%M UTC")}
        if date_from or date_to:
            header_info["Period"] = f"{date_from or '...'} to {date_to or '...'}"
        header_info.update({key.replace("_", " ").title(): value for key, value in summary.items()})
        return self.pdf.table_report(
            f"{report_type.value.title()} Report",
            [label for _, label in columns],
            [[row.get(key) for key, _ in columns] for row in rows],
            header_info,
        )
