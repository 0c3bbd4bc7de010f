import csv
import io
from datetime import timedelta

import pytest

from messmate.core.exceptions import ValidationError
from messmate.core.pagination import PaginationParams
from messmate.models import utcnow
from messmate.services.feedback_service import FeedbackService
from messmate.models.enums import ExportFormat, ReportType
from messmate.services.report_service import ReportFile, ReportService


def _generate(client, headers, **payload):
    return client.post("/api/reports/generate", json=payload, headers=headers)


def test_json_users_report(client, student, other_student, admin_headers):
    response = _generate(client, admin_headers, report_type="users")

    data = response.json()["data"]
    assert data["report_type"] == "users"
    assert data["summary"]["total_users"] == 3
    assert data["summary"]["students"] == 2
    assert {row["email"] for row in data["rows"]} == {
        "student@example.com",
        "other@example.com",
        "admin@example.com",
    }


def test_sales_report_counts_paid_revenue(client, admin_headers, student_headers, menu_item):
    booking = client.post("/api/bookings/", json={"menu_item_id": menu_item.id}, headers=student_headers).json()["data"]
    client.post("/api/bookings/", json={"menu_item_id": menu_item.id}, headers=student_headers)
    client.patch(f"/api/bookings/{booking['id']}/cancel", headers=student_headers)

    data = _generate(client, admin_headers, report_type="sales").json()["data"]

    assert data["summary"] == {"total_bookings": 2, "paid_bookings": 1, "total_revenue": 100.0}
    assert {row["menu_item"] for row in data["rows"]} == {"Veg Thali"}


def test_csv_download(client, inventory_item, admin_headers):
    response = _generate(client, admin_headers, report_type="inventory", format="csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "inventory_report_" in response.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][:2] == ["Code", "Item"]
    assert rows[1][0] == "RICE01"


def test_pdf_download(client, student, admin_headers):
    response = client.get("/api/reports/users/download?format=pdf", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_feedback_report_hides_anonymous_authors(db_session, student, admin):
    FeedbackService(db_session).create(student, {"rating_overall": 3, "comment": "ok", "is_anonymous": True})

    report = ReportService(db_session).generate(ReportType.FEEDBACK)

    assert report["rows"][0]["user"] == "Anonymous"
    assert report["summary"]["total_feedback"] == 1


def test_file_report_type(db_session, admin):
    report = ReportService(db_session).generate(ReportType.USERS, ExportFormat.CSV)

    assert isinstance(report, ReportFile)
    assert report.filename.endswith(".csv")


def test_invalid_date_range(db_session):
    today = utcnow().date()
    with pytest.raises(ValidationError):
        ReportService(db_session).generate(ReportType.SALES, date_from=today, date_to=today - timedelta(days=1))


def test_reports_are_admin_only(client, student_headers):
    assert _generate(client, student_headers, report_type="users").status_code == 403


def test_generated_reports_are_listed_in_history(client, student, admin, admin_headers):
    today = utcnow().date()
    _generate(client, admin_headers, report_type="users")
    _generate(client, admin_headers, report_type="sales", format="csv", date_from=today.isoformat())

    body = client.get("/api/reports/history", headers=admin_headers).json()
    sales_only = client.get("/api/reports/history?type=sales", headers=admin_headers).json()

    assert body["pagination"]["total"] == 2
    assert {(r["report_type"], r["format"]) for r in body["data"]} == {("users", "json"), ("sales", "csv")}
    assert body["data"][0]["generated_by_id"] == admin.id
    assert [r["date_from"] for r in sales_only["data"]] == [today.isoformat()]


def test_history_entry_can_be_downloaded_again(client, student, admin_headers):
    _generate(client, admin_headers, report_type="users")
    [entry] = client.get("/api/reports/history", headers=admin_headers).json()["data"]

    as_json = client.get(f"/api/reports/{entry['id']}/download", headers=admin_headers)
    as_csv = client.get(f"/api/reports/{entry['id']}/download?format=csv", headers=admin_headers)

    assert as_json.json()["data"]["summary"]["total_users"] == entry["summary"]["total_users"]
    assert as_csv.headers["content-type"].startswith("text/csv")
    assert client.get("/api/reports/missing/download", headers=admin_headers).status_code == 404


def test_service_only_records_runs_with_an_author(db_session, admin):
    service = ReportService(db_session)
    service.generate(ReportType.INVENTORY)
    service.generate(ReportType.INVENTORY, generated_by=admin)

    assert service.history(PaginationParams(page=1, limit=10))[1] == 1
