import io
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from openpyxl import load_workbook

from billmaster.core.errors import ValidationError
from billmaster.services.reports import (
    UNKNOWN_CUSTOMER,
    aggregate_sales,
    collection_rate,
    render_sales_report,
)
from tests.fixtures_data import invoice_payload


def _invoice(customer_id, total, status, number="INV-1"):
    return SimpleNamespace(
        customer_id=customer_id,
        invoice_number=number,
        date=date(2025, 1, 5),
        due_date=date(2025, 2, 4),
        subtotal=Decimal(total),
        tax=Decimal("0"),
        total=Decimal(total),
        status=status,
    )


CUSTOMERS = [SimpleNamespace(id="c1", name="Jane Buyer"), SimpleNamespace(id="c2", name="Bob Other")]


def test_collection_rate_guards_zero_revenue():
    assert collection_rate(0, 0) == 0.0
    assert collection_rate(Decimal("10"), Decimal("0")) == 0.0
    assert collection_rate(Decimal("1"), Decimal("3")) == 33.3


def test_aggregate_sales_groups_by_customer():
    invoices = [
        _invoice("c1", "100.00", "paid"),
        _invoice("c1", "50.00", "pending", number="INV-2"),
        _invoice("c2", "200.00", "overdue", number="INV-3"),
        _invoice("gone", "10.00", "cancelled", number="INV-4"),
    ]

    report = aggregate_sales(invoices, CUSTOMERS)

    assert report.summary.total_revenue == Decimal("360.00")
    assert report.summary.paid_revenue == Decimal("100.00")
    assert report.summary.pending_revenue == Decimal("50.00")
    assert report.summary.invoice_count == 4
    assert [row.customer_name for row in report.by_customer] == ["Bob Other", "Jane Buyer", UNKNOWN_CUSTOMER]
    jane = report.by_customer[1]
    assert jane.invoice_count == 2
    assert jane.collection_rate == 66.7


def test_aggregate_sales_with_no_invoices():
    report = aggregate_sales([], CUSTOMERS)

    assert report.by_customer == ()
    assert report.summary.collection_rate == 0.0


def test_render_pdf_report():
    content = render_sales_report([_invoice("c1", "100.00", "paid")], CUSTOMERS, "pdf")

    assert content.startswith(b"%PDF")


def test_render_spreadsheet_report():
    invoices = [_invoice("c1", "100.00", "paid"), _invoice("c2", "20.00", "pending", number="INV-2")]

    content = render_sales_report(invoices, CUSTOMERS, "spreadsheet", generated_on=date(2025, 3, 1))

    workbook = load_workbook(io.BytesIO(content))
    assert workbook.sheetnames == ["Summary", "Invoices"]
    invoices_sheet = workbook["Invoices"]
    assert [cell.value for cell in invoices_sheet[1]][:3] == ["Invoice Number", "Customer", "Date"]
    assert invoices_sheet.max_row == 3


def test_spreadsheet_without_invoices_has_only_summary():
    content = render_sales_report([], CUSTOMERS, "spreadsheet")

    assert load_workbook(io.BytesIO(content)).sheetnames == ["Summary"]


def test_unknown_report_format_is_rejected():
    with pytest.raises(ValidationError):
        render_sales_report([], CUSTOMERS, "csv")


def _seed_invoice(client, seeded, auth):
    created = client.post(
        "/api/invoices",
        json=invoice_payload(seeded.customer_a_id, seeded.widget_a_id, seeded.service_a_id),
        headers=auth("admin_a"),
    ).json()
    client.put(f"/api/invoices/{created['id']}", json={"status": "paid"}, headers=auth("admin_a"))
    return created


def test_sales_report_endpoint(client, seeded, auth):
    _seed_invoice(client, seeded, auth)

    response = client.get("/api/reports/sales", headers=auth("manager_a"))

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["totalRevenue"] == 27.0
    assert body["summary"]["collectionRate"] == 100.0
    assert body["byCustomer"][0]["customerName"] == "Jane Buyer"


def test_sales_report_is_company_scoped(client, seeded, auth):
    _seed_invoice(client, seeded, auth)

    own = client.get("/api/reports/sales", headers=auth("admin_b"))
    foreign = client.get("/api/reports/sales", params={"companyId": seeded.company_a_id}, headers=auth("admin_b"))

    assert own.json()["summary"]["invoiceCount"] == 0
    assert foreign.status_code == 403


def test_plain_user_cannot_read_reports(client, seeded, auth):
    response = client.get("/api/reports/sales", headers=auth("user_a"))

    assert response.status_code == 403


def test_export_spreadsheet_endpoint(client, seeded, auth):
    _seed_invoice(client, seeded, auth)

    response = client.get("/api/reports/sales/export", params={"format": "spreadsheet"}, headers=auth("admin_a"))

    assert response.status_code == 200
    assert '.xlsx"; filename*=UTF-8' in response.headers["content-disposition"]
    assert load_workbook(io.BytesIO(response.content))["Invoices"].max_row == 2


def test_export_pdf_endpoint(client, seeded, auth):
    response = client.get("/api/reports/sales/export", headers=auth("admin_a"))

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_export_bad_format_returns_400(client, seeded, auth):
    response = client.get("/api/reports/sales/export", params={"format": "csv"}, headers=auth("admin_a"))

    assert response.status_code == 400
