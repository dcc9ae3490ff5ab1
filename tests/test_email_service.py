import json
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest

from billmaster.core.errors import ServiceUnavailable, UpstreamError, ValidationError
from billmaster.services.email import SendGridMailer, build_invoice_email, get_mailer, send_invoice_email
from tests.fixtures_data import invoice_payload


def _invoice(**customer):
    return SimpleNamespace(
        invoice_number="INV-<7>",
        due_date=date(2025, 2, 4),
        total=Decimal("1234.5"),
        customer=SimpleNamespace(
            name=customer.get("name", "Jane <script>alert(1)</script>"),
            email=customer.get("email", "jane@buyer.example.com"),
        ),
    )


def test_invoice_email_escapes_dynamic_values():
    message = build_invoice_email(_invoice())

    assert "<script>" not in message.html
    assert "&lt;script&gt;" in message.html
    assert "INV-&lt;7&gt;" in message.html
    assert message.subject.startswith("Invoice INV-<7> from ")
    assert "$1,234.50" in message.text
    assert "February 4, 2025" in message.html
    assert message.to == "jane@buyer.example.com"


def test_invoice_email_requires_customer_address():
    with pytest.raises(ValidationError):
        build_invoice_email(_invoice(email=""))


def test_unconfigured_mailer_refuses_to_send():
    mailer = SendGridMailer(api_key="")

    with pytest.raises(ServiceUnavailable):
        send_invoice_email(_invoice(), mailer)


def test_mailer_posts_sendgrid_payload():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(202)

    mailer = SendGridMailer(api_key="sg-key", from_email="billing@example.com", transport=httpx.MockTransport(handler))

    message = send_invoice_email(_invoice(), mailer)

    assert captured["auth"] == "Bearer sg-key"
    assert captured["body"]["personalizations"] == [{"to": [{"email": "jane@buyer.example.com"}]}]
    assert captured["body"]["from"] == {"email": "billing@example.com"}
    assert captured["body"]["subject"] == message.subject
    assert [part["type"] for part in captured["body"]["content"]] == ["text/plain", "text/html"]


def test_mailer_maps_provider_rejection_to_upstream_error():
    mailer = SendGridMailer(
        api_key="sg-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(401, json={"errors": ["bad key"]})),
    )

    with pytest.raises(UpstreamError):
        send_invoice_email(_invoice(), mailer)


def test_mailer_maps_transport_failure_to_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    mailer = SendGridMailer(api_key="sg-key", transport=httpx.MockTransport(handler))

    with pytest.raises(UpstreamError):
        send_invoice_email(_invoice(), mailer)


def test_email_endpoint_sends_through_configured_mailer(client, seeded, auth):
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(202)

    client.app.dependency_overrides[get_mailer] = lambda: SendGridMailer(
        api_key="sg-key", transport=httpx.MockTransport(handler)
    )
    created = client.post(
        "/api/invoices",
        json=invoice_payload(seeded.customer_a_id, seeded.widget_a_id, seeded.service_a_id),
        headers=auth("admin_a"),
    ).json()

    response = client.post(f"/api/invoices/{created['id']}/email", headers=auth("user_a"))

    assert response.status_code == 200
    assert response.json() == {"sent": True, "to": "jane@buyer.example.com"}
    assert sent[0]["subject"].startswith("Invoice INV-0001")


def test_email_endpoint_reports_provider_failure(client, seeded, auth):
    client.app.dependency_overrides[get_mailer] = lambda: SendGridMailer(
        api_key="sg-key", transport=httpx.MockTransport(lambda request: httpx.Response(500))
    )
    created = client.post(
        "/api/invoices",
        json=invoice_payload(seeded.customer_a_id, seeded.widget_a_id, seeded.service_a_id),
        headers=auth("admin_a"),
    ).json()

    response = client.post(f"/api/invoices/{created['id']}/email", headers=auth("admin_a"))

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to send email"
