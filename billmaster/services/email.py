from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from billmaster.core.config import APP_NAME, FROM_EMAIL, SENDGRID_API_KEY, SENDGRID_API_URL
from billmaster.core.errors import ServiceUnavailable, UpstreamError, ValidationError
from billmaster.services.pdf import format_currency, format_long_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str


HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: Arial, sans-serif; color: #333; line-height: 1.6; }}
    .header {{ background-color: #f8f9fa; padding: 20px; text-align: center; }}
    .content {{ padding: 20px; }}
    .invoice-details {{ background-color: #f8f9fa; padding: 15px; margin: 20px 0; border-radius: 5px; }}
    .footer {{ background-color: #e9ecef; padding: 15px; text-align: center; font-size: 12px; color: #6c757d; }}
    .total {{ font-size: 18px; font-weight: bold; color: #198754; }}
  </style>
</head>
<body>
  <div class="header">
    <h1>Invoice {number}</h1>
    <p>{app_name}</p>
  </div>
  <div class="content">
    <p>Dear {customer_name},</p>
    <p>Thank you for your business! Please find your invoice details below:</p>
    <div class="invoice-details">
      <h3>Invoice Details</h3>
      <p><strong>Invoice Number:</strong> {number}</p>
      <p><strong>Customer:</strong> {customer_name}</p>
      <p><strong>Email:</strong> {customer_email}</p>
      <p><strong>Due Date:</strong> {due_date}</p>
      <p class="total"><strong>Total Amount:</strong> {total}</p>
    </div>
    <p>To view the full invoice details or download a PDF copy, please log into your {app_name} account.</p>
    <p>If you have any questions about this invoice, please don't hesitate to contact us.</p>
    <p>Best regards,<br>{app_name} Team</p>
  </div>
  <div class="footer">
    <p>This is an automated email from {app_name}. Please do not reply to this email.</p>
  </div>
</body>
</html>
"""

TEXT_TEMPLATE = """Invoice {number} from {app_name}

Dear {customer_name},

Thank you for your business! Please find your invoice details below:

Invoice Number: {number}
Customer: {customer_name}
Email: {customer_email}
Due Date: {due_date}
Total Amount: {total}

To view the full invoice details or download a PDF copy, please log into your {app_name} account.

If you have any questions about this invoice, please don't hesitate to contact us.

Best regards,
{app_name} Team

---
This is an automated email from {app_name}. Please do not reply to this email.
"""


def build_invoice_email(invoice: Any) -> EmailMessage:
    """Monta assunto/HTML/texto da fatura; valores dinâmicos escapados no HTML."""
    customer = getattr(invoice, "customer", None)
    to_address = (getattr(customer, "email", None) or "").strip()
    if not to_address:
        raise ValidationError("Customer has no email address")

    values = {
        "number": str(invoice.invoice_number),
        "customer_name": customer.name or "",
        "customer_email": to_address,
        "due_date": format_long_date(invoice.due_date),
        "total": format_currency(invoice.total),
        "app_name": APP_NAME,
    }
    subject = "Invoice {number} from {app_name}".format(**values)
    text_body = TEXT_TEMPLATE.format(**values)
    html_body = HTML_TEMPLATE.format(**{key: html.escape(value) for key, value in values.items()})
    return EmailMessage(to=to_address, subject=subject, text=text_body, html=html_body)


class SendGridMailer:
    """Cliente mínimo da API v3 do SendGrid (uma tentativa, sem retry)."""

    TIMEOUT_SECONDS = 20.0

    def __init__(
        self,
        api_key: str = SENDGRID_API_KEY,
        from_email: str = FROM_EMAIL,
        api_url: str = SENDGRID_API_URL,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.api_url = api_url
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, message: EmailMessage) -> None:
        if not self.configured:
            logger.warning("email send skipped: SENDGRID_API_KEY not set")
            raise ServiceUnavailable("Email service not configured")

        payload = {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self.from_email},
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.text},
                {"type": "text/html", "value": message.html},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=self.TIMEOUT_SECONDS, transport=self.transport) as client:
                response = client.post(self.api_url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.error("sendgrid request failed: %s", exc)
            raise UpstreamError("Failed to send email") from exc

        if not 200 <= response.status_code < 300:
            logger.error("sendgrid rejected message status=%s body=%s", response.status_code, response.text[:500])
            raise UpstreamError("Failed to send email")

        logger.info("email sent subject=%s", message.subject)


def get_mailer() -> SendGridMailer:
    return SendGridMailer()


def send_invoice_email(invoice: Any, mailer: SendGridMailer) -> EmailMessage:
    if not mailer.configured:
        raise ServiceUnavailable("Email service not configured")
    message = build_invoice_email(invoice)
    mailer.send(message)
    return message
