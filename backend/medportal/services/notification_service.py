"""
Patient and staff notifications: payment links, payment confirmations,
low-stock alerts.

DELIVERY IS BEST-EFFORT: every public function returns True/False and logs
failures instead of raising, so a mail or SMS outage never fails an order
or a webhook.
"""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, List, Optional

from medportal.core.config import settings
from medportal.services import sms_service

logger = logging.getLogger(__name__)

SENDGRID_SMTP_HOST = "smtp.sendgrid.net"
SENDGRID_SMTP_PORT = 587
SMTP_TIMEOUT_SECONDS = 15


def format_amount(cents: int) -> str:
    return f"{cents / 100:.2f}"


def _smtp_settings() -> Optional[dict]:
    """Resolve SMTP credentials, falling back to the SendGrid relay when only an API key is set."""
    if settings.SMTP_HOST and settings.SMTP_USER and (settings.SMTP_PASS or settings.SENDGRID_API_KEY):
        return {
            "host": settings.SMTP_HOST,
            "port": settings.SMTP_PORT,
            "user": settings.SMTP_USER,
            "password": settings.SMTP_PASS or settings.SENDGRID_API_KEY,
        }
    if settings.SENDGRID_API_KEY:
        return {
            "host": SENDGRID_SMTP_HOST,
            "port": SENDGRID_SMTP_PORT,
            "user": "apikey",
            "password": settings.SENDGRID_API_KEY,
        }
    return None


def send_email(to: str, subject: str, html_body: str) -> bool:
    smtp = _smtp_settings()
    if smtp is None:
        logger.warning(
            f"No SMTP configuration found; email '{subject}' to {to} not sent. "
            "Set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS and EMAIL_FROM"
        )
        return False

    sender = settings.EMAIL_FROM or smtp["user"]
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = to
    msg.attach(MIMEText(html_body, "html"))

    try:
        if smtp["port"] == 465:
            server = smtplib.SMTP_SSL(smtp["host"], smtp["port"], timeout=SMTP_TIMEOUT_SECONDS)
        else:
            server = smtplib.SMTP(smtp["host"], smtp["port"], timeout=SMTP_TIMEOUT_SECONDS)
            server.starttls()
        with server:
            server.login(smtp["user"], smtp["password"])
            server.sendmail(sender, [to], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email '{subject}' to {to}: {e}")
        return False

    logger.info(f"Email '{subject}' sent to {to}")
    return True


# ==============================================================================
# TEMPLATES
# ==============================================================================

_STYLE = """
  body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
  .container { max-width: 600px; margin: 0 auto; padding: 20px; }
  .header { background-color: #f8f9fa; padding: 20px; text-align: center; }
  .header.success { background-color: #28a745; color: white; }
  .button { display: inline-block; padding: 12px 24px; background-color: #007bff;
            color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }
  .order-table { width: 100%; border-collapse: collapse; margin: 20px 0; }
  .order-table th { background-color: #f8f9fa; padding: 12px; text-align: left; border-bottom: 2px solid #dee2e6; }
  .order-table td { padding: 8px; border-bottom: 1px solid #dee2e6; }
  .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #dee2e6; font-size: 14px; color: #6c757d; }
"""


def payment_link_email(patient_name: str, amount: str, checkout_url: str, order_id: str) -> str:
    url = html.escape(checkout_url, quote=True)
    return f"""<!DOCTYPE html>
<html><head><style>{_STYLE}</style></head>
<body><div class="container">
  <div class="header"><h1>Medical Order Payment</h1></div>
  <p>Dear {html.escape(patient_name)},</p>
  <p>Your medical order is ready for payment. The total amount is <strong>${amount}</strong>.</p>
  <p>Please click the button below to complete your secure payment:</p>
  <p style="text-align: center;"><a href="{url}" class="button">Complete Payment</a></p>
  <p>Or copy and paste this link into your browser:</p>
  <p style="word-break: break-all;">{url}</p>
  <p><strong>Order ID:</strong> {html.escape(order_id)}</p>
  <p>This payment link will expire in {settings.CHECKOUT_TOKEN_EXPIRE_HOURS} hours. If you have any questions,
     please contact your healthcare provider.</p>
  <div class="footer">
    <p>This is an automated message. Please do not reply to this email.</p>
    <p>Your payment information is secured by Stripe. We never store your credit card details.</p>
  </div>
</div></body></html>"""


def payment_confirmation_email(patient_name: str, order_id: str, amount: str, items: List[dict]) -> str:
    rows = "".join(
        f"<tr><td>{html.escape(item['name'])}</td>"
        f"<td style=\"text-align: center;\">{item['quantity']}</td>"
        f"<td style=\"text-align: right;\">${format_amount(item['price_cents'] * item['quantity'])}</td></tr>"
        for item in items
    )
    return f"""<!DOCTYPE html>
<html><head><style>{_STYLE}</style></head>
<body><div class="container">
  <div class="header success"><h1>Payment Confirmed!</h1></div>
  <p>Dear {html.escape(patient_name)},</p>
  <p>Thank you for your payment! Your medical order has been successfully processed.</p>
  <p><strong>Order ID:</strong> {html.escape(order_id)}</p>
  <p><strong>Total Paid:</strong> ${amount}</p>
  <h3>Order Items:</h3>
  <table class="order-table">
    <thead><tr><th>Item</th><th style="text-align: center;">Quantity</th><th style="text-align: right;">Amount</th></tr></thead>
    <tbody>
      {rows}
      <tr><td colspan="2" style="text-align: right;"><strong>Total:</strong></td>
          <td style="text-align: right;"><strong>${amount}</strong></td></tr>
    </tbody>
  </table>
  <p>Your order is now being processed and you will receive updates on its status.</p>
  <div class="footer">
    <p>If you have any questions, please contact your healthcare provider.</p>
    <p>This is an automated message. Please do not reply to this email.</p>
  </div>
</div></body></html>"""


def payment_link_sms(patient_name: str, amount: str, checkout_url: str) -> str:
    return f"Hi {patient_name}, your medical order total is ${amount}. Complete payment here: {checkout_url}"


# ==============================================================================
# SENDERS
# ==============================================================================

def send_payment_link(order, checkout_url: str, method: str = "email", phone: Optional[str] = None) -> bool:
    amount = format_amount(order.total_cents)

    if method == "sms":
        result = sms_service.send_sms(
            phone or order.patient_phone or "",
            payment_link_sms(order.patient_name, amount, checkout_url),
        )
        if not result["success"]:
            logger.error(f"Payment link SMS for order {order.id} failed: {result['error']}")
        return result["success"]

    return send_email(
        order.patient_email,
        "Complete Your Medical Order Payment",
        payment_link_email(order.patient_name, amount, checkout_url, order.id),
    )


def send_payment_confirmation(order) -> bool:
    items = [
        {"name": item.product.name, "quantity": item.quantity, "price_cents": item.product.price_cents}
        for item in order.items
    ]
    sent = send_email(
        order.patient_email,
        "Payment Confirmation - Medical Order",
        payment_confirmation_email(order.patient_name, order.id, format_amount(order.total_cents), items),
    )
    if sent:
        logger.info(f"Payment confirmation sent to {order.patient_email} for order {order.id}")
    return sent


def send_low_stock_alert(products: Iterable, recipients: Optional[List[str]] = None) -> bool:
    recipients = recipients or settings.LOW_STOCK_ALERT_RECIPIENTS
    lines = [f"{p.name} ({p.sku}): {p.quantity} remaining (par level: {p.par_level})" for p in products]
    if not lines:
        return False

    logger.warning("Low stock alert for %d item(s):\n- %s", len(lines), "\n- ".join(lines))
    body = "<h2>Low Stock Alert</h2><ul>" + "".join(f"<li>{html.escape(line)}</li>" for line in lines) + "</ul>"
    results = [send_email(r, "Low Stock Alert - Medical Order Portal", body) for r in recipients]
    return any(results)
