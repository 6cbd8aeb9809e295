from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
import logging
import smtplib
from festreg.config import (
    EMAIL_ENABLED,
    FEST_NAME,
    MAIL_FROM,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USERNAME,
    order_created_subject,
    order_rejected_subject,
    order_verified_subject,
)

logger = logging.getLogger(__name__)

# These run from BackgroundTasks after the response has gone out. They take
# plain dicts, never ORM objects, because the request session is closed by then.
# A failed send is logged and reported as False; it never reaches the caller.


def _wrap(title: str, body: str) -> str:
    return f"""
    <html>
    <head>
        <style>
            body {{
                font-family: 'Segoe UI', Arial, sans-serif;
                background-color: #f4f6f9;
                color: #333;
            }}
            .container {{
                background-color: #fff;
                border-radius: 12px;
                padding: 25px;
                margin: 30px auto;
                width: 600px;
            }}
            .header {{
                color: #4f46e5;
                font-size: 22px;
                font-weight: bold;
                margin-bottom: 15px;
            }}
            .event-item {{ margin: 8px 0; }}
            .muted {{ color: #6b7280; font-size: 13px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">{escape(title)}</div>
            {body}
            <p class="muted">Team {escape(FEST_NAME)}</p>
        </div>
    </body>
    </html>
    """


def _greeting(recipient: dict) -> str:
    name = f"{recipient.get('first_name', '')} {recipient.get('last_name', '')}".strip()
    return f"<p>Hi <b>{escape(name or 'there')}</b>,</p>"


def send_email(to: str, subject: str, html_body: str) -> bool:
    if not EMAIL_ENABLED:
        logger.info("Email disabled, skipping '%s' to %s", subject, to)
        return False
    try:
        message = MIMEMultipart("alternative")
        message['From'] = MAIL_FROM
        message['To'] = to
        message['Subject'] = subject
        message.attach(MIMEText(html_body, 'html'))

        server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
        try:
            server.starttls()
            if SMTP_USERNAME:
                server.login(SMTP_USERNAME, SMTP_PASSWORD)
            server.sendmail(MAIL_FROM, to, message.as_string())
        finally:
            server.quit()

        logger.info("Email '%s' sent to %s", subject, to)
        return True
    except Exception:
        logger.exception("Failed to send '%s' to %s", subject, to)
        return False


# ------------------ Order received ------------------
def send_order_created_email(recipient: dict, order_id: str, events: list,
                             total_amount: float, transaction_id: str) -> bool:
    rows = "".join(
        f'<div class="event-item">{escape(e["name"])} <span class="muted">Fee: {e["fees"]:g}</span></div>'
        for e in events
    )
    body = (
        _greeting(recipient)
        + f"<p>We have received your order <b>{escape(order_id)}</b>. "
        "Our team will verify your payment shortly.</p>"
        + rows
        + f"<p><b>Total:</b> {total_amount:g}<br><b>Transaction ID:</b> {escape(transaction_id or '')}</p>"
    )
    return send_email(
        recipient["email"],
        order_created_subject.format(order_id=order_id),
        _wrap("Order Received", body),
    )


# ------------------ Order verified ------------------
def send_order_verified_email(recipient: dict, order_id: str, events: list) -> bool:
    rows = []
    for e in events:
        venue = f'<br><span class="muted">Venue: {escape(e["venue"])}</span>' if e.get("venue") else ""
        links = "".join(
            f'<div><a href="{escape(link["link"])}" target="_blank">{escape(link["name"])}</a></div>'
            for link in e.get("links") or []
        )
        if links:
            links = f"<div><b>Important links for {escape(e['name'])}</b>{links}</div>"
        rows.append(f'<div class="event-item"><b>{escape(e["name"])}</b>{venue}</div>{links}')

    body = (
        _greeting(recipient)
        + f"<p>Your payment for order <b>{escape(order_id)}</b> has been verified. "
        "You are registered for:</p>"
        + "".join(rows)
    )
    return send_email(recipient["email"], order_verified_subject, _wrap("You're Registered!", body))


# ------------------ Order rejected ------------------
def send_order_rejected_email(recipient: dict, order_id: str, transaction_id: str, reason: str) -> bool:
    body = (
        _greeting(recipient)
        + f"<p>We could not verify the payment for order <b>{escape(order_id)}</b> "
        f"(transaction {escape(transaction_id or '-')}).</p>"
        + f"<p><b>Reason:</b> {escape(reason or '')}</p>"
        + "<p>Please contact the organisers or place a new order with a valid transaction.</p>"
    )
    return send_email(
        recipient["email"],
        order_rejected_subject.format(order_id=order_id),
        _wrap("Payment Verification Failed", body),
    )
