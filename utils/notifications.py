import os
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from twilio.rest import Client
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# --- Email Configuration ---
SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
EMAIL_SENDER = os.getenv("EMAIL_SENDER")

# --- Twilio Configuration ---
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")


def send_email(to_email: str, subject: str, body_html: str):
    """Sends an email using SMTP."""
    if not all([SMTP_SERVER, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, EMAIL_SENDER]):
        logger.error("SMTP settings are not fully configured. Cannot send email.")
        return False

    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = EMAIL_SENDER
    message["To"] = to_email
    message.attach(MIMEText(body_html, "html"))

    try:
        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT) as server:
            server.starttls()
            server.login(SMTP_USER, SMTP_PASSWORD)
            server.sendmail(EMAIL_SENDER, to_email, message.as_string())
        logger.info(f"Email sent successfully to {to_email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def send_sms(to_phone_number: str, body: str):
    """Sends an SMS using Twilio."""
    if not all([TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_PHONE_NUMBER]):
        logger.error("Twilio settings are not fully configured. Cannot send SMS.")
        return False

    try:
        client = Client(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
        message = client.messages.create(
            body=body,
            from_=TWILIO_PHONE_NUMBER,
            to=to_phone_number
        )
        logger.info(f"SMS sent successfully to {to_phone_number}, SID: {message.sid}")
        return True
    except Exception as e:
        logger.error(f"Failed to send SMS to {to_phone_number}: {e}")
        return False


STATUS_MESSAGES = {
    "pending": "has been placed and is waiting for the tailor to accept it",
    "accepted": "has been accepted by your tailor",
    "rejected": "was declined by the tailor",
    "in_progress": "is being stitched",
    "ready": "is ready",
    "shipped": "is on its way",
    "delivered": "has been delivered",
    "cancelled": "has been cancelled",
}


# Email Templates
def get_order_placed_email(order_data: dict, is_customer: bool = True) -> tuple[str, str]:
    """Generate order placed email template"""
    action = "placed" if is_customer else "received"

    subject = f"Order {action.title()} - {order_data['order_number']}"

    items_html = ""
    for item in order_data.get("items", []):
        items_html += f"""
            <p>{item['quantity']} x {item['garment_type']} @ ₹{item['unit_price']}</p>"""

    body = f"""
    <html>
    <body>
        <h2>Order {action.title()}!</h2>
        <p>Hello,</p>
        <p>An order has been {action} with the following details:</p>

        <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px;">
            <h3>Order Details:</h3>
            <p><strong>Order Number:</strong> {order_data['order_number']}</p>
            <p><strong>Total Amount:</strong> ₹{order_data['total_amount']}</p>
            <p><strong>Delivery Address:</strong> {order_data.get('delivery_address') or 'N/A'}</p>
            {items_html}
        </div>

        <p>Thank you for using DressMaker!</p>
        <p>Best regards,<br>DressMaker Team</p>
    </body>
    </html>
    """

    return subject, body


def get_order_status_email(order_data: dict, notes: Optional[str] = None) -> tuple[str, str]:
    """Generate order status update email template"""
    order_status = order_data["status"]
    subject = f"Order {order_data['order_number']} - {order_status.replace('_', ' ').title()}"
    message = STATUS_MESSAGES.get(order_status, f"is now {order_status}")
    notes_html = f"<p><strong>Note:</strong> {notes}</p>" if notes else ""

    body = f"""
    <html>
    <body>
        <h2>Order Update</h2>
        <p>Hello,</p>
        <p>Your order {order_data['order_number']} {message}.</p>
        {notes_html}
        <p>Best regards,<br>DressMaker Team</p>
    </body>
    </html>
    """

    return subject, body


# SMS Templates
def get_order_placed_sms(order_data: dict, is_customer: bool = True) -> str:
    """Generate order placed SMS template"""
    action = "placed" if is_customer else "received"
    return f"Order {action}! {order_data['order_number']} - ₹{order_data['total_amount']}. Status: {order_data['status']}. - DressMaker"


def get_order_status_sms(order_data: dict) -> str:
    """Generate order status update SMS template"""
    message = STATUS_MESSAGES.get(order_data["status"], f"is now {order_data['status']}")
    return f"Your order {order_data['order_number']} {message}. - DressMaker"
