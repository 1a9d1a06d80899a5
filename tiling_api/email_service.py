"""
Email Service using Resend
Booking emails rendered from MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import ADMIN_NOTIFICATION_EMAIL, EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    admin_new_booking_template,
    booking_confirmation_template,
    status_update_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(RuntimeError):
    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml_to_html returns a dict with 'html' and 'errors' keys
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    return str(result)


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    logger.info(f"📧 Sending email via Resend to: {recipients}")
    response = resend.Emails.send(
        {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
    )
    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


def booking_url(booking_ref: str) -> str:
    return f"{FRONTEND_URL}/bookings/{booking_ref}"


class EmailNotifier:
    """
    Booking notifications.

    Each method takes a plain booking snapshot (see events.booking_snapshot)
    so it can run after the request's session is closed.
    """

    def __init__(self, admin_email: Optional[str] = ADMIN_NOTIFICATION_EMAIL):
        self.admin_email = admin_email

    async def notify_customer_confirmation(self, booking: dict) -> None:
        if not booking.get("customer_email"):
            logger.warning(f"⚠️ Booking {booking['booking_ref']} has no customer email, skipping confirmation")
            return
        await send_email(
            to=booking["customer_email"],
            subject=f"Booking Confirmation - {booking['booking_ref']}",
            mjml_content=booking_confirmation_template(
                booking, booking["customer_name"], booking_url(booking["booking_ref"])
            ),
        )

    async def notify_admin(self, booking: dict) -> None:
        if not self.admin_email:
            logger.warning("⚠️ ADMIN_NOTIFICATION_EMAIL not configured, skipping admin notification")
            return
        await send_email(
            to=self.admin_email,
            subject=f"New Booking Received - {booking['booking_ref']}",
            mjml_content=admin_new_booking_template(
                booking, booking["customer_name"], booking.get("customer_email") or ""
            ),
        )

    async def notify_status_change(self, booking: dict) -> None:
        if not booking.get("customer_email"):
            logger.warning(f"⚠️ Booking {booking['booking_ref']} has no customer email, skipping status update")
            return
        await send_email(
            to=booking["customer_email"],
            subject=f"Booking Status Update - {booking['booking_ref']}",
            mjml_content=status_update_template(
                booking, booking["customer_name"], booking_url(booking["booking_ref"])
            ),
        )
