import asyncio

import pytest

from tiling_api import email_service
from tiling_api.email_service import EmailNotConfiguredError, EmailNotifier
from tiling_api.email_templates import admin_new_booking_template, status_update_template

BOOKING = {
    "id": 1,
    "booking_ref": "TR-48213",
    "status": "in_progress",
    "service_id": "roof-restoration",
    "job_size": "large",
    "suburb": "Newtown",
    "postcode": "2042",
    "description": "<b>Leaking</b> ridge capping",
    "preferred_date": "2031-03-02",
    "time_slot": "afternoon",
    "phone": "+61298765432",
    "customer_email": "jane@example.com",
    "customer_name": "Jane Citizen",
}


@pytest.fixture
def sent(monkeypatch):
    calls = []

    async def fake_send_email(to, subject, mjml_content, from_address=None):
        calls.append({"to": to, "subject": subject, "body": mjml_content})
        return {"id": "email-1"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return calls


def test_admin_template_escapes_customer_text():
    body = admin_new_booking_template(BOOKING, "Jane <Citizen>", BOOKING["customer_email"])

    assert "&lt;b&gt;Leaking&lt;/b&gt;" in body
    assert "Jane &lt;Citizen&gt;" in body
    assert "Afternoon (12pm - 5pm)" in body


def test_status_template_labels_status():
    body = status_update_template(BOOKING, "Jane", "http://localhost/bookings/TR-48213")
    assert "In Progress" in body


def test_customer_confirmation(sent):
    asyncio.run(EmailNotifier(admin_email="owner@example.com").notify_customer_confirmation(BOOKING))

    assert sent[0]["to"] == "jane@example.com"
    assert sent[0]["subject"] == "Booking Confirmation - TR-48213"


def test_admin_notification(sent):
    asyncio.run(EmailNotifier(admin_email="owner@example.com").notify_admin(BOOKING))

    assert sent[0]["to"] == "owner@example.com"
    assert sent[0]["subject"] == "New Booking Received - TR-48213"


def test_admin_notification_skipped_without_address(sent):
    asyncio.run(EmailNotifier(admin_email=None).notify_admin(BOOKING))
    assert sent == []


def test_status_change_skipped_without_customer_email(sent):
    asyncio.run(EmailNotifier().notify_status_change({**BOOKING, "customer_email": None}))
    assert sent == []


def test_send_email_requires_api_key(monkeypatch):
    monkeypatch.setattr(email_service, "RESEND_API_KEY", None)

    with pytest.raises(EmailNotConfiguredError):
        asyncio.run(email_service.send_email("jane@example.com", "Hello", "<mjml></mjml>"))


def test_compiles_mjml_to_html():
    html = email_service.compile_mjml_to_html(
        "<mjml><mj-body><mj-section><mj-column>"
        "<mj-text>Booking TR-48213 confirmed</mj-text>"
        "</mj-column></mj-section></mj-body></mjml>"
    )

    assert "<html" in html
    assert "Booking TR-48213 confirmed" in html
