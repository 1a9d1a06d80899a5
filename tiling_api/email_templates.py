"""
MJML Email Templates
Booking emails compiled to responsive HTML by email_service
"""

from html import escape
from typing import Optional

THEME = {
    "primary": "#b45309",
    "primary_dark": "#92400e",
    "primary_light": "#fef3c7",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}

BRAND_NAME = "Tiling & Roofing Bookings"

TIME_SLOT_LABELS = {
    "morning": "Morning (7am - 12pm)",
    "afternoon": "Afternoon (12pm - 5pm)",
    "flexible": "Flexible",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {BRAND_NAME}
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _details_table(booking: dict) -> str:
    rows = [
        ("Reference", booking["booking_ref"]),
        ("Service", booking["service_id"]),
        ("Job size", booking["job_size"].capitalize()),
        ("Location", f"{booking['suburb']} {booking['postcode']}"),
        ("Preferred date", booking["preferred_date"]),
        ("Time slot", TIME_SLOT_LABELS.get(booking["time_slot"], booking["time_slot"])),
    ]
    cells = "".join(
        f'<tr><td style="padding:6px 0;color:{THEME["text_muted"]};">{label}</td>'
        f'<td style="padding:6px 0;font-weight:600;">{escape(str(value))}</td></tr>'
        for label, value in rows
    )
    return f"""
    <mj-table padding="16px 0">
      {cells}
    </mj-table>
    """


def booking_confirmation_template(booking: dict, customer_name: str, booking_url: str) -> str:
    """Customer confirmation after a booking request is received"""
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>
    <mj-text>
      Thanks for your booking request. We have reserved your preferred date and will
      be in touch shortly to confirm the details.
    </mj-text>
    {_details_table(booking)}
    """
    return get_base_template(
        title="Booking Received",
        preview_text=f"Your booking {booking['booking_ref']} has been received",
        content_sections=content,
        cta_url=booking_url,
        cta_label="View Booking",
    )


def admin_new_booking_template(booking: dict, customer_name: str, customer_email: str) -> str:
    """Admin notification for a new booking"""
    description = booking.get("description")
    description_section = ""
    if description:
        description_section = f"""
        <mj-text color="{THEME['text_muted']}" padding="8px 0 0 0">
          {escape(description)}
        </mj-text>
        """

    content = f"""
    <mj-text>
      {escape(customer_name)} ({escape(customer_email)}) submitted a new booking.
      Phone: {escape(booking['phone'])}
    </mj-text>
    {_details_table(booking)}
    {description_section}
    """
    return get_base_template(
        title="New Booking Received",
        preview_text=f"New booking {booking['booking_ref']} from {customer_name}",
        content_sections=content,
    )


def status_update_template(booking: dict, customer_name: str, booking_url: str) -> str:
    """Customer notification when a booking moves to a new status"""
    status_label = booking["status"].replace("_", " ").title()
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>
    <mj-text>
      The status of your booking <strong>{escape(booking['booking_ref'])}</strong> is now
      <strong>{status_label}</strong>.
    </mj-text>
    {_details_table(booking)}
    """
    return get_base_template(
        title="Booking Status Update",
        preview_text=f"Booking {booking['booking_ref']} is now {status_label}",
        content_sections=content,
        cta_url=booking_url,
        cta_label="View Booking",
    )
