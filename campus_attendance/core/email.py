# campus_attendance/core/email.py
"""
Email service using Resend for sending transactional emails.
"""
import html
import logging
from typing import Optional

import resend
from campus_attendance.core.config import settings

logger = logging.getLogger(__name__)


def init_resend() -> bool:
    """Initialize Resend with API key. Returns False when email is not configured."""
    if not settings.RESEND_API_KEY:
        return False
    resend.api_key = settings.RESEND_API_KEY
    return True


def send_registration_confirmation(
    to_email: str,
    recipient_name: str,
    event_name: str,
    registration_id: str,
    event_date: Optional[str] = None,
    team_name: Optional[str] = None,
    qr_code_png: Optional[bytes] = None,
) -> dict:
    """
    Send a registration confirmation email.

    Runs as a background task after the registration response has gone out,
    so it never raises: failures are logged and reported in the return value.

    Args:
        to_email: Recipient email address
        recipient_name: Name of the primary contact
        event_name: Name of the event
        registration_id: The registration the attendance QR code belongs to
        event_date: Optional date/time of the event
        team_name: Team name for team registrations
        qr_code_png: Rendered attendance QR code, attached when present

    Returns:
        Dict with ``success`` and either the Resend ``id`` or an ``error``.
    """
    if not settings.SEND_CONFIRMATION_EMAILS:
        return {"success": False, "error": "confirmation emails disabled"}

    if not init_resend():
        logger.info(
            f"RESEND_API_KEY not configured, skipping confirmation email for registration {registration_id}"
        )
        return {"success": False, "error": "email not configured"}

    recipient_name = html.escape(recipient_name)
    event_name_html = html.escape(event_name)
    registration_id_html = html.escape(registration_id)
    event_date = html.escape(str(event_date)) if event_date else None
    team_name = html.escape(team_name) if team_name else None

    date_html = f"<p><strong>Date:</strong> {event_date}</p>" if event_date else ""
    team_html = f"<p><strong>Team:</strong> {team_name}</p>" if team_name else ""
    qr_html = (
        '<p style="margin: 10px 0 0 0; font-size: 12px; color: #888;">Your attendance QR code is attached. '
        "Show it at the venue to be marked present.</p>"
        if qr_code_png
        else ""
    )

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background: linear-gradient(135deg, #063168 0%, #154CB3 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }}
            .content {{ background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }}
            .ticket-box {{ background: white; border: 2px dashed #154CB3; padding: 20px; text-align: center; margin: 20px 0; border-radius: 8px; }}
            .ticket-code {{ font-size: 18px; font-weight: bold; color: #154CB3; letter-spacing: 1px; word-break: break-all; }}
            .details {{ background: white; padding: 15px; border-radius: 8px; margin: 15px 0; }}
            .footer {{ text-align: center; color: #888; font-size: 12px; margin-top: 20px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>You're Registered!</h1>
            </div>
            <div class="content">
                <p>Hi {recipient_name},</p>
                <p>Your registration for <strong>{event_name_html}</strong> has been confirmed.</p>

                <div class="ticket-box">
                    <p style="margin: 0 0 10px 0; color: #666;">Registration ID</p>
                    <div class="ticket-code">{registration_id_html}</div>
                    {qr_html}
                </div>

                <div class="details">
                    <h3 style="margin-top: 0;">Event Details</h3>
                    <p><strong>Event:</strong> {event_name_html}</p>
                    {date_html}
                    {team_html}
                </div>

                <p>The QR code is valid for {settings.QR_TOKEN_TTL_HOURS} hours from registration.</p>

                <p>See you there!</p>
            </div>
            <div class="footer">
                <p>This email was sent by the Campus Events Platform</p>
            </div>
        </div>
    </body>
    </html>
    """

    params = {
        "from": f"Campus Events <noreply@{settings.RESEND_FROM_DOMAIN}>",
        "to": [to_email],
        "subject": f"Registration Confirmed: {event_name}",
        "html": html_content,
    }
    if qr_code_png:
        params["attachments"] = [
            {"filename": f"attendance-qr-{registration_id}.png", "content": list(qr_code_png)}
        ]

    try:
        response = resend.Emails.send(params)
        logger.info(f"Registration confirmation sent to {to_email} for event: {event_name}")
        return {"success": True, "id": response.get("id")}
    except Exception as e:
        logger.error(f"Failed to send confirmation email to {to_email}: {e}")
        return {"success": False, "error": str(e)}
