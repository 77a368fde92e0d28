from unittest.mock import MagicMock

from campus_attendance.core import email
from campus_attendance.core.config import settings


def test_skipped_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "SEND_CONFIRMATION_EMAILS", True)
    monkeypatch.setattr(settings, "RESEND_API_KEY", None)

    result = email.send_registration_confirmation(
        to_email="a@x.in", recipient_name="Asha", event_name="Quiz", registration_id="reg_1"
    )

    assert result == {"success": False, "error": "email not configured"}


def test_sends_with_qr_attachment(monkeypatch):
    monkeypatch.setattr(settings, "SEND_CONFIRMATION_EMAILS", True)
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    send_mock = MagicMock(return_value={"id": "email_123"})
    monkeypatch.setattr(email.resend.Emails, "send", send_mock)

    result = email.send_registration_confirmation(
        to_email="a@x.in",
        recipient_name="Asha",
        event_name="Quiz",
        registration_id="reg_1",
        team_name="Rockets",
        qr_code_png=b"\x89PNG",
    )

    assert result == {"success": True, "id": "email_123"}
    params = send_mock.call_args[0][0]
    assert params["to"] == ["a@x.in"]
    assert params["attachments"][0]["content"] == list(b"\x89PNG")
    assert "Rockets" in params["html"]


def test_provider_failure_is_reported(monkeypatch):
    monkeypatch.setattr(settings, "SEND_CONFIRMATION_EMAILS", True)
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(email.resend.Emails, "send", MagicMock(side_effect=RuntimeError("quota")))

    result = email.send_registration_confirmation(
        to_email="a@x.in", recipient_name="Asha", event_name="Quiz", registration_id="reg_1"
    )

    assert result["success"] is False
    assert "quota" in result["error"]


def test_user_values_are_escaped_in_html(monkeypatch):
    monkeypatch.setattr(settings, "SEND_CONFIRMATION_EMAILS", True)
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    send_mock = MagicMock(return_value={"id": "email_123"})
    monkeypatch.setattr(email.resend.Emails, "send", send_mock)

    email.send_registration_confirmation(
        to_email="a@x.in",
        recipient_name="<script>alert(1)</script>",
        event_name="Quiz & <b>Prizes</b>",
        registration_id="reg_1",
        team_name='"Rockets"<img src=x>',
    )

    body = send_mock.call_args[0][0]["html"]
    assert "<script>" not in body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
    assert "Quiz &amp; &lt;b&gt;Prizes&lt;/b&gt;" in body
    assert "<img src=x>" not in body
    assert "&quot;Rockets&quot;&lt;img src=x&gt;" in body
