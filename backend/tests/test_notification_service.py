"""
Customer notification tests.

Verifies:
- Status labels shown to customers (internal stages read as investigating)
- Message rendering per template
- Delivery through Resend / Fonnte and every skip path returning False
"""

import httpx
import pytest

from seedcare.services import notification_service
from seedcare.services.notification_service import (
    Notifier,
    customer_status,
    render_message,
    tracking_url,
)


@pytest.fixture
def posts(monkeypatch):
    """Capture outbound HTTP calls; the next response is set via posts.response."""
    class _Recorder(list):
        response = httpx.Response(200, json={"id": "msg_1"})

    recorder = _Recorder()

    def _post(url, **kwargs):
        recorder.append((url, kwargs))
        return recorder.response

    monkeypatch.setattr(notification_service.httpx, "post", _post)
    return recorder


@pytest.fixture
def email_enabled(app, monkeypatch):
    monkeypatch.setitem(app.config, "ENABLE_EMAIL_NOTIFICATIONS", True)
    monkeypatch.setitem(app.config, "RESEND_API_KEY", "re_test")
    monkeypatch.setitem(app.config, "RESEND_FROM_EMAIL", "noreply@seedcare.test")


@pytest.fixture
def whatsapp_enabled(app, monkeypatch):
    monkeypatch.setitem(app.config, "ENABLE_WHATSAPP_NOTIFICATIONS", True)
    monkeypatch.setitem(app.config, "FONNTE_API_TOKEN", "fonnte-token")


VARIABLES = {
    "customer_name": "Siti",
    "complaint_number": "CMP-20261017-0001",
    "tracking_url": "http://localhost:3000/complaint/CMP-20261017-0001/status",
}


# =============================================================================
# LABELS / RENDERING
# =============================================================================


class TestCustomerStatus:
    @pytest.mark.parametrize("status", ["observation", "investigation", "decision", "investigating"])
    def test_internal_stages(self, status):
        assert customer_status(status)["label"] == "Sedang Diselidiki"

    @pytest.mark.parametrize("status", [None, "", "archived"])
    def test_unknown_falls_back_to_submitted(self, status):
        assert customer_status(status) == customer_status("submitted")

    def test_returns_copy(self):
        customer_status("resolved")["label"] = "changed"
        assert customer_status("resolved")["label"] == "Selesai"


class TestRenderMessage:
    def test_created(self):
        message = render_message("complaint_created", VARIABLES)
        assert message.subject == "Komplain Anda Telah Diterima - CMP-20261017-0001"
        assert "Halo Siti" in message.text
        assert VARIABLES["tracking_url"] in message.text

    def test_status_update(self):
        message = render_message("complaint_status_update", dict(VARIABLES, status_label="Selesai"))
        assert message.subject == "Update Status Komplain CMP-20261017-0001"
        assert "menjadi Selesai" in message.text

    def test_resolved_without_summary(self):
        message = render_message("complaint_resolved", VARIABLES)
        assert "Ringkasan" not in message.text

    def test_unknown_template(self):
        message = render_message("newsletter", {})
        assert message.subject == "Notifikasi dari Advanta Seeds - -"
        assert "Halo Pelanggan" in message.text

    def test_html_is_escaped(self):
        message = render_message("complaint_response", dict(VARIABLES, message="<b>cek</b>"))
        assert "&lt;b&gt;cek&lt;/b&gt;" in message.html
        assert message.html.startswith("<!DOCTYPE html>")


def test_tracking_url(app, monkeypatch):
    monkeypatch.setitem(app.config, "PUBLIC_BASE_URL", "https://care.example.com/")
    assert tracking_url("CMP-20261017-0001") == "https://care.example.com/complaint/CMP-20261017-0001/status"


# =============================================================================
# DELIVERY
# =============================================================================


class TestEmail:
    def test_sends_through_resend(self, app, posts, email_enabled):
        assert Notifier().send("email", "complaint_created", "siti@example.com", VARIABLES) is True

        url, kwargs = posts[0]
        assert url == "https://api.resend.com/emails"
        assert kwargs["headers"] == {"Authorization": "Bearer re_test"}
        assert kwargs["json"]["to"] == ["siti@example.com"]
        assert kwargs["json"]["from"] == "noreply@seedcare.test"
        assert kwargs["json"]["subject"].startswith("Komplain Anda Telah Diterima")
        assert kwargs["timeout"] == 5.0

    def test_disabled(self, app, posts):
        assert Notifier().send("email", "complaint_created", "siti@example.com", VARIABLES) is False
        assert posts == []

    def test_missing_api_key(self, app, posts, email_enabled, monkeypatch):
        monkeypatch.setitem(app.config, "RESEND_API_KEY", None)
        assert Notifier().send("email", "complaint_created", "siti@example.com", VARIABLES) is False
        assert posts == []

    def test_rejected(self, app, posts, email_enabled):
        posts.response = httpx.Response(422, json={"message": "invalid from"})
        assert Notifier().send("email", "complaint_created", "siti@example.com", VARIABLES) is False


class TestWhatsApp:
    def test_sends_through_fonnte(self, app, posts, whatsapp_enabled):
        assert Notifier().send("whatsapp", "complaint_resolved", "081298765432", VARIABLES) is True

        url, kwargs = posts[0]
        assert url == "https://api.fonnte.com/send"
        assert kwargs["headers"] == {"Authorization": "fonnte-token"}
        assert kwargs["data"]["target"] == "081298765432"
        assert kwargs["data"]["countryCode"] == "62"

    def test_api_level_failure(self, app, posts, whatsapp_enabled):
        posts.response = httpx.Response(200, json={"status": False, "reason": "invalid token"})
        assert Notifier().send("whatsapp", "complaint_resolved", "081298765432", VARIABLES) is False

    def test_missing_token(self, app, posts, whatsapp_enabled, monkeypatch):
        monkeypatch.setitem(app.config, "FONNTE_API_TOKEN", "")
        assert Notifier().send("whatsapp", "complaint_resolved", "081298765432", VARIABLES) is False
        assert posts == []


class TestNeverRaises:
    def test_unknown_channel(self, app, posts):
        assert Notifier().send("sms", "complaint_created", "0812", VARIABLES) is False

    def test_no_recipient(self, app, posts, email_enabled):
        assert Notifier().send("email", "complaint_created", None, VARIABLES) is False
        assert posts == []

    def test_transport_error(self, app, email_enabled, monkeypatch):
        def _boom(url, **kwargs):
            raise httpx.ConnectTimeout("timed out")

        monkeypatch.setattr(notification_service.httpx, "post", _boom)
        assert Notifier().send("email", "complaint_created", "siti@example.com", VARIABLES) is False
