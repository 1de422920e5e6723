# Overview: Customer notification port (email via Resend, WhatsApp via Fonnte) and the status label table.

"""
Outbound customer notifications.

WHY: Notification delivery is fire-and-forget. Complaint operations call
Notifier.send() after their own commit; whatever happens on the wire
(disabled channel, missing credentials, timeouts, non-2xx answers) is logged
here and never reaches the caller.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any

import httpx
from flask import current_app


CHANNEL_EMAIL = "email"
CHANNEL_WHATSAPP = "whatsapp"
VALID_CHANNELS = {CHANNEL_EMAIL, CHANNEL_WHATSAPP}

TEMPLATE_COMPLAINT_CREATED = "complaint_created"
TEMPLATE_STATUS_UPDATE = "complaint_status_update"
TEMPLATE_ACKNOWLEDGED = "acknowledged_with_replacement"
TEMPLATE_RESPONSE = "complaint_response"
TEMPLATE_RESOLVED = "complaint_resolved"
TEMPLATE_TYPES = {
    TEMPLATE_COMPLAINT_CREATED,
    TEMPLATE_STATUS_UPDATE,
    TEMPLATE_ACKNOWLEDGED,
    TEMPLATE_RESPONSE,
    TEMPLATE_RESOLVED,
}

COMPANY_NAME = "PT Advanta Seeds Indonesia"


# Customer-facing status table. Part of the notification wire contract: keep verbatim.
STATUS_LABELS: dict[str, dict[str, str]] = {
    "submitted": {
        "label": "Dikirim",
        "description": "Komplain Anda telah diterima dan sedang menunggu review",
        "color": "blue",
    },
    "acknowledged": {
        "label": "Dikonfirmasi",
        "description": "Komplain Anda telah dikonfirmasi dan dialokasikan ke tim yang tepat",
        "color": "yellow",
    },
    "investigating": {
        "label": "Sedang Diselidiki",
        "description": "Tim kami sedang menyelidiki masalah yang Anda laporkan",
        "color": "orange",
    },
    "pending_response": {
        "label": "Menunggu Respons Anda",
        "description": "Tim kami telah merespon dan menunggu informasi tambahan dari Anda",
        "color": "purple",
    },
    "resolved": {
        "label": "Selesai",
        "description": "Komplain Anda telah diselesaikan",
        "color": "green",
    },
    "closed": {
        "label": "Ditutup",
        "description": "Komplain telah ditutup",
        "color": "gray",
    },
}

# Internal workflow stages shown to customers as "investigating"
_CUSTOMER_STATUS_ALIASES = {
    "observation": "investigating",
    "investigation": "investigating",
    "decision": "investigating",
}


def customer_status(status: str | None) -> dict[str, str]:
    """Label/description/color for a status; unknown values fall back to 'submitted'."""
    key = _CUSTOMER_STATUS_ALIASES.get(status or "", status or "")
    entry = STATUS_LABELS.get(key) or STATUS_LABELS["submitted"]
    return dict(entry)


def tracking_url(complaint_number: str) -> str:
    base = (current_app.config.get("PUBLIC_BASE_URL") or "http://localhost:3000").rstrip("/")
    return f"{base}/complaint/{complaint_number}/status"


@dataclass(frozen=True)
class NotificationMessage:
    subject: str
    text: str

    @property
    def html(self) -> str:
        paragraphs = [p for p in self.text.split("\n\n") if p.strip()]
        body = "".join(
            "<p>{}</p>".format(html.escape(p).replace("\n", "<br>")) for p in paragraphs
        )
        return f"<!DOCTYPE html><html><head><meta charset=\"utf-8\"></head><body>{body}</body></html>"


def render_message(template_type: str, variables: dict[str, Any]) -> NotificationMessage:
    """Build subject + plain text for a template. Unknown templates get a generic notice."""
    name = variables.get("customer_name") or "Pelanggan"
    number = variables.get("complaint_number") or "-"
    url = variables.get("tracking_url") or ""
    closing = f"Terima kasih,\n{COMPANY_NAME}."

    if template_type == TEMPLATE_COMPLAINT_CREATED:
        return NotificationMessage(
            subject=f"Komplain Anda Telah Diterima - {number}",
            text=(
                f"Halo {name},\n\n"
                f"Terima kasih! Komplain Anda ({number}) telah kami terima. "
                "Kami akan segera menindaklanjutinya.\n\n"
                f"Anda bisa melacak status komplain di:\n{url}\n\n{closing}"
            ),
        )

    if template_type == TEMPLATE_STATUS_UPDATE:
        label = variables.get("status_label") or ""
        description = variables.get("status_description") or ""
        return NotificationMessage(
            subject=f"Update Status Komplain {number}",
            text=(
                f"Halo {name},\n\n"
                f"Update untuk komplain Anda ({number}): Status telah diperbarui menjadi {label}.\n"
                f"{description}\n\n"
                f"Silakan cek link di bawah untuk detailnya.\n{url}\n\n{closing}"
            ),
        )

    if template_type == TEMPLATE_ACKNOWLEDGED:
        qty = variables.get("replacement_qty")
        hybrid = variables.get("replacement_hybrid") or ""
        return NotificationMessage(
            subject=f"Komplain {number} Telah Dikonfirmasi",
            text=(
                f"Halo {name},\n\n"
                f"Komplain Anda ({number}) telah dikonfirmasi oleh tim kami. "
                f"Penggantian yang disetujui: {qty} unit {hybrid}.\n\n"
                f"Pantau perkembangan komplain Anda di:\n{url}\n\n{closing}"
            ),
        )

    if template_type == TEMPLATE_RESPONSE:
        message = variables.get("message") or ""
        return NotificationMessage(
            subject=f"Update Komplain {number}",
            text=(
                f"Halo {name},\n\n"
                f"Tim kami telah memberikan tanggapan untuk komplain Anda ({number}):\n"
                f"{message}\n\n"
                f"Lihat update lengkap di:\n{url}\n\n{closing}"
            ),
        )

    if template_type == TEMPLATE_RESOLVED:
        summary = variables.get("resolution_summary")
        summary_line = f"Ringkasan penyelesaian: {summary}\n\n" if summary else ""
        return NotificationMessage(
            subject=f"Komplain {number} Telah Diselesaikan",
            text=(
                f"Halo {name},\n\n"
                f"Komplain Anda ({number}) telah diselesaikan.\n\n"
                f"{summary_line}"
                f"Kami menghargai penilaian Anda atas penanganan komplain ini melalui:\n{url}\n\n{closing}"
            ),
        )

    return NotificationMessage(
        subject=f"Notifikasi dari Advanta Seeds - {number}",
        text=(
            f"Halo {name},\n\n"
            f"Ada notifikasi terkait komplain Anda dengan nomor {number}.\n\n"
            f"Lihat detail:\n{url}\n\n{closing}"
        ),
    )


class Notifier:
    """
    Notification port, configured from app config.

    send() returns True when the provider accepted the message and False
    otherwise. It never raises.
    """

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        app.config.setdefault("ENABLE_EMAIL_NOTIFICATIONS", False)
        app.config.setdefault("ENABLE_WHATSAPP_NOTIFICATIONS", False)
        app.config.setdefault("NOTIFICATION_TIMEOUT_SECONDS", 5.0)
        app.config.setdefault("WHATSAPP_COUNTRY_CODE", "62")
        app.extensions["seedcare_notifier"] = self

    def send(self, channel: str, template_type: str, recipient: str | None, variables: dict | None = None) -> bool:
        try:
            if channel not in VALID_CHANNELS:
                current_app.logger.warning("Unknown notification channel %r; skipped", channel)
                return False
            if not recipient:
                current_app.logger.info("No %s recipient for %s notification; skipped", channel, template_type)
                return False
            message = render_message(template_type, dict(variables or {}))
            if channel == CHANNEL_EMAIL:
                return self._send_email(recipient, message)
            return self._send_whatsapp(recipient, message)
        except Exception:
            current_app.logger.exception("Failed to send %s notification (%s)", channel, template_type)
            return False

    def _post(self, url: str, **kwargs) -> httpx.Response:
        timeout = float(current_app.config.get("NOTIFICATION_TIMEOUT_SECONDS") or 5.0)
        return httpx.post(url, timeout=timeout, **kwargs)

    def _send_email(self, recipient: str, message: NotificationMessage) -> bool:
        cfg = current_app.config
        if not cfg.get("ENABLE_EMAIL_NOTIFICATIONS"):
            current_app.logger.info("Email notifications disabled, skipping")
            return False
        api_key = cfg.get("RESEND_API_KEY")
        if not api_key:
            current_app.logger.warning("RESEND_API_KEY is not set; email not sent")
            return False

        response = self._post(
            cfg.get("RESEND_API_URL") or "https://api.resend.com/emails",
            json={
                "from": cfg.get("RESEND_FROM_EMAIL"),
                "to": [recipient],
                "subject": message.subject,
                "html": message.html,
                "text": message.text,
            },
            headers={"Authorization": f"Bearer {api_key}"},
        )
        if response.status_code >= 300:
            current_app.logger.warning("Resend rejected email (%s): %s", response.status_code, response.text)
            return False
        return True

    def _send_whatsapp(self, recipient: str, message: NotificationMessage) -> bool:
        cfg = current_app.config
        if not cfg.get("ENABLE_WHATSAPP_NOTIFICATIONS"):
            current_app.logger.info("WhatsApp notifications disabled, skipping")
            return False
        token = cfg.get("FONNTE_API_TOKEN")
        if not token:
            current_app.logger.warning("FONNTE_API_TOKEN is not set; WhatsApp message not sent")
            return False

        response = self._post(
            cfg.get("FONNTE_API_URL") or "https://api.fonnte.com/send",
            data={
                "target": recipient,
                "message": message.text,
                "countryCode": str(cfg.get("WHATSAPP_COUNTRY_CODE") or "62"),
            },
            headers={"Authorization": token},
        )
        if response.status_code >= 300:
            current_app.logger.warning("Fonnte rejected message (%s): %s", response.status_code, response.text)
            return False
        try:
            body = response.json()
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("status") is False:
            current_app.logger.warning("Fonnte API error: %s", body.get("reason") or "Unknown")
            return False
        return True


def notify_customer(complaint, template_type: str, **variables) -> None:
    """Fan a template out to the complaint's email and phone. Never raises."""
    from ..extensions import notifier

    try:
        payload = {
            "customer_name": complaint.customer_name,
            "complaint_number": complaint.complaint_number,
            "tracking_url": tracking_url(complaint.complaint_number),
        }
        payload.update(variables)
        if complaint.customer_email:
            notifier.send(CHANNEL_EMAIL, template_type, complaint.customer_email, payload)
        if complaint.customer_phone:
            notifier.send(CHANNEL_WHATSAPP, template_type, complaint.customer_phone, payload)
    except Exception:
        current_app.logger.exception("Failed to notify customer for complaint %s", getattr(complaint, "id", None))
