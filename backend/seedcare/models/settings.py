from __future__ import annotations

from ..extensions import db
from seedcare.time_utils import to_utc_z


class ComplaintSetting(db.Model):
    """
    Key-value settings for the complaint system.

    value holds a JSON object; the SLA configuration lives under
    key "sla_configuration".
    """
    __tablename__ = "complaint_system_settings"
    __table_args__ = (
        db.UniqueConstraint("setting_key", name="uq_complaint_settings_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(128), nullable=False)
    setting_value = db.Column(db.JSON, nullable=False, default=dict)
    description = db.Column(db.String(255), nullable=True)

    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "setting_key": self.setting_key,
            "setting_value": dict(self.setting_value or {}),
            "description": self.description,
            "updated_by_user_id": self.updated_by_user_id,
            "updated_at": to_utc_z(self.updated_at),
        }
