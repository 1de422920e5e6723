import unittest

from seedcare import create_app
from seedcare.extensions import db
from seedcare.models import ComplaintSetting
from seedcare.services import settings_service
from seedcare.services.settings_service import DEFAULT_SLA_CONFIG, SLA_SETTING_KEY
from seedcare.validation import ValidationError


class SettingsServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "SECRET_KEY": "test",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "TESTING": True,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(ComplaintSetting).delete()
        db.session.commit()

    def test_defaults_without_row(self):
        self.assertEqual(settings_service.get_sla_config(), DEFAULT_SLA_CONFIG)
        self.assertEqual(settings_service.sla_targets(), ("24:00:00", "72:00:00"))

    def test_ensure_default_settings_is_idempotent(self):
        self.assertTrue(settings_service.ensure_default_settings())
        self.assertFalse(settings_service.ensure_default_settings())
        self.assertEqual(db.session.query(ComplaintSetting).count(), 1)

    def test_update_merges_and_persists(self):
        settings_service.update_sla_config(
            {"sla_response_time": 8, "sla_resolution_time": 48, "auto_assign_enabled": False},
            updated_by=None,
        )
        config = settings_service.update_sla_config({"sla_response_time": 6, "sla_resolution_time": 48})

        self.assertEqual(config["sla_response_time"], 6)
        self.assertFalse(config["auto_assign_enabled"])
        self.assertEqual(config["escalation_threshold_hours"], 48)

        db.session.expire_all()
        row = db.session.query(ComplaintSetting).filter_by(setting_key=SLA_SETTING_KEY).one()
        self.assertEqual(row.setting_value["sla_response_time"], 6)
        self.assertEqual(settings_service.sla_targets(), ("06:00:00", "48:00:00"))

    def test_fractional_hours(self):
        settings_service.update_sla_config({"sla_response_time": 0.5, "sla_resolution_time": 1.25})
        self.assertEqual(settings_service.sla_targets(), ("00:30:00", "01:15:00"))

    def test_missing_required(self):
        with self.assertRaises(ValidationError):
            settings_service.update_sla_config({"sla_response_time": 24})
        self.assertEqual(db.session.query(ComplaintSetting).count(), 0)

    def test_rejects_bad_values(self):
        bad_payloads = [
            {"sla_response_time": 0, "sla_resolution_time": 72},
            {"sla_response_time": -1, "sla_resolution_time": 72},
            {"sla_response_time": "24", "sla_resolution_time": 72},
            {"sla_response_time": True, "sla_resolution_time": 72},
            {"sla_response_time": 24, "sla_resolution_time": 72, "auto_assign_enabled": "yes"},
            {"sla_response_time": 24, "sla_resolution_time": 72, "theme": "dark"},
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    settings_service.validate_sla_config(payload)

    def test_rejects_non_object(self):
        with self.assertRaises(ValidationError):
            settings_service.validate_sla_config(["sla_response_time"])


if __name__ == "__main__":
    unittest.main()
