"""
Pytest fixtures for complaint backend tests.

Provides an in-memory database, per-test table wipe, test client, factories
for staff and complaints, and a notifier that records instead of sending.
"""

import itertools

import pytest

from seedcare import create_app
from seedcare.extensions import db, notifier
from seedcare.models import COMPLAINT_PERMISSION_KEYS, Complaint, StaffProfile
from seedcare.services.auth_service import create_user
from seedcare.time_utils import utcnow


DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'ENABLE_EMAIL_NOTIFICATIONS': False,
        'ENABLE_WHATSAPP_NOTIFICATIONS': False,
        'COMPLAINT_NUMBER_BACKOFF_MIN': 0.0,
        'COMPLAINT_NUMBER_BACKOFF_MAX': 0.0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def sent(monkeypatch):
    """
    Record customer notifications instead of delivering them.

    Each entry is (channel, template_type, recipient, variables).
    """
    calls = []

    def _record(channel, template_type, recipient, variables=None):
        calls.append((channel, template_type, recipient, dict(variables or {})))
        return True

    monkeypatch.setattr(notifier, "send", _record)
    return calls


@pytest.fixture(scope='function')
def make_staff(db_session):
    """
    Factory: staff user plus complaint profile.

    permissions=None grants every complaint permission.
    """
    counter = itertools.count(1)

    def _make(
        department="customer_service",
        *,
        full_name=None,
        max_assigned=10,
        current=0,
        csat=None,
        is_active=True,
        permissions=None,
        is_superadmin=False,
    ):
        n = next(counter)
        name = full_name or f"Staff {n}"
        user = create_user(f"staff{n}@seedcare.test", name, DEFAULT_PASSWORD, is_superadmin=is_superadmin)
        if permissions is None:
            permissions = {key: True for key in COMPLAINT_PERMISSION_KEYS}
        profile = StaffProfile(
            user_id=user.id,
            full_name=name,
            department=department,
            complaint_permissions=permissions,
            max_assigned_complaints=max_assigned,
            current_assigned_count=current,
            customer_satisfaction_avg=csat,
            is_active=is_active,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture(scope='function')
def make_complaint(db_session):
    """Factory: complaint row inserted directly (no numbering, no notifications)."""
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        now = utcnow()
        values = dict(
            complaint_number=f"CMP-20261017-{n:04d}",
            customer_name="Budi Santoso",
            customer_phone="081234567890",
            customer_email="budi@example.com",
            customer_province="Jawa Timur",
            customer_city="Malang",
            customer_address="Jl. Raya Tlogomas 12",
            subject="Benih tidak tumbuh",
            description="Sebagian besar benih tidak berkecambah setelah 7 hari.",
            complaint_type="product_quality",
            complaint_case_type_ids=[1],
            complaint_case_type_names=["Daya tumbuh rendah"],
            status="submitted",
            priority="medium",
            department="customer_service",
            first_response_sla="24:00:00",
            resolution_sla="72:00:00",
            escalated=False,
            created_at=now,
            updated_at=now,
        )
        values.update(overrides)
        complaint = Complaint(**values)
        db_session.add(complaint)
        db_session.commit()
        return complaint

    return _make


def complaint_payload(**overrides) -> dict:
    """Public intake form body."""
    payload = {
        "customer_name": "Siti Aminah",
        "customer_phone": "081298765432",
        "customer_email": "siti@example.com",
        "customer_province": "Jawa Tengah",
        "customer_city": "Semarang",
        "customer_address": "Jl. Pandanaran 5",
        "subject": "Jagung hibrida tidak tumbuh",
        "description": "Dari 10 kg benih hanya sedikit yang tumbuh.",
        "complaint_type": "product_quality",
        "complaint_case_type_ids": [3],
        "complaint_case_type_names": ["Daya tumbuh rendah"],
        "related_product_name": "Jagung ADV 777",
    }
    payload.update(overrides)
    return payload


def get_auth_token(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def new_complaint():
    """Factory: public intake form body."""
    return complaint_payload


@pytest.fixture(scope='function')
def login(client):
    """Factory: Authorization headers for a staff profile."""
    def _login(profile) -> dict:
        return auth_headers(get_auth_token(client, profile.user.email))

    return _login
