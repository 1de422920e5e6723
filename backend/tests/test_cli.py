"""
CLI command tests.

Verifies:
- system init is idempotent and seeds settings, superadmin and profile
- staff create / list
- complaints stats prints JSON
"""

import json

from seedcare.models import ComplaintSetting, StaffProfile, User


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init", "--admin-email", "root@seedcare.test"])
    assert result.exit_code == 0
    assert "Created superadmin" in result.output

    again = runner.invoke(args=["system", "init", "--admin-email", "root@seedcare.test"])
    assert again.exit_code == 0
    assert "already exists" in again.output

    admin = db_session.query(User).filter_by(email="root@seedcare.test").one()
    assert admin.is_superadmin is True
    assert db_session.query(StaffProfile).filter_by(user_id=admin.id).count() == 1
    assert db_session.query(ComplaintSetting).count() == 1


def test_staff_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "staff", "create",
        "--email", "lab1@seedcare.test",
        "--full-name", "Lab One",
        "--password", "Password123!",
        "--department", "lab_tasting",
        "--permission", "canViewComplaints",
    ])
    assert result.exit_code == 0
    assert "lab_tasting" in result.output

    profile = db_session.query(StaffProfile).one()
    assert profile.complaint_permissions == {"canViewComplaints": True}

    listing = runner.invoke(args=["staff", "list", "--department", "lab_tasting"])
    assert "Lab One" in listing.output
    assert "0/10" in listing.output


def test_staff_list_empty(app, db_session):
    result = app.test_cli_runner().invoke(args=["staff", "list"])
    assert "No staff profiles found." in result.output


def test_complaint_stats(app, db_session, make_complaint):
    make_complaint(priority="critical")
    result = app.test_cli_runner().invoke(args=["complaints", "stats"])
    assert result.exit_code == 0
    assert json.loads(result.output)["critical"] == 1
