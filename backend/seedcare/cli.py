# Overview: Flask CLI command groups for bootstrap, staff inspection and complaint reporting.

# backend/seedcare/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--admin-email admin@seedcare.local] [--admin-password "Password123!"]
#   Idempotent bootstrap: creates tables, default SLA settings and a superadmin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff profiles:
# - python -m flask staff list [--department customer_service] [--all]
#   List complaint-handling profiles with their current workload.
# - python -m flask staff create --email cs1@seedcare.local --full-name "CS One" --department customer_service
#   Create a staff user plus complaint profile (prompts for the password).
#
# Complaint reporting:
# - python -m flask complaints analytics --period 30
#   Print the analytics report for the last N days as JSON.
# - python -m flask complaints stats
#   Print the dashboard counters as JSON.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import COMPLAINT_PERMISSION_KEYS, User
from .services import analytics_service, complaint_service, settings_service, staff_service
from .services.auth_service import create_user, PasswordValidationError
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default='admin@seedcare.local', help='Superadmin email')
@click.option('--admin-name', default='Administrator', help='Superadmin display name')
@click.option('--admin-password', default='Password123!', help='Superadmin password')
@with_appcontext
def init_system(admin_email, admin_name, admin_password):
    """
    Initialize the complaint system: tables, SLA settings and a superadmin.

    Safe to run repeatedly; existing rows are left untouched.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing complaint system...")

    db.create_all()
    click.echo("PASS Tables ready")

    if settings_service.ensure_default_settings():
        click.echo("PASS Created default SLA configuration")
    else:
        click.echo("PASS Using existing SLA configuration")

    existing = db.session.query(User).filter_by(email=admin_email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  User '{admin_email}' already exists, skipping...")
        admin = existing
    else:
        try:
            admin = create_user(admin_email, admin_name, admin_password, is_superadmin=True)
            click.echo(f"PASS Created superadmin: {admin.email}")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{admin_email}': {str(e)}")
            return
        except ValueError as e:
            click.echo(f"FAIL Failed to create '{admin_email}': {str(e)}")
            return

    if admin.complaint_profile is None:
        staff_service.upsert_profile(admin.id, {
            "department": "management",
            "complaint_permissions": {key: True for key in COMPLAINT_PERMISSION_KEYS},
        })
        click.echo("PASS Created complaint profile for superadmin")

    click.echo("\n" + "="*60)
    click.echo("DONE Complaint System Initialized Successfully!")
    click.echo("="*60)


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping every table')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    settings_service.ensure_default_settings()
    click.echo("PASS Database reset")


@click.group('staff')
def staff_group():
    """Staff profile inspection and bootstrap commands."""


@staff_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--department', default='customer_service', help='Complaint department')
@click.option('--max-assigned', type=int, default=10, help='Maximum concurrent assignments')
@click.option('--permission', 'permissions', multiple=True,
              type=click.Choice(COMPLAINT_PERMISSION_KEYS), help='Complaint permission (repeatable)')
@with_appcontext
def create_staff(email, full_name, password, department, max_assigned, permissions):
    """
    Create a staff user together with their complaint profile.

    Without --permission the profile may view and respond to complaints.
    """
    granted = permissions or ("canViewComplaints", "canRespondToComplaints")
    try:
        user = create_user(email, full_name, password)
        profile = staff_service.upsert_profile(user.id, {
            "department": department,
            "max_assigned_complaints": max_assigned,
            "complaint_permissions": {key: True for key in granted},
        })
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except (ValueError, ValidationError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created staff '{user.email}' in {profile.department} (profile ID: {profile.id})")


@staff_group.command('list')
@click.option('--department', help='Filter by department')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive profiles')
@with_appcontext
def list_staff(department, include_inactive):
    """List complaint profiles with workload and performance."""
    profiles = staff_service.list_profiles(department=department, include_inactive=include_inactive)

    if not profiles:
        click.echo("No staff profiles found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'User':<6} {'Name':<25} {'Department':<20} {'Load':<8} {'CSAT':<6} {'Resolved':<9} {'Active'}")
    click.echo("="*100)

    for p in profiles:
        load = f"{p.current_assigned_count}/{p.max_assigned_complaints}"
        csat = f"{p.customer_satisfaction_avg:.2f}" if p.customer_satisfaction_avg is not None else "-"
        click.echo(
            f"{p.user_id:<6} {p.full_name[:24]:<25} {p.department:<20} {load:<8} "
            f"{csat:<6} {p.total_resolved:<9} {'yes' if p.is_active else 'no'}"
        )

    click.echo("="*100)
    click.echo(f"Total: {len(profiles)} profile(s)\n")


@click.group('complaints')
def complaints_group():
    """Complaint reporting commands."""


@complaints_group.command('analytics')
@click.option('--period', default='30', help='Window in days')
@with_appcontext
def analytics_report(period):
    """Print the analytics report for the last N days."""
    try:
        days = analytics_service.parse_period(period, 30)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint='--period')
    report = analytics_service.complaint_analytics(days)
    click.echo(json.dumps(report, indent=2, default=str))


@complaints_group.command('stats')
@with_appcontext
def stats_report():
    """Print dashboard counters."""
    click.echo(json.dumps(complaint_service.complaint_stats(), indent=2, default=str))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(complaints_group)
