"""Complaint system: staff accounts, complaints, assignments, findings, settings

Revision ID: 20261017_complaints
Revises:
Create Date: 2026-10-17

This migration adds:
1. users and session_tokens (staff authentication)
2. user_complaint_profiles (department, permissions, workload, performance)
3. complaints plus assignment, history and response tables
4. complaint_observations, complaint_investigations, complaint_lab_testing
5. complaint_system_settings (SLA configuration)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261017_complaints'
down_revision = None
branch_labels = None
depends_on = None


GERMINATION_FLAGS = [
    'is_germination_issue', 'germination_below_85', 'seed_not_found', 'seed_not_grow_soil',
    'seed_damaged_chemical', 'seed_damaged_insect', 'fungal_infection', 'seed_excavated',
    'additional_seed_treatment', 'seed_soaking', 'planting_depth_over_7cm',
]

INVESTIGATION_CHECKLIST = [
    'packaging_damage', 'product_error', 'delivery_issue', 'delivery_condition', 'growth_issue',
    'seed_treatment_issue', 'product_appearance', 'product_purity', 'seed_health',
    'physiological_factors', 'genetic_issue', 'herbicide_damage', 'product_performance',
    'product_expired',
]


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def _lab_sample(prefix):
    return [
        sa.Column(f'{prefix}_sample_received_date', sa.Date(), nullable=True),
        sa.Column(f'{prefix}_germination_result_date', sa.Date(), nullable=True),
        sa.Column(f'{prefix}_vigour_result_date', sa.Date(), nullable=True),
        sa.Column(f'{prefix}_germination_percent', sa.Float(), nullable=True),
        sa.Column(f'{prefix}_vigour_percent', sa.Float(), nullable=True),
        sa.Column(f'{prefix}_physical_purity_percent', sa.Float(), nullable=True),
        sa.Column(f'{prefix}_mc_percent', sa.Float(), nullable=True),
        sa.Column(f'{prefix}_genetic_purity_percent', sa.Float(), nullable=True),
        sa.Column(f'{prefix}_result', sa.String(length=64), nullable=True),
    ]


def upgrade():
    # ==========================================================================
    # 1. STAFF AUTHENTICATION
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('is_superadmin', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_session_tokens_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_is_revoked'), ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 2. STAFF COMPLAINT PROFILES
    # ==========================================================================
    op.create_table('user_complaint_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=64), nullable=False, server_default='customer_service'),
        sa.Column('complaint_permissions', sa.JSON(), nullable=False),
        sa.Column('max_assigned_complaints', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('current_assigned_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('customer_satisfaction_avg', sa.Float(), nullable=True),
        sa.Column('avg_resolution_time', sa.Float(), nullable=True),
        sa.Column('total_resolved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rated_resolutions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('user_complaint_profiles', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_user_complaint_profiles_user_id'), ['user_id'], unique=True)
        batch_op.create_index(batch_op.f('ix_user_complaint_profiles_department'), ['department'], unique=False)
        batch_op.create_index(batch_op.f('ix_user_complaint_profiles_is_active'), ['is_active'], unique=False)
        batch_op.create_index('ix_complaint_profiles_dept_active', ['department', 'is_active'], unique=False)

    # ==========================================================================
    # 3. COMPLAINTS
    # ==========================================================================
    op.create_table('complaints',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_number', sa.String(length=32), nullable=False),
        sa.Column('complaint_category_id', sa.Integer(), nullable=True),
        sa.Column('complaint_category_name', sa.String(length=255), nullable=True),
        sa.Column('complaint_subcategory_id', sa.Integer(), nullable=True),
        sa.Column('complaint_subcategory_name', sa.String(length=255), nullable=True),
        sa.Column('complaint_case_type_ids', sa.JSON(), nullable=False),
        sa.Column('complaint_case_type_names', sa.JSON(), nullable=False),
        sa.Column('complaint_type', sa.String(length=64), nullable=False, server_default='other'),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=32), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_province', sa.String(length=128), nullable=False),
        sa.Column('customer_city', sa.String(length=128), nullable=False),
        sa.Column('customer_address', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='submitted'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('department', sa.String(length=64), nullable=True, server_default='customer_service'),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('first_response_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('escalated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('first_response_sla', sa.String(length=16), nullable=True),
        sa.Column('resolution_sla', sa.String(length=16), nullable=True),
        sa.Column('resolution', sa.Text(), nullable=True),
        sa.Column('resolution_summary', sa.Text(), nullable=True),
        sa.Column('resolved_by', sa.Integer(), nullable=True),
        sa.Column('customer_satisfaction_rating', sa.Integer(), nullable=True),
        sa.Column('customer_feedback', sa.Text(), nullable=True),
        sa.Column('feedback_quick_answers', sa.JSON(), nullable=True),
        sa.Column('feedback_submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('acknowledged_replacement_qty', sa.Integer(), nullable=True),
        sa.Column('acknowledged_replacement_hybrid', sa.String(length=255), nullable=True),
        sa.Column('escalated', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('escalated_by', sa.Integer(), nullable=True),
        sa.Column('related_product_serial', sa.String(length=128), nullable=True),
        sa.Column('related_product_name', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['resolved_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['escalated_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaints', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_complaints_complaint_number'), ['complaint_number'], unique=True)
        batch_op.create_index(batch_op.f('ix_complaints_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_complaints_assigned_to'), ['assigned_to'], unique=False)
        batch_op.create_index(batch_op.f('ix_complaints_created_at'), ['created_at'], unique=False)
        batch_op.create_index('ix_complaints_status_created', ['status', 'created_at'], unique=False)
        batch_op.create_index('ix_complaints_department', ['department'], unique=False)

    op.create_table('complaint_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_id', sa.Integer(), nullable=False),
        sa.Column('assigned_to', sa.Integer(), nullable=False),
        sa.Column('assigned_by', sa.Integer(), nullable=True),
        sa.Column('assignment_reason', sa.Text(), nullable=True),
        sa.Column('previous_assignee', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('assigned_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('unassigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unassigned_by', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['previous_assignee'], ['users.id'], ),
        sa.ForeignKeyConstraint(['unassigned_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaint_assignments', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_complaint_assignments_complaint_id'), ['complaint_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_complaint_assignments_assigned_to'), ['assigned_to'], unique=False)
        batch_op.create_index('ix_complaint_assignments_active', ['complaint_id', 'is_active'], unique=False)

    op.create_table('complaint_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaint_history', schema=None) as batch_op:
        batch_op.create_index('ix_complaint_history_complaint_created', ['complaint_id', 'created_at'], unique=False)

    op.create_table('complaint_responses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_id', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('response_type', sa.String(length=32), nullable=False, server_default='reply'),
        sa.Column('is_internal', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('admin_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ),
        sa.ForeignKeyConstraint(['admin_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaint_responses', schema=None) as batch_op:
        batch_op.create_index('ix_complaint_responses_complaint', ['complaint_id', 'created_at'], unique=False)

    # ==========================================================================
    # 4. FIELD FINDINGS (one row per complaint per stage)
    # ==========================================================================
    op.create_table('complaint_observations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_id', sa.Integer(), nullable=False),
        sa.Column('observer_id', sa.Integer(), nullable=True),
        sa.Column('planting_date', sa.Date(), nullable=True),
        sa.Column('label_expired_date', sa.Date(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('purchase_place', sa.String(length=255), nullable=True),
        sa.Column('purchase_address', sa.Text(), nullable=True),
        sa.Column('observer_name', sa.String(length=255), nullable=True),
        sa.Column('observer_position', sa.String(length=255), nullable=True),
        sa.Column('observation_date', sa.Date(), nullable=True),
        *[sa.Column(name, sa.String(length=8), nullable=True) for name in GERMINATION_FLAGS],
        sa.Column('has_purchase_proof', sa.String(length=8), nullable=True),
        sa.Column('has_packaging_evidence', sa.String(length=8), nullable=True),
        sa.Column('replacement_qty', sa.Integer(), nullable=True),
        sa.Column('replacement_hybrid', sa.String(length=255), nullable=True),
        sa.Column('observation_result', sa.String(length=16), nullable=True),
        sa.Column('general_notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ),
        sa.ForeignKeyConstraint(['observer_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaint_observations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_complaint_observations_complaint_id'), ['complaint_id'], unique=True)

    op.create_table('complaint_investigations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_id', sa.Integer(), nullable=False),
        sa.Column('investigator_id', sa.Integer(), nullable=True),
        sa.Column('investigator_name', sa.String(length=255), nullable=True),
        sa.Column('investigator_position', sa.String(length=255), nullable=True),
        sa.Column('investigation_date', sa.Date(), nullable=True),
        sa.Column('initiator_complaint', sa.String(length=255), nullable=True),
        sa.Column('complaint_location', sa.Text(), nullable=True),
        sa.Column('farmer_name', sa.String(length=255), nullable=True),
        sa.Column('complaint_type', sa.String(length=64), nullable=True),
        sa.Column('seed_variety', sa.String(length=255), nullable=True),
        sa.Column('lot_number_check', sa.String(length=128), nullable=True),
        sa.Column('problematic_quantity_kg', sa.Float(), nullable=True),
        sa.Column('planting_date', sa.Date(), nullable=True),
        sa.Column('label_expired_date', sa.Date(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('purchase_place', sa.String(length=255), nullable=True),
        sa.Column('purchase_address', sa.Text(), nullable=True),
        sa.Column('cause_category', sa.String(length=128), nullable=True),
        *[sa.Column(name, sa.String(length=8), nullable=True) for name in INVESTIGATION_CHECKLIST],
        sa.Column('problem_description', sa.Text(), nullable=True),
        sa.Column('action_taken', sa.Text(), nullable=True),
        sa.Column('pest_info', sa.Text(), nullable=True),
        sa.Column('agronomic_aspect', sa.Text(), nullable=True),
        sa.Column('environment_info', sa.Text(), nullable=True),
        sa.Column('plant_performance_phase', sa.Text(), nullable=True),
        sa.Column('investigation_conclusion', sa.Text(), nullable=True),
        sa.Column('root_cause_determination', sa.Text(), nullable=True),
        sa.Column('long_term_corrective_action', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ),
        sa.ForeignKeyConstraint(['investigator_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaint_investigations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_complaint_investigations_complaint_id'), ['complaint_id'], unique=True)

    op.create_table('complaint_lab_testing',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('complaint_id', sa.Integer(), nullable=False),
        sa.Column('technician_id', sa.Integer(), nullable=True),
        *_lab_sample('market'),
        *_lab_sample('guard'),
        sa.Column('lab_technician_name', sa.String(length=255), nullable=True),
        sa.Column('testing_method', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['complaint_id'], ['complaints.id'], ),
        sa.ForeignKeyConstraint(['technician_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('complaint_lab_testing', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_complaint_lab_testing_complaint_id'), ['complaint_id'], unique=True)

    # ==========================================================================
    # 5. SETTINGS
    # ==========================================================================
    op.create_table('complaint_system_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('setting_key', sa.String(length=128), nullable=False),
        sa.Column('setting_value', sa.JSON(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('updated_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['updated_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('setting_key', name='uq_complaint_settings_key'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('complaint_system_settings')
    op.drop_table('complaint_lab_testing')
    op.drop_table('complaint_investigations')
    op.drop_table('complaint_observations')
    op.drop_table('complaint_responses')
    op.drop_table('complaint_history')
    op.drop_table('complaint_assignments')
    op.drop_table('complaints')
    op.drop_table('user_complaint_profiles')
    op.drop_table('session_tokens')
    op.drop_table('users')
