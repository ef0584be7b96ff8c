"""Initial schema: schedules, services, and the appointment ledger.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16

Creates:
- contractor_schedules, working_hours, recurring_unavailable_windows, blackout_dates
- schedule_services
- appointments, appointment_status_changes
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ==========================================================================
    # contractor_schedules
    # ==========================================================================
    op.create_table(
        'contractor_schedules',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('contractor_id', sa.Uuid(), nullable=False),
        sa.Column('timezone', sa.String(50), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False),
        sa.Column('buffer_mode', sa.String(20), nullable=False),
        sa.Column('advance_booking_days', sa.Integer(), nullable=False),
        sa.Column('minimum_notice_hours', sa.Integer(), nullable=False),
        sa.Column('is_accepting_bookings', sa.Boolean(), nullable=False),
        sa.Column('auto_confirm_bookings', sa.Boolean(), nullable=False),
        sa.Column('requires_deposit', sa.Boolean(), nullable=False),
        sa.Column('deposit_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('allow_cancellation', sa.Boolean(), nullable=False),
        sa.Column('cancellation_deadline_hours', sa.Integer(), nullable=False),
        sa.Column('refund_mode', sa.String(20), nullable=False),
        sa.Column('partial_refund_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('contractor_id', name='uq_contractor_schedule'),
        sa.CheckConstraint('buffer_minutes >= 0', name='ck_schedule_buffer'),
        sa.CheckConstraint(
            'deposit_percentage >= 0 AND deposit_percentage <= 100', name='ck_schedule_deposit_pct'
        ),
        sa.CheckConstraint(
            'partial_refund_percentage >= 0 AND partial_refund_percentage <= 100',
            name='ck_schedule_refund_pct',
        ),
    )

    op.create_table(
        'working_hours',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('schedule_id', sa.Uuid(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_enabled', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['schedule_id'], ['contractor_schedules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('schedule_id', 'day_of_week', name='uq_working_hours_day'),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_working_hours_dow'),
    )

    op.create_table(
        'recurring_unavailable_windows',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('schedule_id', sa.Uuid(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('label', sa.String(100), nullable=True),
        sa.ForeignKeyConstraint(['schedule_id'], ['contractor_schedules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_recurring_dow'),
    )
    op.create_index(
        'idx_recurring_windows_schedule', 'recurring_unavailable_windows', ['schedule_id', 'day_of_week']
    )

    op.create_table(
        'blackout_dates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('schedule_id', sa.Uuid(), nullable=False),
        sa.Column('blackout_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(255), nullable=True),
        sa.ForeignKeyConstraint(['schedule_id'], ['contractor_schedules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('schedule_id', 'blackout_date', name='uq_blackout_date'),
    )

    # ==========================================================================
    # schedule_services
    # ==========================================================================
    op.create_table(
        'schedule_services',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('schedule_id', sa.Uuid(), nullable=False),
        sa.Column('contractor_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('preparation_minutes', sa.Integer(), nullable=False),
        sa.Column('cleanup_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('deposit_required', sa.Boolean(), nullable=True),
        sa.Column('deposit_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['schedule_id'], ['contractor_schedules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('duration_minutes > 0', name='ck_service_duration'),
        sa.CheckConstraint(
            'preparation_minutes >= 0 AND cleanup_minutes >= 0', name='ck_service_prep_cleanup'
        ),
        sa.CheckConstraint('price >= 0', name='ck_service_price'),
    )
    op.create_index(
        'idx_schedule_services_contractor', 'schedule_services', ['contractor_id', 'is_active']
    )

    # ==========================================================================
    # appointments
    # ==========================================================================
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('contractor_id', sa.Uuid(), nullable=False),
        sa.Column('schedule_id', sa.Uuid(), nullable=False),
        sa.Column('service_id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=True),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('client_email', sa.String(320), nullable=False),
        sa.Column('client_phone', sa.String(30), nullable=True),
        sa.Column('client_address', sa.String(500), nullable=True),
        sa.Column('client_notes', sa.Text(), nullable=True),
        sa.Column('scheduled_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('scheduled_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('block_minutes', sa.Integer(), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False),
        sa.Column('buffer_mode', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('deposit_required', sa.Boolean(), nullable=False),
        sa.Column('deposit_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('deposit_paid', sa.Boolean(), nullable=False),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False),
        sa.Column('payment_reference', sa.String(255), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by', sa.Uuid(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('refund_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('refund_reason', sa.String(100), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['schedule_id'], ['contractor_schedules.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['service_id'], ['schedule_services.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('scheduled_end > scheduled_start', name='ck_appointment_span'),
    )
    op.create_index('idx_appointments_contractor_start', 'appointments', ['contractor_id', 'scheduled_start'])
    op.create_index('idx_appointments_contractor_status', 'appointments', ['contractor_id', 'status'])
    op.create_index('idx_appointments_service', 'appointments', ['service_id'])
    op.create_index('idx_appointments_client', 'appointments', ['client_id'])

    op.create_table(
        'appointment_status_changes',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('appointment_id', sa.Uuid(), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=True),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('changed_by', sa.Uuid(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_status_changes_appointment', 'appointment_status_changes', ['appointment_id', 'changed_at']
    )


def downgrade() -> None:
    op.drop_table('appointment_status_changes')
    op.drop_table('appointments')
    op.drop_table('schedule_services')
    op.drop_table('blackout_dates')
    op.drop_table('recurring_unavailable_windows')
    op.drop_table('working_hours')
    op.drop_table('contractor_schedules')
