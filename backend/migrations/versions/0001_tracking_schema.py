"""tracking schema: tickets, estimates, histories, staff roles, notifications

Revision ID: 0001_tracking_schema
Revises: 
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

revision = '0001_tracking_schema'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(10, 2)
TS = sa.DateTime(timezone=True)


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    if not insp.has_table('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False, unique=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
            sa.Column('updated_at', TS, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_users_email', 'users', ['email'])

    if not insp.has_table('user_roles'):
        op.create_table('user_roles',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
            sa.Column('role', sa.String(length=32), nullable=False),
            sa.UniqueConstraint('user_id', 'role', name='uq_user_role')
        )
        op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])
        op.create_index('ix_user_roles_role', 'user_roles', ['role'])

    if not insp.has_table('customers'):
        op.create_table('customers',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('first_name', sa.String(length=80), nullable=False),
            sa.Column('last_name', sa.String(length=80), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=40), nullable=True)
        )

    if not insp.has_table('devices'):
        op.create_table('devices',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('brand', sa.String(length=80), nullable=False),
            sa.Column('model', sa.String(length=120), nullable=False),
            sa.Column('device_type', sa.String(length=32), nullable=False, server_default='HANDY'),
            sa.Column('serial_number', sa.String(length=80), nullable=True),
            sa.Column('imei', sa.String(length=32), nullable=True)
        )

    if not insp.has_table('locations'):
        op.create_table('locations',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('address', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=40), nullable=True)
        )

    if not insp.has_table('repair_tickets'):
        op.create_table('repair_tickets',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('ticket_number', sa.String(length=32), nullable=False, unique=True),
            sa.Column('status', sa.String(length=40), nullable=False, server_default='NEU_EINGEGANGEN'),
            sa.Column('tracking_token', sa.String(length=128), nullable=True),
            sa.Column('error_description_text', sa.Text(), nullable=True),
            sa.Column('kva_required', sa.Boolean(), nullable=False, server_default=sa.text('0')),
            sa.Column('kva_approved', sa.Boolean(), nullable=True),
            sa.Column('kva_approved_at', TS, nullable=True),
            sa.Column('disposal_option', sa.String(length=32), nullable=True),
            sa.Column('is_b2b', sa.Boolean(), nullable=False, server_default=sa.text('0')),
            sa.Column('estimated_price', MONEY, nullable=True),
            sa.Column('endcustomer_price', MONEY, nullable=True),
            sa.Column('endcustomer_price_released', sa.Boolean(), nullable=False, server_default=sa.text('0')),
            sa.Column('email_opt_in', sa.Boolean(), nullable=False, server_default=sa.text('1')),
            sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
            sa.Column('device_id', sa.Integer(), sa.ForeignKey('devices.id'), nullable=True),
            sa.Column('location_id', sa.Integer(), sa.ForeignKey('locations.id'), nullable=True),
            sa.Column('created_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_repair_tickets_ticket_number', 'repair_tickets', ['ticket_number'])
        op.create_index('ix_repair_tickets_status', 'repair_tickets', ['status'])

    if not insp.has_table('kva_estimates'):
        op.create_table('kva_estimates',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('repair_ticket_id', sa.Integer(), sa.ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=False),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.text('1')),
            sa.Column('kva_type', sa.String(length=16), nullable=False, server_default='FIXPREIS'),
            sa.Column('status', sa.String(length=32), nullable=False, server_default='ERSTELLT'),
            sa.Column('repair_cost', MONEY, nullable=True),
            sa.Column('parts_cost', MONEY, nullable=True),
            sa.Column('total_cost', MONEY, nullable=True),
            sa.Column('min_cost', MONEY, nullable=True),
            sa.Column('max_cost', MONEY, nullable=True),
            sa.Column('kva_fee_amount', MONEY, nullable=True),
            sa.Column('kva_fee_waived', sa.Boolean(), nullable=False, server_default=sa.text('0')),
            sa.Column('valid_until', TS, nullable=True),
            sa.Column('diagnosis', sa.Text(), nullable=True),
            sa.Column('repair_description', sa.Text(), nullable=True),
            sa.Column('decision', sa.String(length=32), nullable=True),
            sa.Column('decision_at', TS, nullable=True),
            sa.Column('decision_by_customer', sa.Boolean(), nullable=True),
            sa.Column('decision_channel', sa.String(length=16), nullable=True),
            sa.Column('disposal_option', sa.String(length=32), nullable=True),
            sa.Column('endcustomer_price', MONEY, nullable=True),
            sa.Column('endcustomer_price_released', sa.Boolean(), nullable=False, server_default=sa.text('0')),
            sa.Column('reminder_sent_at', TS, nullable=True),
            sa.Column('created_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_kva_estimates_repair_ticket_id', 'kva_estimates', ['repair_ticket_id'])
        op.create_index('ix_kva_estimates_is_current', 'kva_estimates', ['is_current'])
        op.create_index('ix_kva_estimates_status', 'kva_estimates', ['status'])

    if not insp.has_table('kva_history'):
        op.create_table('kva_history',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('kva_estimate_id', sa.Integer(), sa.ForeignKey('kva_estimates.id', ondelete='CASCADE'), nullable=False),
            sa.Column('action', sa.String(length=32), nullable=False),
            sa.Column('new_values', sa.JSON(), nullable=True),
            sa.Column('note', sa.Text(), nullable=True),
            sa.Column('created_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_kva_history_kva_estimate_id', 'kva_history', ['kva_estimate_id'])

    if not insp.has_table('status_history'):
        op.create_table('status_history',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('repair_ticket_id', sa.Integer(), sa.ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=False),
            sa.Column('old_status', sa.String(length=40), nullable=True),
            sa.Column('new_status', sa.String(length=40), nullable=False),
            sa.Column('note', sa.Text(), nullable=True),
            sa.Column('created_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_status_history_repair_ticket_id', 'status_history', ['repair_ticket_id'])
        op.create_index('ix_status_history_created_at', 'status_history', ['created_at'])

    if not insp.has_table('ticket_messages'):
        op.create_table('ticket_messages',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('repair_ticket_id', sa.Integer(), sa.ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=False),
            sa.Column('sender_type', sa.String(length=16), nullable=False),
            sa.Column('sender_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('message_text', sa.Text(), nullable=False),
            sa.Column('created_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_ticket_messages_repair_ticket_id', 'ticket_messages', ['repair_ticket_id'])

    if not insp.has_table('notification_logs'):
        op.create_table('notification_logs',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('channel', sa.String(length=16), nullable=False, server_default='EMAIL'),
            sa.Column('trigger', sa.String(length=32), nullable=False),
            sa.Column('type', sa.String(length=32), nullable=True),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='NEW'),
            sa.Column('repair_ticket_id', sa.Integer(), sa.ForeignKey('repair_tickets.id', ondelete='CASCADE'), nullable=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
            sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
            sa.Column('title', sa.String(length=120), nullable=True),
            sa.Column('message', sa.Text(), nullable=True),
            sa.Column('payload', sa.JSON(), nullable=True),
            sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
            sa.Column('created_at', TS, nullable=False, server_default=sa.text('CURRENT_TIMESTAMP'))
        )
        op.create_index('ix_notification_logs_trigger', 'notification_logs', ['trigger'])
        op.create_index('ix_notification_logs_repair_ticket_id', 'notification_logs', ['repair_ticket_id'])
        op.create_index('ix_notification_logs_user_id', 'notification_logs', ['user_id'])


def downgrade():
    for table in ['notification_logs', 'ticket_messages', 'status_history', 'kva_history', 'kva_estimates',
                  'repair_tickets', 'locations', 'devices', 'customers', 'user_roles', 'users']:
        op.drop_table(table)
