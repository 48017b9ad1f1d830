"""initial schema

Revision ID: 2026_10_18_0000
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '2026_10_18_0000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create clients, cases, payments and activity_log."""

    # ========================================================================
    # Create clients table
    # ========================================================================
    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('client_id', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('postcode', sa.String(20), nullable=True),
        sa.Column('country', sa.String(50), nullable=False, server_default='UK'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),

        # Constraints
        sa.CheckConstraint("status IN ('active', 'inactive', 'suspended')", name='ck_client_status'),
        sa.UniqueConstraint('client_id', name='uq_clients_client_id'),
        sa.UniqueConstraint('email', name='uq_clients_email'),
    )

    op.create_index('idx_clients_status', 'clients', ['status'])
    op.create_index('idx_clients_created_at', 'clients', ['created_at'])

    # ========================================================================
    # Create cases table
    # ========================================================================
    op.create_table(
        'cases',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('case_id', sa.String(64), nullable=False),
        sa.Column('client_id', sa.String(64), sa.ForeignKey('clients.client_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('debtor_name', sa.String(255), nullable=False),
        sa.Column('debtor_company', sa.String(255), nullable=True),
        sa.Column('debtor_email', sa.String(255), nullable=True),
        sa.Column('debtor_phone', sa.String(50), nullable=True),
        sa.Column('debtor_address', sa.String(500), nullable=True),
        sa.Column('amount_owed', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='GBP'),
        sa.Column('debt_type', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('priority', sa.String(10), nullable=False, server_default='medium'),
        sa.Column('assigned_to', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),

        # Constraints
        sa.CheckConstraint('amount_owed > 0', name='ck_case_amount_positive'),
        sa.CheckConstraint("status IN ('pending', 'in_progress', 'resolved', 'closed')", name='ck_case_status'),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high')", name='ck_case_priority'),
        sa.UniqueConstraint('case_id', name='uq_cases_case_id'),
    )

    op.create_index('idx_cases_client_id', 'cases', ['client_id'])
    op.create_index('idx_cases_status', 'cases', ['status'])
    op.create_index('idx_cases_created_at', 'cases', ['created_at'])

    # ========================================================================
    # Create payments table
    # ========================================================================
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('payment_id', sa.String(64), nullable=False),
        sa.Column('case_id', sa.String(64), sa.ForeignKey('cases.case_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('client_id', sa.String(64), sa.ForeignKey('clients.client_id', ondelete='RESTRICT'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('reference', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),

        # Constraints
        sa.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
        sa.UniqueConstraint('payment_id', name='uq_payments_payment_id'),
    )

    op.create_index('idx_payments_case_id', 'payments', ['case_id'])
    op.create_index('idx_payments_client_status', 'payments', ['client_id', 'status'])

    # ========================================================================
    # Create activity_log table
    # ========================================================================
    op.create_table(
        'activity_log',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('user_type', sa.String(20), nullable=False, server_default='client'),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_index('idx_activity_log_created_at', 'activity_log', ['created_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('idx_activity_log_created_at', table_name='activity_log')
    op.drop_table('activity_log')

    op.drop_index('idx_payments_client_status', table_name='payments')
    op.drop_index('idx_payments_case_id', table_name='payments')
    op.drop_table('payments')

    op.drop_index('idx_cases_created_at', table_name='cases')
    op.drop_index('idx_cases_status', table_name='cases')
    op.drop_index('idx_cases_client_id', table_name='cases')
    op.drop_table('cases')

    op.drop_index('idx_clients_created_at', table_name='clients')
    op.drop_index('idx_clients_status', table_name='clients')
    op.drop_table('clients')
