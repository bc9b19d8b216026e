"""Initial schema: machines, settings history, counters, settlements, invoices

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration adds:
1. users (attribution only; sign-in is handled upstream)
2. machines and machine_change_logs
3. machine_settings_history (time-versioned settings)
4. machine_counter_reports (cumulative counter snapshots)
5. pay_to_clowee (saved settlements) and invoices
6. document_sequences (invoice numbering)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_username'), ['username'], unique=True)

    # ==========================================================================
    # 2. MACHINES
    # ==========================================================================
    op.create_table('machines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('installation_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('coin_price', sa.Float(), nullable=False),
        sa.Column('doll_price', sa.Float(), nullable=False),
        sa.Column('electricity_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('vat_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('maintenance_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('owner_profit_share_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('clowee_profit_share_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('duration', sa.String(length=16), nullable=False, server_default='full_month'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('machines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_machines_is_active'), ['is_active'], unique=False)
        batch_op.create_index('ix_machines_active_name', ['is_active', 'name'], unique=False)

    op.create_table('machine_change_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('machine_id', sa.Integer(), nullable=False),
        sa.Column('field', sa.String(length=64), nullable=False),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['machine_id'], ['machines.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('machine_change_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_machine_change_logs_machine_id'), ['machine_id'], unique=False)

    # ==========================================================================
    # 3. SETTINGS HISTORY
    # ==========================================================================
    op.create_table('machine_settings_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('machine_id', sa.Integer(), nullable=False),
        sa.Column('field_name', sa.String(length=64), nullable=False),
        sa.Column('field_value', sa.Text(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['machine_id'], ['machines.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('machine_settings_history', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_machine_settings_history_machine_id'), ['machine_id'], unique=False)
        batch_op.create_index('ix_settings_history_lookup', ['machine_id', 'field_name', 'effective_date'], unique=False)

    # ==========================================================================
    # 4. COUNTER REPORTS
    # ==========================================================================
    op.create_table('machine_counter_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('machine_id', sa.Integer(), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('coin_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('prize_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['machine_id'], ['machines.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('machine_id', 'report_date', name='uq_counter_reports_machine_date'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('machine_counter_reports', schema=None) as batch_op:
        batch_op.create_index('ix_counter_reports_machine_date', ['machine_id', 'report_date'], unique=False)

    # ==========================================================================
    # 5. SETTLEMENTS AND INVOICES
    # ==========================================================================
    op.create_table('pay_to_clowee',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('machine_id', sa.Integer(), nullable=False),
        sa.Column('machine_name', sa.String(length=255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_coins', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_prizes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_income', sa.Float(), nullable=False, server_default='0'),
        sa.Column('prize_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('electricity_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('vat_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('maintenance_cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('profit_base', sa.Float(), nullable=False, server_default='0'),
        sa.Column('profit_share_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('owner_profit_share_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('net_payable', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['machine_id'], ['machines.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('pay_to_clowee', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_pay_to_clowee_machine_id'), ['machine_id'], unique=False)
        batch_op.create_index('ix_pay_to_clowee_machine_period', ['machine_id', 'start_date', 'end_date'], unique=False)

    op.create_table('invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pay_to_clowee_id', sa.Integer(), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['pay_to_clowee_id'], ['pay_to_clowee.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('pay_to_clowee_id', name='uq_invoices_settlement'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('invoices', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_invoices_invoice_number'), ['invoice_number'], unique=True)

    # ==========================================================================
    # 6. DOCUMENT SEQUENCES
    # ==========================================================================
    op.create_table('document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('scope_key', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('document_type', 'scope_key', name='uq_document_sequences_type_scope'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('document_sequences')
    op.drop_table('invoices')
    op.drop_table('pay_to_clowee')
    op.drop_table('machine_counter_reports')
    op.drop_table('machine_settings_history')
    op.drop_table('machine_change_logs')
    op.drop_table('machines')
    op.drop_table('users')
