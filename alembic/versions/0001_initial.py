"""Initial migration

Revision ID: 0001
Revises: 
Create Date: 2026-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create extensions
    op.execute('CREATE EXTENSION IF NOT EXISTS pgcrypto;')

    # Create prizes table
    op.create_table('prizes',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('emoji', sa.String(length=16), nullable=False, server_default='🎁'),
        sa.Column('fulfillment_type', sa.String(length=16), nullable=False, server_default='automatic'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weight_basic', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weight_gold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weight_vip', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('weight_basic >= 0', name='chk_weight_basic_nonneg'),
        sa.CheckConstraint('weight_gold >= 0', name='chk_weight_gold_nonneg'),
        sa.CheckConstraint('weight_vip >= 0', name='chk_weight_vip_nonneg')
    )

    # Create prize_delivery table
    op.create_table('prize_delivery',
        sa.Column('prize_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('is_tier_specific', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('delivery_content', sa.Text(), nullable=True),
        sa.Column('delivery_content_basic', sa.Text(), nullable=True),
        sa.Column('delivery_content_gold', sa.Text(), nullable=True),
        sa.Column('delivery_content_vip', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('prize_id'),
        sa.ForeignKeyConstraint(['prize_id'], ['prizes.id'], ondelete='CASCADE')
    )

    # Create wallets table
    op.create_table('wallets',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('balance', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sa.CheckConstraint('balance >= 0', name='chk_balance_nonneg')
    )

    # Create spins table
    op.create_table('spins',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('prize_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('tier', sa.String(length=16), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('token_hash', sa.String(length=128), nullable=False),
        sa.Column('stripe_payment_id', sa.String(length=255), nullable=True),
        sa.Column('fulfillment_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('fulfillment_link', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.Column('delivered_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('fulfilled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash'),
        sa.ForeignKeyConstraint(['prize_id'], ['prizes.id'])
    )

    # Create wallet_transactions table
    op.create_table('wallet_transactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('wallet_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('stripe_payment_id', sa.String(length=255), nullable=True),
        sa.Column('spin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_payment_id'),
        sa.ForeignKeyConstraint(['wallet_id'], ['wallets.id']),
        sa.ForeignKeyConstraint(['spin_id'], ['spins.id'])
    )

    # Create transactions table (legacy per-spin purchases)
    op.create_table('transactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('stripe_session_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('tier', sa.String(length=16), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='paid'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_session_id')
    )

    # Create user_roles table
    op.create_table('user_roles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('app_role', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'app_role', name='uq_user_role')
    )

    # Create admin_notifications table
    op.create_table('admin_notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('spin_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('notification_type', sa.String(length=64), nullable=False, server_default='manual_prize'),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.Column('resolved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['spin_id'], ['spins.id'])
    )

    # Create email_logs table
    op.create_table('email_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('spin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('email_type', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('provider_message_id', sa.String(length=255), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )

    # Create webhook_logs table
    op.create_table('webhook_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('spin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('webhook_url', sa.Text(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('response_code', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )

    # Create pricing tables
    op.create_table('pricing_config',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('tier', sa.String(length=16), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stripe_price_id', sa.String(length=255), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tier')
    )

    op.create_table('pricing_history',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('tier', sa.String(length=16), nullable=False),
        sa.Column('old_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('new_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stripe_price_id', sa.String(length=255), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('changed_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )

    # Create audit_logs table
    op.create_table('audit_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('admin_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('actor', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=128), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )

    # Create indexes
    op.create_index('ix_prizes_active_position', 'prizes', ['active', 'position'])
    op.create_index('ix_spins_user_id', 'spins', ['user_id'])
    op.create_index('ix_spins_email', 'spins', ['email'])
    op.create_index('ix_spins_status_created', 'spins', ['fulfillment_status', 'created_at'])
    op.create_index('ix_wallet_transactions_wallet_id', 'wallet_transactions', ['wallet_id'])
    op.create_index('ix_wallet_transactions_user_id', 'wallet_transactions', ['user_id'])
    op.create_index('ix_wallet_transactions_spin_id', 'wallet_transactions', ['spin_id'])
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])
    op.create_index('ix_admin_notifications_spin_id', 'admin_notifications', ['spin_id'])
    op.create_index('ix_email_logs_spin_id', 'email_logs', ['spin_id'])
    op.create_index('ix_webhook_logs_spin_id', 'webhook_logs', ['spin_id'])
    op.create_index('ix_pricing_history_tier', 'pricing_history', ['tier'])


def downgrade() -> None:
    # Drop indexes
    op.drop_index('ix_pricing_history_tier')
    op.drop_index('ix_webhook_logs_spin_id')
    op.drop_index('ix_email_logs_spin_id')
    op.drop_index('ix_admin_notifications_spin_id')
    op.drop_index('ix_user_roles_user_id')
    op.drop_index('ix_wallet_transactions_spin_id')
    op.drop_index('ix_wallet_transactions_user_id')
    op.drop_index('ix_wallet_transactions_wallet_id')
    op.drop_index('ix_spins_status_created')
    op.drop_index('ix_spins_email')
    op.drop_index('ix_spins_user_id')
    op.drop_index('ix_prizes_active_position')

    # Drop tables
    op.drop_table('audit_logs')
    op.drop_table('pricing_history')
    op.drop_table('pricing_config')
    op.drop_table('webhook_logs')
    op.drop_table('email_logs')
    op.drop_table('admin_notifications')
    op.drop_table('user_roles')
    op.drop_table('transactions')
    op.drop_table('wallet_transactions')
    op.drop_table('spins')
    op.drop_table('wallets')
    op.drop_table('prize_delivery')
    op.drop_table('prizes')
