"""Initial PocketPal schema.

Revision ID: initial_schema
Revises:
Create Date: 2025-01-01
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def _owner():
    return sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(64), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('role', sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('owner_id', 'role', name='uq_user_role'),
    )
    op.create_index('ix_user_roles_owner_id', 'user_roles', ['owner_id'])

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('initial_balance', sa.Numeric(18, 2), nullable=False),
        sa.Column('initial_invested_capital', sa.Numeric(18, 2), nullable=False),
        sa.Column('color', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_accounts_owner_id', 'accounts', ['owner_id'])
    op.create_index('idx_account_owner_order', 'accounts', ['owner_id', 'sort_order'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('primary_currency', sa.String(3), nullable=False),
        sa.Column('default_account_id', sa.Integer(),
                  sa.ForeignKey('accounts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('preferences', sa.JSON(), nullable=False),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'wallet_configs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('account_id', sa.Integer(),
                  sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('monthly_topup', sa.Numeric(18, 2), nullable=False),
        sa.Column('topup_day', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_wallet_configs_owner_id', 'wallet_configs', ['owner_id'])

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('icon', sa.String(20), nullable=True),
        sa.Column('color', sa.String(20), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_categories_owner_id', 'categories', ['owner_id'])
    op.create_index('idx_category_owner_kind', 'categories', ['owner_id', 'kind'])
    op.create_index('idx_category_parent', 'categories', ['parent_id'])

    op.create_table(
        'recurring_templates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('concept', sa.String(200), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('day_of_month', sa.Integer(), nullable=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('subcategory_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_transfer', sa.Boolean(), nullable=False),
        sa.Column('destination_account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_recurring_templates_owner_id', 'recurring_templates', ['owner_id'])

    op.create_table(
        'movements',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('concept', sa.String(200), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=False),
        sa.Column('subcategory_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False),
        sa.Column('recurring_template_id', sa.Integer(),
                  sa.ForeignKey('recurring_templates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('month', sa.String(7), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_movements_owner_id', 'movements', ['owner_id'])
    op.create_index('idx_movement_owner_month', 'movements', ['owner_id', 'month'])
    op.create_index('idx_movement_account_date', 'movements', ['account_id', 'date'])

    op.create_table(
        'net_worth_snapshots',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('month', sa.String(7), nullable=False),
        sa.Column('account_id', sa.Integer(),
                  sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('registered_balance', sa.Numeric(18, 2), nullable=True),
        sa.Column('calculated_balance', sa.Numeric(18, 2), nullable=True),
        sa.Column('exchange_rate', sa.Numeric(18, 6), nullable=True),
        sa.Column('kind', sa.String(10), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('owner_id', 'account_id', 'month', name='uq_snapshot_account_month'),
    )
    op.create_index('ix_net_worth_snapshots_owner_id', 'net_worth_snapshots', ['owner_id'])
    op.create_index('idx_snapshot_owner_month', 'net_worth_snapshots', ['owner_id', 'month'])

    op.create_table(
        'account_balance_history',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        _owner(),
        sa.Column('account_id', sa.Integer(),
                  sa.ForeignKey('accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('snapshot_id', sa.Integer(),
                  sa.ForeignKey('net_worth_snapshots.id', ondelete='SET NULL'), nullable=True),
        sa.Column('previous_balance', sa.Numeric(18, 2), nullable=False),
        sa.Column('new_balance', sa.Numeric(18, 2), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_account_balance_history_owner_id', 'account_balance_history', ['owner_id'])
    op.create_index('ix_account_balance_history_account_id', 'account_balance_history', ['account_id'])


def downgrade() -> None:
    op.drop_table('account_balance_history')
    op.drop_table('net_worth_snapshots')
    op.drop_table('movements')
    op.drop_table('recurring_templates')
    op.drop_table('categories')
    op.drop_table('wallet_configs')
    op.drop_table('profiles')
    op.drop_table('accounts')
    op.drop_table('user_roles')
    op.drop_table('users')
