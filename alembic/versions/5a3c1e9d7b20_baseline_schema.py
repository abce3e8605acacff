"""baseline_schema

Revision ID: 5a3c1e9d7b20
Revises:
Create Date: 2026-10-19 09:12:44.118203

Creates users, plans, orders, subscriptions and jobs. Tables that already
exist are left untouched.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '5a3c1e9d7b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=True),
            sa.Column('password_hash', sa.String(), nullable=True),
            sa.Column('role', sa.String(), nullable=False),
            sa.Column('phone', sa.String(), nullable=True),
            sa.Column('company_name', sa.String(), nullable=True),
            sa.Column('remaining_active_postings', sa.Integer(), server_default='1', nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.CheckConstraint('remaining_active_postings >= 0', name=op.f('ck_users_remaining_active_postings_non_negative')),
            sa.PrimaryKeyConstraint('id', name=op.f('pk_users'))
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    if not table_exists('plans'):
        op.create_table('plans',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.String(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('price', sa.Float(), nullable=False),
            sa.Column('gst', sa.Float(), nullable=False),
            sa.Column('total_amount', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('validity_months', sa.Integer(), nullable=False),
            sa.Column('billing_type', sa.String(), nullable=False),
            sa.Column('can_apply', sa.Boolean(), nullable=False),
            sa.Column('recruiter_priority', sa.String(), nullable=False),
            sa.Column('immediate_interview_call', sa.Boolean(), nullable=False),
            sa.Column('profile_boosted', sa.Boolean(), nullable=False),
            sa.Column('dedicated_manager', sa.Boolean(), nullable=False),
            sa.Column('resume_review_count', sa.Integer(), nullable=False),
            sa.Column('job_posting_limit', sa.Integer(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id', name=op.f('pk_plans'))
        )
        op.create_index(op.f('ix_plans_id'), 'plans', ['id'], unique=False)
        op.create_index(op.f('ix_plans_plan_id'), 'plans', ['plan_id'], unique=True)
        op.create_index(op.f('ix_plans_is_active'), 'plans', ['is_active'], unique=False)

    if not table_exists('orders'):
        op.create_table('orders',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('order_id', sa.String(), nullable=False),
            sa.Column('gateway', sa.String(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.String(), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('currency', sa.String(length=3), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('gateway_payment_id', sa.String(), nullable=True),
            sa.Column('gateway_session_id', sa.String(), nullable=True),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('subscription_start', sa.DateTime(), nullable=True),
            sa.Column('subscription_end', sa.DateTime(), nullable=True),
            sa.Column('verified_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_orders_user_id_users')),
            sa.PrimaryKeyConstraint('id', name=op.f('pk_orders'))
        )
        op.create_index('idx_orders_user_created', 'orders', ['user_id', 'created_at'], unique=False)
        op.create_index(op.f('ix_orders_id'), 'orders', ['id'], unique=False)
        op.create_index(op.f('ix_orders_order_id'), 'orders', ['order_id'], unique=True)
        op.create_index(op.f('ix_orders_status'), 'orders', ['status'], unique=False)
        op.create_index(op.f('ix_orders_user_id'), 'orders', ['user_id'], unique=False)

    if not table_exists('subscriptions'):
        op.create_table('subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_type', sa.String(), nullable=False),
            sa.Column('status', sa.String(), nullable=False),
            sa.Column('start_date', sa.DateTime(), nullable=False),
            sa.Column('end_date', sa.DateTime(), nullable=False),
            sa.Column('card_number', sa.String(length=12), nullable=False),
            sa.Column('expiry_month', sa.String(length=2), nullable=False),
            sa.Column('expiry_year', sa.String(length=4), nullable=False),
            sa.Column('issued_at', sa.DateTime(), nullable=False),
            sa.Column('payment_id', sa.String(), nullable=True),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('immediate_interview_call', sa.Boolean(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], name=op.f('fk_subscriptions_user_id_users')),
            sa.PrimaryKeyConstraint('id', name=op.f('pk_subscriptions')),
            sa.UniqueConstraint('card_number', name='uq_subscriptions_card_number'),
            sa.UniqueConstraint('user_id', name=op.f('uq_subscriptions_user_id'))
        )
        op.create_index(op.f('ix_subscriptions_end_date'), 'subscriptions', ['end_date'], unique=False)
        op.create_index(op.f('ix_subscriptions_id'), 'subscriptions', ['id'], unique=False)

    if not table_exists('jobs'):
        op.create_table('jobs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('job_code', sa.String(length=7), nullable=False),
            sa.Column('employer_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('company', sa.String(), nullable=True),
            sa.Column('location', sa.String(), nullable=True),
            sa.Column('job_type', sa.String(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('salary_from', sa.Integer(), nullable=True),
            sa.Column('salary_to', sa.Integer(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.ForeignKeyConstraint(['employer_id'], ['users.id'], name=op.f('fk_jobs_employer_id_users')),
            sa.PrimaryKeyConstraint('id', name=op.f('pk_jobs'))
        )
        op.create_index('idx_jobs_employer_active', 'jobs', ['employer_id', 'is_active'], unique=False)
        op.create_index(op.f('ix_jobs_employer_id'), 'jobs', ['employer_id'], unique=False)
        op.create_index(op.f('ix_jobs_id'), 'jobs', ['id'], unique=False)
        op.create_index(op.f('ix_jobs_job_code'), 'jobs', ['job_code'], unique=True)


def downgrade() -> None:
    op.drop_index(op.f('ix_jobs_job_code'), table_name='jobs')
    op.drop_index(op.f('ix_jobs_id'), table_name='jobs')
    op.drop_index(op.f('ix_jobs_employer_id'), table_name='jobs')
    op.drop_index('idx_jobs_employer_active', table_name='jobs')
    op.drop_table('jobs')

    op.drop_index(op.f('ix_subscriptions_id'), table_name='subscriptions')
    op.drop_index(op.f('ix_subscriptions_end_date'), table_name='subscriptions')
    op.drop_table('subscriptions')

    op.drop_index(op.f('ix_orders_user_id'), table_name='orders')
    op.drop_index(op.f('ix_orders_status'), table_name='orders')
    op.drop_index(op.f('ix_orders_order_id'), table_name='orders')
    op.drop_index(op.f('ix_orders_id'), table_name='orders')
    op.drop_index('idx_orders_user_created', table_name='orders')
    op.drop_table('orders')

    op.drop_index(op.f('ix_plans_is_active'), table_name='plans')
    op.drop_index(op.f('ix_plans_plan_id'), table_name='plans')
    op.drop_index(op.f('ix_plans_id'), table_name='plans')
    op.drop_table('plans')

    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
