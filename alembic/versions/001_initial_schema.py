"""Initial schema: users, shared lists and todos with recurrence

Revision ID: 001
Revises:
Create Date: 2025-01-06 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None  # This is the first migration
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('username', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_id', 'user', ['id'])
    op.create_index('ix_user_username', 'user', ['username'], unique=True)
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'shared_list',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('owner_id', sa.String(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_shared_list_owner_id', 'shared_list', ['owner_id'])

    op.create_table(
        'shared_list_member',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('list_id', sa.Integer(), sa.ForeignKey('shared_list.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(length=10), nullable=False, server_default='editor'),
        sa.Column('added_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('list_id', 'user_id', name='uq_shared_list_member'),
    )
    op.create_index('ix_shared_list_member_list_id', 'shared_list_member', ['list_id'])
    op.create_index('ix_shared_list_member_user_id', 'shared_list_member', ['user_id'])

    op.create_table(
        'shared_list_invite',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('list_id', sa.Integer(), sa.ForeignKey('shared_list.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=10), nullable=False, server_default='editor'),
        sa.Column('invited_by', sa.String(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('invited_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('list_id', 'email', name='uq_shared_list_invite'),
    )
    op.create_index('ix_shared_list_invite_list_id', 'shared_list_invite', ['list_id'])
    op.create_index('ix_shared_list_invite_email', 'shared_list_invite', ['email'])

    op.create_table(
        'task',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('shared_list_id', sa.Integer(), sa.ForeignKey('shared_list.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=True),
        sa.Column('category', sa.String(length=20), nullable=False, server_default='general'),
        sa.Column('priority', sa.String(length=20), nullable=False, server_default='medium'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('subtasks', sa.JSON(), nullable=False),
        sa.Column('recurrence_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurrence_pattern', sa.String(length=20), nullable=True),
        sa.Column('recurrence_interval', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('recurrence_days_of_week', sa.JSON(), nullable=True),
        sa.Column('recurrence_day_of_month', sa.Integer(), nullable=True),
        sa.Column('recurrence_end_date', sa.DateTime(), nullable=True),
        sa.Column('recurrence_last_created', sa.DateTime(), nullable=True),
        sa.Column('recurrence_next_due', sa.DateTime(), nullable=True),
        sa.Column('is_recurring_instance', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recurring_parent_id', sa.Integer(), sa.ForeignKey('task.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        # Concurrent materializations of the same occurrence collide here
        sa.UniqueConstraint('recurring_parent_id', 'due_date', name='uq_task_recurring_parent_due'),
    )
    op.create_index('ix_task_user_id', 'task', ['user_id'])
    op.create_index('ix_task_shared_list_id', 'task', ['shared_list_id'])
    op.create_index('ix_task_due_date', 'task', ['due_date'])
    op.create_index('ix_task_recurrence_enabled', 'task', ['recurrence_enabled'])
    op.create_index('ix_task_recurrence_next_due', 'task', ['recurrence_next_due'])
    op.create_index('ix_task_recurring_parent_id', 'task', ['recurring_parent_id'])


def downgrade():
    op.drop_table('task')
    op.drop_table('shared_list_invite')
    op.drop_table('shared_list_member')
    op.drop_table('shared_list')
    op.drop_table('user')
