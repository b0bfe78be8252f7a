"""Tasks, activities, refresh tokens and leave requester columns

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def _tenant() -> list:
    return [
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def _tenant_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE')


def _index(table: str, *columns: str) -> None:
    for column in columns:
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=False)


def upgrade() -> None:
    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('related_to', sa.String(), nullable=False, server_default='General'),
        sa.Column('related_id', sa.Integer(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('priority', sa.String(), nullable=False, server_default='Medium'),
        sa.Column('status', sa.String(), nullable=False, server_default='Pending'),
        sa.Column('completed_date', sa.DateTime(), nullable=True),
        sa.Column('completed_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('recurring_pattern', sa.String(), nullable=True),
        sa.Column('recurring_interval', sa.Integer(), nullable=True),
        sa.Column('next_due_date', sa.DateTime(), nullable=True),
        sa.Column('reminder_date', sa.DateTime(), nullable=True),
        sa.Column('reminder_sent', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('depends_on', sa.JSON(), nullable=False),
        sa.Column('blocks', sa.JSON(), nullable=False),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['completed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('tasks', 'id', 'company_id', 'type', 'related_to', 'assigned_to', 'due_date', 'priority', 'status')
    op.create_index('ix_tasks_assignee_status', 'tasks', ['company_id', 'assigned_to', 'status'], unique=False)
    op.create_index('ix_tasks_related', 'tasks', ['company_id', 'related_to', 'related_id'], unique=False)

    op.create_table(
        'activities',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('opportunity_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('outcome', sa.String(), nullable=True),
        sa.Column('scheduled_date', sa.DateTime(), nullable=True),
        sa.Column('completed_date', sa.DateTime(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='Scheduled'),
        sa.Column('priority', sa.String(), nullable=False, server_default='Medium'),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('related_quote_id', sa.Integer(), nullable=True),
        sa.Column('related_order_id', sa.Integer(), nullable=True),
        sa.Column('related_invoice_id', sa.Integer(), nullable=True),
        sa.Column('next_follow_up_date', sa.DateTime(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['related_quote_id'], ['quotes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['related_order_id'], ['sales_orders.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['related_invoice_id'], ['invoices.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index(
        'activities', 'id', 'company_id', 'lead_id', 'opportunity_id', 'customer_id',
        'type', 'scheduled_date', 'assigned_to', 'status', 'next_follow_up_date',
    )
    op.create_index('ix_activities_assignee_status', 'activities', ['company_id', 'assigned_to', 'status'], unique=False)

    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('device_info', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_refresh_tokens_id'), 'refresh_tokens', ['id'], unique=False)
    op.create_index(op.f('ix_refresh_tokens_token_hash'), 'refresh_tokens', ['token_hash'], unique=True)
    op.create_index('ix_refresh_tokens_user_expires', 'refresh_tokens', ['user_id', 'expires_at'], unique=False)

    op.add_column('notifications', sa.Column('related_task_id', sa.Integer(), nullable=True))
    op.create_foreign_key(
        'fk_notifications_related_task_id', 'notifications', 'tasks',
        ['related_task_id'], ['id'], ondelete='SET NULL',
    )

    # The single requester column could hold either a user id or an employee id
    op.drop_column('leave_requests', 'requested_by')
    op.add_column('leave_requests', sa.Column('requested_by_user_id', sa.Integer(), nullable=True))
    op.add_column('leave_requests', sa.Column('requested_by_employee_id', sa.Integer(), nullable=True))
    op.create_foreign_key(
        'fk_leave_requests_requested_by_user_id', 'leave_requests', 'users',
        ['requested_by_user_id'], ['id'], ondelete='SET NULL',
    )
    op.create_foreign_key(
        'fk_leave_requests_requested_by_employee_id', 'leave_requests', 'employees',
        ['requested_by_employee_id'], ['id'], ondelete='SET NULL',
    )


def downgrade() -> None:
    op.drop_constraint('fk_leave_requests_requested_by_employee_id', 'leave_requests', type_='foreignkey')
    op.drop_constraint('fk_leave_requests_requested_by_user_id', 'leave_requests', type_='foreignkey')
    op.drop_column('leave_requests', 'requested_by_employee_id')
    op.drop_column('leave_requests', 'requested_by_user_id')
    op.add_column('leave_requests', sa.Column('requested_by', sa.Integer(), nullable=True))

    op.drop_constraint('fk_notifications_related_task_id', 'notifications', type_='foreignkey')
    op.drop_column('notifications', 'related_task_id')

    op.drop_table('refresh_tokens')
    op.drop_table('activities')
    op.drop_table('tasks')
