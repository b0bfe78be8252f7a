"""Initial Bizabode schema: tenants, users, HR and CRM tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def _tenant() -> list:
    return [
        sa.Column('company_id', sa.Integer(), nullable=False),
        *_timestamps(),
    ]


def _tenant_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE')


def _index(table: str, *columns: str) -> None:
    for column in columns:
        op.create_index(op.f(f'ix_{table}_{column}'), table, [column], unique=False)


def _sales_document_columns() -> list:
    return [
        sa.Column('customer_name', sa.String(), nullable=False),
        sa.Column('customer_email', sa.String(), nullable=False),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('customer_address', sa.String(), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False, server_default='0'),
        sa.Column('tax', sa.Float(), nullable=False, server_default='0'),
        sa.Column('tax_rate', sa.Float(), nullable=False, server_default='10'),
        sa.Column('discount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total', sa.Float(), nullable=False, server_default='0'),
    ]


def upgrade() -> None:
    # Tenants
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('logo', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('settings', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('companies', 'id')

    # HR
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('employee_code', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.JSON(), nullable=True),
        sa.Column('position', sa.String(), nullable=False),
        sa.Column('department', sa.String(), nullable=False),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('hire_date', sa.Date(), nullable=False),
        sa.Column('salary', sa.Float(), nullable=False, server_default='0'),
        sa.Column('hourly_rate', sa.Float(), nullable=True),
        sa.Column('employment_type', sa.String(), nullable=False, server_default='full-time'),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('emergency_contact', sa.JSON(), nullable=True),
        sa.Column('documents', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['manager_id'], ['employees.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'employee_code', name='uq_employees_company_code'),
    )
    _index('employees', 'id', 'company_id', 'employee_code', 'email', 'department', 'status')

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='viewer'),
        sa.Column('employee_id', sa.Integer(), nullable=True),
        sa.Column('avatar', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('users', 'id', 'company_id', 'role')
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('check_in', sa.DateTime(), nullable=True),
        sa.Column('check_out', sa.DateTime(), nullable=True),
        sa.Column('break_start', sa.DateTime(), nullable=True),
        sa.Column('break_end', sa.DateTime(), nullable=True),
        sa.Column('total_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('overtime_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(), nullable=False, server_default='present'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'employee_id', 'date', name='uq_attendance_company_employee_date'),
    )
    _index('attendance', 'id', 'company_id', 'employee_id', 'date', 'status')

    op.create_table(
        'payrolls',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('pay_period_start', sa.Date(), nullable=False),
        sa.Column('pay_period_end', sa.Date(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('gross_pay', sa.Float(), nullable=False, server_default='0'),
        sa.Column('deductions', sa.Float(), nullable=False, server_default='0'),
        sa.Column('net_pay', sa.Float(), nullable=False, server_default='0'),
        sa.Column('payment_date', sa.Date(), nullable=False),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('payrolls', 'id', 'company_id', 'employee_id', 'payment_date')

    op.create_table(
        'leave_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('leave_type', sa.String(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('total_days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('requested_by', sa.Integer(), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('attachments', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('leave_requests', 'id', 'company_id', 'employee_id', 'leave_type', 'status')

    op.create_table(
        'performance_reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('review_period_start', sa.Date(), nullable=False),
        sa.Column('review_period_end', sa.Date(), nullable=False),
        sa.Column('review_type', sa.String(), nullable=False, server_default='annual'),
        sa.Column('scores', sa.JSON(), nullable=False),
        sa.Column('overall_score', sa.Float(), nullable=False),
        sa.Column('strengths', sa.JSON(), nullable=False),
        sa.Column('areas_for_improvement', sa.JSON(), nullable=False),
        sa.Column('goals', sa.JSON(), nullable=False),
        sa.Column('manager_comments', sa.Text(), nullable=False, server_default=''),
        sa.Column('employee_comments', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('employee_acknowledged', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('employee_acknowledged_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('next_review_date', sa.Date(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('performance_reviews', 'id', 'company_id', 'employee_id', 'status')

    # CRM
    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False, server_default=''),
        sa.Column('company', sa.String(), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='new'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('custom_fields', sa.JSON(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('product_interest', sa.JSON(), nullable=False),
        sa.Column('monthly_volume', sa.Float(), nullable=True),
        sa.Column('territory', sa.String(), nullable=True),
        sa.Column('lead_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('customer_type', sa.String(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('leads', 'id', 'company_id', 'email', 'status', 'assigned_to', 'category', 'territory')

    op.create_table(
        'opportunities',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('lead_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('customer_name', sa.String(), nullable=False),
        sa.Column('customer_email', sa.String(), nullable=False),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('stage', sa.String(), nullable=False, server_default='prospecting'),
        sa.Column('probability', sa.Integer(), nullable=False, server_default='25'),
        sa.Column('expected_close_date', sa.Date(), nullable=False),
        sa.Column('actual_close_date', sa.Date(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('lost_reason', sa.String(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['lead_id'], ['leads.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('opportunities', 'id', 'company_id', 'lead_id', 'stage', 'assigned_to')

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('company_name', sa.String(), nullable=False),
        sa.Column('contact_person', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=False, server_default='Jamaica'),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('customer_type', sa.String(), nullable=False),
        sa.Column('territory', sa.String(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('payment_terms', sa.String(), nullable=False, server_default='Net 30'),
        sa.Column('credit_limit', sa.Float(), nullable=True),
        sa.Column('current_balance', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(), nullable=False, server_default='Prospect'),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index(
        'customers', 'id', 'company_id', 'company_name', 'email', 'category',
        'customer_type', 'territory', 'assigned_to', 'status',
    )

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('opportunity_id', sa.Integer(), nullable=True),
        sa.Column('quote_number', sa.String(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        *_sales_document_columns(),
        sa.Column('valid_until', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['opportunity_id'], ['opportunities.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'quote_number', name='uq_quotes_company_number'),
    )
    _index('quotes', 'id', 'company_id', 'quote_number', 'status')

    # sales_orders.invoice_id is added after invoices exists (circular reference)
    op.create_table(
        'sales_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('order_number', sa.String(), nullable=False),
        sa.Column('quote_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        *_sales_document_columns(),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('delivery_address', sa.String(), nullable=True),
        sa.Column('payment_terms', sa.String(), nullable=False, server_default='Net 30'),
        sa.Column('status', sa.String(), nullable=False, server_default='Pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('driver_name', sa.String(), nullable=True),
        sa.Column('driver_phone', sa.String(), nullable=True),
        sa.Column('tracking_number', sa.String(), nullable=True),
        sa.Column('delivery_notes', sa.Text(), nullable=True),
        sa.Column('delivery_receipts', sa.JSON(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('dispatched_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['quote_id'], ['quotes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'order_number', name='uq_sales_orders_company_number'),
    )
    _index('sales_orders', 'id', 'company_id', 'order_number', 'customer_id', 'status')

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('quote_id', sa.Integer(), nullable=True),
        sa.Column('sales_order_id', sa.Integer(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('invoice_number', sa.String(), nullable=False),
        *_sales_document_columns(),
        sa.Column('paid_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('paid_date', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['quote_id'], ['quotes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['sales_order_id'], ['sales_orders.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'invoice_number', name='uq_invoices_company_number'),
    )
    _index('invoices', 'id', 'company_id', 'customer_id', 'invoice_number', 'due_date', 'status')

    op.create_foreign_key(
        'fk_sales_orders_invoice_id', 'sales_orders', 'invoices',
        ['invoice_id'], ['id'], ondelete='SET NULL',
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('method', sa.String(), nullable=False),
        sa.Column('reference', sa.String(), nullable=False, server_default=''),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('receipt_url', sa.String(), nullable=True),
        sa.Column('processed_by', sa.Integer(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['processed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('payments', 'id', 'company_id', 'invoice_id')

    op.create_table(
        'promotions',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('min_order_value', sa.Float(), nullable=True),
        sa.Column('max_discount', sa.Float(), nullable=True),
        sa.Column('applicable_to', sa.String(), nullable=False, server_default='All Products'),
        sa.Column('product_ids', sa.JSON(), nullable=False),
        sa.Column('customer_ids', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('usage_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='Draft'),
        sa.Column('conditions', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('promotions', 'id', 'company_id', 'status')

    op.create_table(
        'credit_limits',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('credit_limit', sa.Float(), nullable=False, server_default='0'),
        sa.Column('current_balance', sa.Float(), nullable=False, server_default='0'),
        sa.Column('credit_used', sa.Float(), nullable=False, server_default='0'),
        sa.Column('credit_available', sa.Float(), nullable=False, server_default='0'),
        sa.Column('payment_terms', sa.String(), nullable=False, server_default='Net 30'),
        sa.Column('credit_hold', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('credit_hold_reason', sa.Text(), nullable=True),
        sa.Column('credit_hold_date', sa.DateTime(), nullable=True),
        sa.Column('last_payment_date', sa.DateTime(), nullable=True),
        sa.Column('last_payment_amount', sa.Float(), nullable=True),
        sa.Column('credit_score', sa.Integer(), nullable=True),
        sa.Column('risk_level', sa.String(), nullable=False, server_default='Low'),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('credit_limits', 'id', 'company_id', 'customer_id')

    op.create_table(
        'approvals',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('related_id', sa.Integer(), nullable=False),
        sa.Column('related_type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('requested_by', sa.Integer(), nullable=True),
        sa.Column('requested_date', sa.DateTime(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(), nullable=False, server_default='USD'),
        sa.Column('priority', sa.String(), nullable=False, server_default='Medium'),
        sa.Column('status', sa.String(), nullable=False, server_default='Pending'),
        sa.Column('approvers', sa.JSON(), nullable=False),
        sa.Column('current_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_levels', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_date', sa.DateTime(), nullable=True),
        sa.Column('rejected_by', sa.Integer(), nullable=True),
        sa.Column('rejected_date', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('is_overdue', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['requested_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('approvals', 'id', 'company_id', 'status')

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('sku', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('subcategory', sa.String(), nullable=True),
        sa.Column('brand', sa.String(), nullable=True),
        sa.Column('unit', sa.String(), nullable=False, server_default='each'),
        sa.Column('price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('cost', sa.Float(), nullable=False, server_default='0'),
        sa.Column('margin', sa.Float(), nullable=False, server_default='0'),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('specifications', sa.JSON(), nullable=False),
        sa.Column('pricing', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='Active'),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('tax_category', sa.String(), nullable=False, server_default='standard'),
        sa.Column('supplier', sa.JSON(), nullable=True),
        _tenant_fk(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'sku', name='uq_products_company_sku'),
    )
    _index('products', 'id', 'company_id', 'name', 'category', 'status')

    # Cross-cutting
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(), nullable=False, server_default='general'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('related_lead_id', sa.Integer(), nullable=True),
        sa.Column('related_opportunity_id', sa.Integer(), nullable=True),
        sa.Column('related_customer_id', sa.Integer(), nullable=True),
        sa.Column('related_order_id', sa.Integer(), nullable=True),
        sa.Column('related_invoice_id', sa.Integer(), nullable=True),
        sa.Column('related_quote_id', sa.Integer(), nullable=True),
        sa.Column('priority', sa.String(), nullable=False, server_default='Medium'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('notifications', 'id', 'company_id', 'user_id', 'type', 'expires_at')
    op.create_index('ix_notifications_user_read', 'notifications', ['user_id', 'is_read'], unique=False)

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), nullable=False),
        *_tenant(),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('original_name', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False, server_default='Other'),
        sa.Column('related_to', sa.String(), nullable=False, server_default='General'),
        sa.Column('related_id', sa.Integer(), nullable=True),
        sa.Column('uploaded_by', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('access_level', sa.String(), nullable=False, server_default='Internal'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('download_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        _tenant_fk(),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    _index('documents', 'id', 'company_id', 'category', 'related_to', 'related_id')


def downgrade() -> None:
    op.drop_table('documents')
    op.drop_table('notifications')
    op.drop_table('products')
    op.drop_table('approvals')
    op.drop_table('credit_limits')
    op.drop_table('promotions')
    op.drop_table('payments')
    op.drop_constraint('fk_sales_orders_invoice_id', 'sales_orders', type_='foreignkey')
    op.drop_table('invoices')
    op.drop_table('sales_orders')
    op.drop_table('quotes')
    op.drop_table('customers')
    op.drop_table('opportunities')
    op.drop_table('leads')
    op.drop_table('performance_reviews')
    op.drop_table('leave_requests')
    op.drop_table('payrolls')
    op.drop_table('attendance')
    op.drop_table('users')
    op.drop_table('employees')
    op.drop_table('companies')
