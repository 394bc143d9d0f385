"""
Initial schema: users and profiles, clients, quotes, invoices, recurring
templates, tenants and the payment ledger, expenses and bills, sales
categories and audit logs.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = 'initial_20250101'
down_revision = None
branch_labels = None
depends_on = None


def _uuid():
    return postgresql.UUID(as_uuid=True)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _user_fk():
    return sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)


def _document_items(table_name: str, parent_column: str, parent_table: str, with_unit: bool = True, with_amount: bool = True):
    columns = [
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column(parent_column, _uuid(), sa.ForeignKey(f'{parent_table}.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False, server_default='1'),
    ]
    if with_unit:
        columns.append(sa.Column('unit', sa.String(length=20), nullable=True))
    columns.append(sa.Column('unit_price', sa.Integer(), nullable=False, server_default='0'))
    columns.append(sa.Column('tax_rate', sa.Float(), nullable=False, server_default='10'))
    if with_amount:
        columns.append(sa.Column('amount', sa.Integer(), nullable=False, server_default='0'))
    op.create_table(table_name, *columns)
    op.create_index(f'ix_{table_name}_{parent_column}', table_name, [parent_column])


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('is_superadmin', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_profiles',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('user_id', _uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('company_name', sa.String(length=100), nullable=True),
        sa.Column('representative_name', sa.String(length=100), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('invoice_reg_number', sa.String(length=20), nullable=True),
        sa.Column('default_payment_term', sa.String(length=32), nullable=False, server_default='end_of_next_month'),
        sa.Column('default_payment_terms', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('invoice_number_prefix', sa.String(length=20), nullable=False, server_default='INV-'),
        sa.Column('invoice_number_start', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('tax_rate', sa.Float(), nullable=False, server_default='10'),
        sa.Column('tax_rounding', sa.String(length=10), nullable=False, server_default='floor'),
        sa.Column('invoice_design', sa.String(length=32), nullable=False, server_default='classic'),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('stamp_url', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'bank_accounts',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('bank_name', sa.String(length=100), nullable=False),
        sa.Column('branch_name', sa.String(length=100), nullable=False),
        sa.Column('account_type', sa.String(length=20), nullable=False, server_default='普通'),
        sa.Column('account_number', sa.String(length=20), nullable=False),
        sa.Column('account_holder', sa.String(length=100), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_bank_accounts_user_id', 'bank_accounts', ['user_id'])

    op.create_table(
        'clients',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('contact_person', sa.String(length=100), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_clients_user_id_name', 'clients', ['user_id', 'name'])

    op.create_table(
        'tenant_groups',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('name', sa.String(length=100), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tenant_groups_user_id', 'tenant_groups', ['user_id'])

    op.create_table(
        'tenants',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('group_id', _uuid(), sa.ForeignKey('tenant_groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('name_kana', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_tenants_user_id_amount', 'tenants', ['user_id', 'amount'])

    op.create_table(
        'recurring_templates',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('tenant_id', _uuid(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', _uuid(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('interval', sa.String(length=10), nullable=False, server_default='MONTHLY'),
        sa.Column('creation_day', sa.Integer(), nullable=False),
        sa.Column('send_day', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('next_execution_date', sa.Date(), nullable=False),
        sa.Column('last_executed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_recurring_templates_due', 'recurring_templates', ['is_active', 'next_execution_date'])
    _document_items('recurring_template_items', 'template_id', 'recurring_templates', with_unit=False, with_amount=False)

    op.create_table(
        'invoices',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('client_id', _uuid(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('invoice_number', sa.String(length=32), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('subtotal', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('withholding_tax', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_rate', sa.Float(), nullable=False, server_default='10'),
        sa.Column('tax_rounding', sa.String(length=10), nullable=False, server_default='floor'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='unpaid'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column(
            'recurring_template_id', _uuid(),
            sa.ForeignKey('recurring_templates.id', ondelete='SET NULL'), nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'invoice_number', name='uq_invoices_user_number'),
    )
    op.create_index('ix_invoices_user_id_status', 'invoices', ['user_id', 'status'])
    op.create_index('ix_invoices_user_id_issue_date', 'invoices', ['user_id', 'issue_date'])
    _document_items('invoice_items', 'invoice_id', 'invoices')

    op.create_table(
        'quotes',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('client_id', _uuid(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('quote_number', sa.String(length=32), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('valid_until', sa.Date(), nullable=False),
        sa.Column('subtotal', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tax_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('accept_token', sa.String(length=64), nullable=True, unique=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('converted_invoice_id', _uuid(), sa.ForeignKey('invoices.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'quote_number', name='uq_quotes_user_number'),
    )
    op.create_index('ix_quotes_user_id_issue_date', 'quotes', ['user_id', 'issue_date'])
    _document_items('quote_items', 'quote_id', 'quotes')

    op.create_table(
        'payment_statuses',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('tenant_id', _uuid(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_month', sa.String(length=7), nullable=False),
        sa.Column('expected_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=10), nullable=False, server_default='UNPAID'),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'target_month', name='uq_payment_statuses_tenant_month'),
    )
    op.create_index('ix_payment_statuses_user_id', 'payment_statuses', ['user_id'])

    op.create_table(
        'payments',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('tenant_id', _uuid(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'payment_status_id', _uuid(),
            sa.ForeignKey('payment_statuses.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    op.create_index('ix_payments_tenant_id', 'payments', ['tenant_id'])

    op.create_table(
        'expenses',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('receipt_url', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_expenses_user_id_date', 'expenses', ['user_id', 'date'])

    op.create_table(
        'bills',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('vendor_name', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False, server_default='UNPAID'),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('file_url', sa.Text(), nullable=True),
        sa.Column('expense_id', _uuid(), sa.ForeignKey('expenses.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_bills_user_id_due_date', 'bills', ['user_id', 'due_date'])

    op.create_table(
        'sales_categories',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('user_id', 'name', name='uq_sales_categories_user_name'),
    )

    op.create_table(
        'category_sales_entries',
        sa.Column('id', _uuid(), primary_key=True),
        _user_fk(),
        sa.Column('category_id', _uuid(), sa.ForeignKey('sales_categories.id', ondelete='CASCADE'), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'category_id', 'month', name='uq_category_sales_entries_month'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', _uuid(), primary_key=True),
        sa.Column('actor_user_id', _uuid(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', _uuid(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_logs_actor_user_id_created_at', 'audit_logs', ['actor_user_id', 'created_at'])
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'])


def downgrade() -> None:
    for table in (
        'audit_logs',
        'category_sales_entries',
        'sales_categories',
        'bills',
        'expenses',
        'payments',
        'payment_statuses',
        'quote_items',
        'quotes',
        'invoice_items',
        'invoices',
        'recurring_template_items',
        'recurring_templates',
        'tenants',
        'tenant_groups',
        'clients',
        'bank_accounts',
        'user_profiles',
        'users',
    ):
        op.drop_table(table)
