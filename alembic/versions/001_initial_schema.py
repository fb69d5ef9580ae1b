"""Initial schema - clients, business settings, email templates, invoices

Revision ID: 001
Revises:
Create Date: 2026-10-19

WHY: Creates every table the invoicing app needs. Invoices keep a JSON
snapshot of the bill-to and business details (column "metadata") so old
invoices print the same after clients or settings change.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


REMINDER_TYPES = ('none', 'weekly_friday', 'monthly_end')
INVOICE_STATUSES = ('pending', 'sent', 'paid', 'overdue')


def upgrade() -> None:
    """
    Create the schema.

    WHY: Order follows foreign keys: email_templates before clients,
    clients before invoices, invoices before invoice_items.
    """
    op.create_table(
        'email_templates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('subject', sa.String(length=200), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_email_templates_name', 'email_templates', ['name'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('city', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('state', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('postal_code', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('country', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('target_email', sa.String(length=255), nullable=True),
        sa.Column('cc_email', sa.String(length=255), nullable=True),
        sa.Column('rate', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('reminder_type', sa.Enum(*REMINDER_TYPES, name='remindertype'), nullable=False, server_default='none'),
        sa.Column('reminder_date', sa.Date(), nullable=True),
        sa.Column('email_template_id', sa.Uuid(), nullable=True),
        sa.Column('google_drive_folder_url', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['email_template_id'], ['email_templates.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clients_name', 'clients', ['name'])
    op.create_index('ix_clients_reminder_type', 'clients', ['reminder_type'])

    business_columns = [
        ('company_name', 255), ('owner_name', 255), ('address', 255),
        ('city', 120), ('state', 120), ('postal_code', 32), ('country', 120),
        ('email', 255), ('phone', 64), ('beneficiary_name', 255),
        ('beneficiary_cnpj', 64), ('swift_code', 64), ('bank_name', 255),
        ('bank_address', 255), ('routing_number', 64), ('account_number', 64),
        ('account_type', 64),
    ]
    op.create_table(
        'business_settings',
        sa.Column('id', sa.Uuid(), nullable=False),
        *[
            sa.Column(name, sa.String(length=length), nullable=False, server_default='')
            for name, length in business_columns
        ],
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'invoices',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('invoice_number', sa.Integer(), nullable=False, comment='Human invoice number, sequential per client'),
        sa.Column('client_id', sa.Uuid(), nullable=True),
        sa.Column('status', sa.Enum(*INVOICE_STATUSES, name='invoicestatus'), nullable=False, server_default='pending'),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('tax', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('transferred_at', sa.DateTime(), nullable=True),
        sa.Column('file_path', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'])
    op.create_index('ix_invoices_client_id', 'invoices', ['client_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('invoice_id', sa.Uuid(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('raw_description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Numeric(10, 2), nullable=False, server_default='1'),
        sa.Column('rate', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('item_date', sa.Date(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_index('ix_invoice_items_invoice_id', table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_client_id', table_name='invoices')
    op.drop_index('ix_invoices_invoice_number', table_name='invoices')
    op.drop_table('invoices')
    op.drop_table('business_settings')
    op.drop_index('ix_clients_reminder_type', table_name='clients')
    op.drop_index('ix_clients_name', table_name='clients')
    op.drop_table('clients')
    op.drop_index('ix_email_templates_name', table_name='email_templates')
    op.drop_table('email_templates')
    op.execute("DROP TYPE IF EXISTS invoicestatus")
    op.execute("DROP TYPE IF EXISTS remindertype")
