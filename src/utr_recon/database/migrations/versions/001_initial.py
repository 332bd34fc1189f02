"""Initial migration - create payment_gateways, orders, and settled_transactions tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'payment_gateways',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, server_default=''),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('merchant_id', sa.String(255), nullable=False, server_default=''),
        sa.Column('upi_id', sa.String(255), nullable=False, server_default=''),
        sa.Column('api_key', sa.String(255), nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='inactive'),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('api_details_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payment_gateways_created_by', 'payment_gateways', ['created_by'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_id', sa.String(255), nullable=False),
        sa.Column('gateway_id', sa.String(36), sa.ForeignKey('payment_gateways.id'), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(32), nullable=True),
        sa.Column('redirect_url', sa.Text(), nullable=True),
        sa.Column('udf1', sa.String(255), nullable=True),
        sa.Column('udf2', sa.String(255), nullable=True),
        sa.Column('udf3', sa.String(255), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_orders_order_id', 'orders', ['order_id'], unique=True)

    # UTR uniqueness is the durable duplicate guard
    op.create_table(
        'settled_transactions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('transaction_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('gateway_id', sa.String(36), sa.ForeignKey('payment_gateways.id'), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('utr_number', sa.String(64), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False, server_default='UPI'),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('gateway_transaction_data_json', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('utr_number', name='uq_settled_transactions_utr_number'),
        sa.UniqueConstraint('transaction_id', name='uq_settled_transactions_transaction_id'),
    )
    op.create_index('ix_settled_transactions_gateway_id', 'settled_transactions', ['gateway_id'])
    op.create_index('ix_settled_transactions_created_at', 'settled_transactions', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_settled_transactions_created_at', table_name='settled_transactions')
    op.drop_index('ix_settled_transactions_gateway_id', table_name='settled_transactions')
    op.drop_index('ix_orders_order_id', table_name='orders')
    op.drop_index('ix_payment_gateways_created_by', table_name='payment_gateways')

    op.drop_table('settled_transactions')
    op.drop_table('orders')
    op.drop_table('payment_gateways')
