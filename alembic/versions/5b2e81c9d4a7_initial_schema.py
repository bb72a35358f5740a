"""initial schema

Revision ID: 5b2e81c9d4a7
Revises:
Create Date: 2026-10-19 09:12:41.508113

Pricing config, document sequences, clients, quotes, orders and public
quotes. Enum columns store member names, matching SQLAlchemy's Enum().
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2e81c9d4a7'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


quote_status = sa.Enum('DRAFT', 'SENT', 'APPROVED', 'REJECTED', 'EXPIRED', 'CONVERTED', name='quotestatus')
channel = sa.Enum('MANUAL', 'WEB', 'PHONE', 'WHATSAPP', 'EMAIL', name='channel')
order_status = sa.Enum('PENDING_DEPOSIT', 'CONFIRMED', 'IN_PRODUCTION', 'READY', 'SHIPPED', 'DELIVERED',
                       'CANCELLED', name='orderstatus')
payment_status = sa.Enum('PENDING', 'PAID', name='paymentstatus')
payment_method = sa.Enum('TRANSFERENCIA', 'CHEQUE', 'EFECTIVO', 'ECHEQ', name='paymentmethod')
public_quote_status = sa.Enum('PENDING', 'CONTACTED', 'CONVERTED', 'REJECTED', name='publicquotestatus')


def upgrade() -> None:
    op.create_table(
        'pricing_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('price_per_m2_standard', sa.Float(), nullable=False),
        sa.Column('price_per_m2_volume', sa.Float(), nullable=False),
        sa.Column('volume_threshold_m2', sa.Float(), nullable=False),
        sa.Column('min_m2_per_model', sa.Float(), nullable=False),
        sa.Column('price_per_m2_below_minimum', sa.Float(), nullable=True),
        sa.Column('free_shipping_min_m2', sa.Float(), nullable=False),
        sa.Column('free_shipping_max_km', sa.Float(), nullable=False),
        sa.Column('production_days_standard', sa.Integer(), nullable=False),
        sa.Column('production_days_printing', sa.Integer(), nullable=False),
        sa.Column('quote_validity_days', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=False),
        sa.Column('valid_until', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pricing_config_id', 'pricing_config', ['id'])

    op.create_table(
        'document_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('doc_type', sa.String(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('last_seq', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('doc_type', 'year', name='uq_document_sequences_doc_type_year'),
    )
    op.create_index('ix_document_sequences_id', 'document_sequences', ['id'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('company', sa.String(), nullable=True),
        sa.Column('cuit', sa.String(), nullable=True),
        sa.Column('tax_condition', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('province', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('distance_km', sa.Float(), nullable=True),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('source_quote_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_clients_id', 'clients', ['id'])
    op.create_index('ix_clients_cuit', 'clients', ['cuit'])
    op.create_index('ix_clients_email', 'clients', ['email'])

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('quote_number', sa.String(), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('status', quote_status, nullable=False),
        sa.Column('channel', channel, nullable=False),
        sa.Column('total_m2', sa.Float(), nullable=True),
        sa.Column('price_per_m2', sa.Float(), nullable=True),
        sa.Column('subtotal', sa.Float(), nullable=True),
        sa.Column('has_printing', sa.Boolean(), nullable=True),
        sa.Column('printing_colors', sa.Integer(), nullable=True),
        sa.Column('printing_cost', sa.Float(), nullable=True),
        sa.Column('has_die_cut', sa.Boolean(), nullable=True),
        sa.Column('die_cut_cost', sa.Float(), nullable=True),
        sa.Column('shipping_cost', sa.Float(), nullable=True),
        sa.Column('shipping_notes', sa.Text(), nullable=True),
        sa.Column('is_free_shipping', sa.Boolean(), nullable=True),
        sa.Column('total', sa.Float(), nullable=True),
        sa.Column('production_days', sa.Integer(), nullable=True),
        sa.Column('estimated_delivery', sa.Date(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('expired_at', sa.DateTime(), nullable=True),
        sa.Column('converted_to_order_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('quote_number'),
    )
    op.create_index('ix_quotes_id', 'quotes', ['id'])

    op.create_table(
        'quote_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id'), nullable=False),
        sa.Column('box_id', sa.Integer(), nullable=True),
        sa.Column('length_mm', sa.Integer(), nullable=False),
        sa.Column('width_mm', sa.Integer(), nullable=False),
        sa.Column('height_mm', sa.Integer(), nullable=False),
        sa.Column('unfolded_width_mm', sa.Integer(), nullable=False),
        sa.Column('unfolded_length_mm', sa.Integer(), nullable=False),
        sa.Column('m2_per_box', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_m2', sa.Float(), nullable=False),
        sa.Column('is_custom', sa.Boolean(), nullable=True),
        sa.Column('is_oversized', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quote_items_id', 'quote_items', ['id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(), nullable=False),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('status', order_status, nullable=False),
        sa.Column('total_m2', sa.Float(), nullable=True),
        sa.Column('delivered_m2', sa.Float(), nullable=True),
        sa.Column('price_per_m2', sa.Float(), nullable=True),
        sa.Column('subtotal', sa.Float(), nullable=True),
        sa.Column('printing_cost', sa.Float(), nullable=True),
        sa.Column('die_cut_cost', sa.Float(), nullable=True),
        sa.Column('shipping_cost', sa.Float(), nullable=True),
        sa.Column('total', sa.Float(), nullable=True),
        sa.Column('deposit_amount', sa.Float(), nullable=True),
        sa.Column('deposit_status', payment_status, nullable=False),
        sa.Column('deposit_method', payment_method, nullable=True),
        sa.Column('deposit_paid_at', sa.DateTime(), nullable=True),
        sa.Column('balance_amount', sa.Float(), nullable=True),
        sa.Column('balance_status', payment_status, nullable=False),
        sa.Column('balance_method', payment_method, nullable=True),
        sa.Column('balance_paid_at', sa.DateTime(), nullable=True),
        sa.Column('quantities_confirmed', sa.Boolean(), nullable=False),
        sa.Column('quantities_confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('production_started_at', sa.DateTime(), nullable=True),
        sa.Column('ready_at', sa.DateTime(), nullable=True),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('delivery_address', sa.Text(), nullable=True),
        sa.Column('delivery_city', sa.String(), nullable=True),
        sa.Column('delivery_notes', sa.Text(), nullable=True),
        sa.Column('estimated_delivery', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
    )
    op.create_index('ix_orders_id', 'orders', ['id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('length_mm', sa.Integer(), nullable=False),
        sa.Column('width_mm', sa.Integer(), nullable=False),
        sa.Column('height_mm', sa.Integer(), nullable=False),
        sa.Column('m2_per_box', sa.Float(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('quantity_delivered', sa.Integer(), nullable=True),
        sa.Column('total_m2', sa.Float(), nullable=False),
        sa.Column('delivered_m2', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_items_id', 'order_items', ['id'])

    op.create_table(
        'public_quotes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('requester_name', sa.String(), nullable=False),
        sa.Column('requester_company', sa.String(), nullable=True),
        sa.Column('requester_email', sa.String(), nullable=False),
        sa.Column('requester_phone', sa.String(), nullable=True),
        sa.Column('requester_cuit', sa.String(), nullable=True),
        sa.Column('requester_tax_condition', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('province', sa.String(), nullable=True),
        sa.Column('postal_code', sa.String(), nullable=True),
        sa.Column('distance_km', sa.Float(), nullable=True),
        sa.Column('is_free_shipping', sa.Boolean(), nullable=True),
        sa.Column('length_mm', sa.Integer(), nullable=False),
        sa.Column('width_mm', sa.Integer(), nullable=False),
        sa.Column('height_mm', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('has_printing', sa.Boolean(), nullable=True),
        sa.Column('printing_colors', sa.Integer(), nullable=True),
        sa.Column('sheet_width_mm', sa.Integer(), nullable=True),
        sa.Column('sheet_length_mm', sa.Integer(), nullable=True),
        sa.Column('sqm_per_box', sa.Float(), nullable=True),
        sa.Column('total_sqm', sa.Float(), nullable=True),
        sa.Column('price_per_m2', sa.Float(), nullable=True),
        sa.Column('unit_price', sa.Float(), nullable=True),
        sa.Column('subtotal', sa.Float(), nullable=True),
        sa.Column('estimated_days', sa.Integer(), nullable=True),
        sa.Column('is_oversized', sa.Boolean(), nullable=True),
        sa.Column('status', public_quote_status, nullable=False),
        sa.Column('requested_contact', sa.Boolean(), nullable=False),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('is_below_minimum', sa.Boolean(), nullable=True),
        sa.Column('accepted_below_minimum_terms', sa.Boolean(), nullable=True),
        sa.Column('converted_at', sa.DateTime(), nullable=True),
        sa.Column('converted_to_client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('converted_to_quote_id', sa.Integer(), sa.ForeignKey('quotes.id'), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('source_ip', sa.String(), nullable=True),
        sa.Column('source_user_agent', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_public_quotes_id', 'public_quotes', ['id'])
    op.create_index('ix_public_quotes_requester_email', 'public_quotes', ['requester_email'])
    op.create_index('ix_public_quotes_created_at', 'public_quotes', ['created_at'])


def downgrade() -> None:
    op.drop_table('public_quotes')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('quote_items')
    op.drop_table('quotes')
    op.drop_table('clients')
    op.drop_table('document_sequences')
    op.drop_table('pricing_config')

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum in (public_quote_status, payment_method, payment_status, order_status, channel, quote_status):
            enum.drop(bind, checkfirst=True)
