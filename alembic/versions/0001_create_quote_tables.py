"""create quote, promotion and numbering tables

Revision ID: quotes_0001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'quotes_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


quote_status = sa.Enum('DRAFT', 'SENT', 'ACCEPTED', 'DECLINED', 'EXPIRED', 'CONVERTED', name='quotestatus')
quote_item_type = sa.Enum('INVENTORY', 'PLAN', name='quoteitemtype')
promotion_status = sa.Enum('DRAFT', 'PLANNED', 'ACTIVE', 'CANCELLED', 'EXPIRED', name='promotionstatus')
discount_type = sa.Enum('PERCENT', 'DOLLAR', name='discounttype')
discount_duration = sa.Enum('ONE_TIME', 'RECURRING', name='discountduration')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'promotions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('status', promotion_status, nullable=False),
        sa.Column('promotion_name', sa.String(255), nullable=False),
        sa.Column('promotion_description', sa.Text(), nullable=True),
        sa.Column('promotion_code', sa.String(100), nullable=True),
        sa.Column('discount_type', discount_type, nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_duration', discount_duration, nullable=False),
        sa.Column('recurring_months', sa.Integer(), nullable=True),
        sa.Column('approval_required', sa.Boolean(), nullable=False),
        sa.Column('approved_by', sa.String(64), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('valid_from', sa.Date(), nullable=True),
        sa.Column('valid_until', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_promotions_status', 'promotions', ['status'])
    op.create_index('ix_promotions_promotion_code', 'promotions', ['promotion_code'], unique=True)

    op.create_table(
        'quotes',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quote_number', sa.String(50), nullable=False),
        sa.Column('status', quote_status, nullable=False),
        sa.Column('customer_id', sa.String(64), nullable=True),
        sa.Column('lead_id', sa.String(64), nullable=True),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount_total', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_total', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('expires_at', sa.Date(), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('accepted_by', sa.String(64), nullable=True),
        sa.Column('declined_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('declined_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('terms', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            '(customer_id IS NULL) <> (lead_id IS NULL)',
            name='ck_quotes_single_subject',
        ),
    )
    op.create_index('ix_quotes_quote_number', 'quotes', ['quote_number'], unique=True)
    op.create_index('ix_quotes_status', 'quotes', ['status'])
    op.create_index('ix_quotes_customer_id', 'quotes', ['customer_id'])
    op.create_index('ix_quotes_lead_id', 'quotes', ['lead_id'])

    op.create_table(
        'quote_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_type', quote_item_type, nullable=False),
        sa.Column('inventory_id', sa.String(64), nullable=True),
        sa.Column('plan_id', sa.String(64), nullable=True),
        sa.Column('item_name', sa.String(255), nullable=True),
        sa.Column('item_description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_quote_items_quote_id', 'quote_items', ['quote_id'])

    op.create_table(
        'quote_promotions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('quote_id', sa.Integer(), sa.ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('promotion_id', sa.Integer(), sa.ForeignKey('promotions.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('discount_type', discount_type, nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('quote_id', 'promotion_id', name='uq_quote_promotions_quote_promotion'),
    )
    op.create_index('ix_quote_promotions_quote_id', 'quote_promotions', ['quote_id'])
    op.create_index('ix_quote_promotions_promotion_id', 'quote_promotions', ['promotion_id'])

    op.create_table(
        'quote_number_sequence',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('allocated_at', sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('quote_number_sequence')
    op.drop_table('quote_promotions')
    op.drop_table('quote_items')
    op.drop_table('quotes')
    op.drop_table('promotions')

    bind = op.get_bind()
    for enum in (discount_duration, discount_type, promotion_status, quote_item_type, quote_status):
        enum.drop(bind, checkfirst=True)
