"""Initial schema: operators, products, sales, sale lines, stock movements

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. operators (bcrypt password hash, active flag)
2. products (unique barcode, price in cents, non-negative on-hand, version counter)
3. sales + sale_lines (append-only; price-at-moment frozen on each line)
4. stock_movements (append-only ENTRADA/SAIDA ledger with CADASTRO/AJUSTE_MANUAL/VENDA reasons)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. OPERATORS
    # ==========================================================================
    op.create_table('operators',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('login', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('login', name='uq_operators_login'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_operators_login', 'operators', ['login'], unique=False)

    # ==========================================================================
    # 2. PRODUCTS
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity_on_hand', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode', name='uq_products_barcode'),
        sa.CheckConstraint('quantity_on_hand >= 0', name='ck_products_quantity_non_negative'),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_non_negative'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_name', 'products', ['name'], unique=False)

    # ==========================================================================
    # 3. SALES + SALE LINES
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('payment_type', sa.String(length=64), nullable=False),
        sa.Column('operator_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['operator_id'], ['operators.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sales_created', 'sales', ['created_at'], unique=False)
    op.create_index('ix_sales_payment_type', 'sales', ['payment_type'], unique=False)
    op.create_index('ix_sales_operator_id', 'sales', ['operator_id'], unique=False)

    op.create_table('sale_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('line_total_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_sale_lines_quantity_positive'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sale_lines_sale_id', 'sale_lines', ['sale_id'], unique=False)
    op.create_index('ix_sale_lines_product_id', 'sale_lines', ['product_id'], unique=False)

    # ==========================================================================
    # 4. STOCK MOVEMENTS
    # ==========================================================================
    op.create_table('stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('operator_id', sa.Integer(), nullable=True),
        sa.Column('note', sa.String(length=255), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
        sa.ForeignKeyConstraint(['operator_id'], ['operators.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_stock_movements_quantity_positive'),
        sa.CheckConstraint("type IN ('ENTRADA', 'SAIDA')", name='ck_stock_movements_type'),
        sa.CheckConstraint("reason IN ('CADASTRO', 'AJUSTE_MANUAL', 'VENDA')", name='ck_stock_movements_reason'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stock_movements_product_id', 'stock_movements', ['product_id'], unique=False)
    op.create_index('ix_stock_movements_type', 'stock_movements', ['type'], unique=False)
    op.create_index('ix_stock_movements_reason', 'stock_movements', ['reason'], unique=False)
    op.create_index('ix_stock_movements_sale_id', 'stock_movements', ['sale_id'], unique=False)
    op.create_index('ix_stock_movements_occurred_at', 'stock_movements', ['occurred_at'], unique=False)
    op.create_index('ix_stock_movements_product_occurred', 'stock_movements', ['product_id', 'occurred_at'], unique=False)


def downgrade():
    op.drop_index('ix_stock_movements_product_occurred', table_name='stock_movements')
    op.drop_index('ix_stock_movements_occurred_at', table_name='stock_movements')
    op.drop_index('ix_stock_movements_sale_id', table_name='stock_movements')
    op.drop_index('ix_stock_movements_reason', table_name='stock_movements')
    op.drop_index('ix_stock_movements_type', table_name='stock_movements')
    op.drop_index('ix_stock_movements_product_id', table_name='stock_movements')
    op.drop_table('stock_movements')

    op.drop_index('ix_sale_lines_product_id', table_name='sale_lines')
    op.drop_index('ix_sale_lines_sale_id', table_name='sale_lines')
    op.drop_table('sale_lines')

    op.drop_index('ix_sales_operator_id', table_name='sales')
    op.drop_index('ix_sales_payment_type', table_name='sales')
    op.drop_index('ix_sales_created', table_name='sales')
    op.drop_table('sales')

    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_operators_login', table_name='operators')
    op.drop_table('operators')
