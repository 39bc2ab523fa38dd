"""create catalog tables

Revision ID: 001
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('supplier_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('product_type', sa.String(100), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('net_weight', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('characteristics', sa.Text()),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('brand', sa.String(100)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('stock >= 0', name='non_negative_stock'),
        sa.CheckConstraint('price >= 0', name='non_negative_price'),
    )
    op.create_index('idx_products_supplier', 'products', ['supplier_id'])
    op.create_index('idx_products_created', 'products', ['created_at'])

    # Image rows go with their product
    op.create_table(
        'product_images',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.String(36), nullable=False),
        sa.Column('image_url', sa.String(512), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_product_images_product', 'product_images', ['product_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('product_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='rating_range'),
    )
    op.create_index('idx_reviews_product', 'reviews', ['product_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.String(36), nullable=False),
        sa.Column('product_id', sa.String(36), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
    )
    op.create_index('idx_order_items_product', 'order_items', ['product_id'])


def downgrade() -> None:
    op.drop_index('idx_order_items_product', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('idx_reviews_product', table_name='reviews')
    op.drop_table('reviews')
    op.drop_index('idx_product_images_product', table_name='product_images')
    op.drop_table('product_images')
    op.drop_index('idx_products_created', table_name='products')
    op.drop_index('idx_products_supplier', table_name='products')
    op.drop_table('products')
