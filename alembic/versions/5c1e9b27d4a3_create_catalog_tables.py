"""Create catalog tables with unique identifier indexes

Revision ID: 5c1e9b27d4a3
Revises:
Create Date: 2025-11-24 10:12:41.208337

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e9b27d4a3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=True),
        sa.Column('hs_code', sa.String(length=32), nullable=True),
    )
    op.create_table(
        'factories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=True),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('uuid', sa.String(length=36), nullable=True),
        sa.Column('product_code', sa.String(length=32), nullable=True),
        sa.Column('base_sku', sa.String(length=64), nullable=True),
        sa.Column('generated_sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=13), nullable=True),
        sa.Column('factory_batch_code', sa.String(length=64), nullable=True),
        sa.Column('label_serial_code', sa.String(length=32), nullable=True),
        sa.Column('tag_serial_code', sa.String(length=32), nullable=True),
        sa.Column('hs_code', sa.String(length=32), nullable=True),
        sa.Column('color_code', sa.String(length=32), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=True),
        sa.Column('short_description', sa.String(length=512), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('selling_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('compare_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=True),
        sa.Column('inventory', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=True),
        sa.Column('country_of_origin', sa.String(length=8), nullable=True),
        sa.Column('size_system', sa.String(length=64), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('gallery', sa.JSON(), nullable=True),
        sa.Column('product_variants', sa.JSON(), nullable=True),
        sa.Column('seo', sa.JSON(), nullable=True),
        sa.Column('alt_names_entries', sa.JSON(), nullable=True),
        sa.Column('translations', sa.JSON(), nullable=True),
        sa.Column('factory_id', sa.Integer(), sa.ForeignKey('factories.id'), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('uuid', name='uq_products_uuid'),
        sa.UniqueConstraint('barcode', name='uq_products_barcode'),
    )
    op.create_index('ix_products_product_code', 'products', ['product_code'], unique=True)
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_slug', 'products', ['slug'])
    op.create_index('ix_products_factory_batch_code', 'products', ['factory_batch_code'])
    op.create_index('ix_products_label_serial_code', 'products', ['label_serial_code'])
    op.create_index('ix_products_tag_serial_code', 'products', ['tag_serial_code'])

    op.create_table(
        'product_categories',
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
    )

    # Counter rows are locked with SELECT ... FOR UPDATE while a sequence number is handed out
    op.create_table(
        'sequence_counters',
        sa.Column('prefix', sa.String(length=64), primary_key=True),
        sa.Column('attribute', sa.String(length=64), primary_key=True),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
    )


def downgrade() -> None:
    op.drop_table('sequence_counters')
    op.drop_table('product_categories')
    op.drop_index('ix_products_tag_serial_code', table_name='products')
    op.drop_index('ix_products_label_serial_code', table_name='products')
    op.drop_index('ix_products_factory_batch_code', table_name='products')
    op.drop_index('ix_products_slug', table_name='products')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_index('ix_products_product_code', table_name='products')
    op.drop_table('products')
    op.drop_table('factories')
    op.drop_table('categories')
