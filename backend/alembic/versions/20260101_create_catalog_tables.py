"""create_catalog_tables

Revision ID: 001_catalog_tables
Revises:
Create Date: 2026-01-01

Creates the products table with its six visibility flag columns and the
curation_slots table. Slot rows are seeded here so that granting
bestSellers or popularFeatured can always lock an existing row.

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_catalog_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


FLAG_COLUMNS = (
    'published',
    'best_sellers',
    'best_selling',
    'editors_pick',
    'featured_product',
    'popular_featured',
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'products',
        sa.Column('product_id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('product_link', sa.String(500), nullable=False, server_default=''),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('sku', sa.String(100), nullable=False, unique=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='Active'),
        sa.Column('tags', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        *[
            sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.false())
            for name in FLAG_COLUMNS
        ],
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='chk_product_price_non_negative'),
        sa.CheckConstraint('stock >= 0', name='chk_product_stock_non_negative'),
        sa.CheckConstraint(
            "status IN ('Active', 'Hidden', 'Archived')",
            name='chk_product_status',
        ),
    )
    op.create_index('ix_products_year_month', 'products', ['year', 'month'])
    op.create_index('ix_products_category_status', 'products', ['category', 'status'])

    # Partial index for the Main Showcase lookup
    op.execute(
        "CREATE INDEX ix_products_best_sellers ON products (views DESC) "
        "WHERE best_sellers"
    )

    curation_slots = op.create_table(
        'curation_slots',
        sa.Column('name', sa.String(50), primary_key=True),
        sa.Column('capacity', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.bulk_insert(
        curation_slots,
        [
            {'name': 'bestSellers', 'capacity': 4},
            {'name': 'popularFeatured', 'capacity': 1},
        ],
    )


def downgrade() -> None:
    op.drop_table('curation_slots')
    op.execute("DROP INDEX IF EXISTS ix_products_best_sellers")
    op.drop_index('ix_products_category_status', table_name='products')
    op.drop_index('ix_products_year_month', table_name='products')
    op.drop_table('products')
