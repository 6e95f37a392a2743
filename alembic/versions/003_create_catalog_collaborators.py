"""003: create storefront collaborator tables (products, cart_items, addresses)

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id                              VARCHAR(64)     PRIMARY KEY,
            name                            VARCHAR(200)    NOT NULL,
            price                           NUMERIC(12, 2)  NOT NULL,
            trainee_entrepreneur_discount   NUMERIC(5, 2)   NOT NULL DEFAULT 0,
            entrepreneur_discount           NUMERIC(5, 2)   NOT NULL DEFAULT 0,
            is_active                       BOOLEAN         NOT NULL DEFAULT TRUE,
            CONSTRAINT ck_products_price    CHECK (price >= 0),
            CONSTRAINT ck_products_trainee_discount
                CHECK (trainee_entrepreneur_discount BETWEEN 0 AND 100),
            CONSTRAINT ck_products_entrepreneur_discount
                CHECK (entrepreneur_discount BETWEEN 0 AND 100)
        );
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS cart_items (
            id          BIGSERIAL       PRIMARY KEY,
            user_id     VARCHAR(64)     NOT NULL,
            product_id  VARCHAR(64)     NOT NULL REFERENCES products (id),
            qty         INT             NOT NULL,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_cart_items_qty CHECK (qty >= 1)
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_cart_items_user_id ON cart_items (user_id);")
    op.execute("""
        CREATE TABLE IF NOT EXISTS addresses (
            id              VARCHAR(64)     PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            receiver_name   VARCHAR(200)    NOT NULL,
            receiver_phone  VARCHAR(32)     NOT NULL
        );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_addresses_user_id ON addresses (user_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS addresses CASCADE;")
    op.execute("DROP TABLE IF EXISTS cart_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
