"""005: create orders and order_lines

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(32)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            tier                VARCHAR(30)     NOT NULL,
            address_id          VARCHAR(64)     NOT NULL,
            payment_method      VARCHAR(20)     NOT NULL,
            subtotal            BIGINT          NOT NULL,
            total_discount      BIGINT          NOT NULL,
            payable_subtotal    BIGINT          NOT NULL,
            delivery_charge     BIGINT          NOT NULL,
            grand_total         BIGINT          NOT NULL,
            currency            CHAR(3)         NOT NULL DEFAULT 'INR',
            status              VARCHAR(20)     NOT NULL DEFAULT 'CREATED',
            payment_status      VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            flagged_for_audit   BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            settled_at          TIMESTAMPTZ,
            CONSTRAINT ck_orders_tier CHECK (
                tier IN ('STANDARD', 'TRAINEE_ENTREPRENEUR', 'ENTREPRENEUR')
            ),
            CONSTRAINT ck_orders_payment_method CHECK (
                payment_method IN ('GATEWAY', 'WALLET', 'CASH_ON_DELIVERY')
            ),
            CONSTRAINT ck_orders_status CHECK (
                status IN ('CREATED', 'AWAITING_GATEWAY', 'VERIFYING', 'DEBITING', 'SETTLED', 'FAILED')
            ),
            CONSTRAINT ck_orders_payment_status CHECK (
                payment_status IN ('PENDING', 'SUCCESS', 'FAILED')
            ),
            CONSTRAINT ck_orders_discount CHECK (total_discount BETWEEN 0 AND subtotal),
            CONSTRAINT ck_orders_totals CHECK (
                payable_subtotal = subtotal - total_discount
                AND grand_total = payable_subtotal + delivery_charge
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_user_id ON orders (user_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_orders_waiting_on_gateway ON orders (updated_at)
            WHERE status IN ('AWAITING_GATEWAY', 'VERIFYING');
    """)
    op.execute("""
        CREATE TABLE order_lines (
            id              BIGSERIAL       PRIMARY KEY,
            order_id        VARCHAR(32)     NOT NULL REFERENCES orders (id) ON DELETE CASCADE,
            line_no         INT             NOT NULL,
            product_id      VARCHAR(64)     NOT NULL,
            product_name    VARCHAR(200)    NOT NULL,
            unit_price      BIGINT          NOT NULL,
            quantity        INT             NOT NULL,
            discount_bps    INT             NOT NULL,
            line_total      BIGINT          NOT NULL,
            line_discount   BIGINT          NOT NULL,
            CONSTRAINT uq_order_lines_line_no UNIQUE (order_id, line_no),
            CONSTRAINT ck_order_lines_quantity CHECK (quantity >= 1)
        );
    """)
    op.execute("COMMENT ON COLUMN orders.grand_total IS 'Frozen at creation; the only amount sent to the gateway';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_lines CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
