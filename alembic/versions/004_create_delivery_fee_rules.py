"""004: create delivery_fee_rules

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE delivery_fee_rules (
            id          VARCHAR(64)     PRIMARY KEY,
            min_amount  BIGINT          NOT NULL,
            max_amount  BIGINT          NOT NULL,
            charge      BIGINT          NOT NULL DEFAULT 0,
            is_active   BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_delivery_rules_range  CHECK (0 <= min_amount AND min_amount <= max_amount),
            CONSTRAINT ck_delivery_rules_charge CHECK (charge >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_delivery_fee_rules_updated_at
            BEFORE UPDATE ON delivery_fee_rules
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE delivery_fee_rules IS 'Delivery brackets in paise, bounds inclusive; overlaps allowed';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS delivery_fee_rules CASCADE;")
