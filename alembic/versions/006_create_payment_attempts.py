"""006: create payment_attempts

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_attempts (
            id                      VARCHAR(32)     PRIMARY KEY,
            order_id                VARCHAR(32)     NOT NULL REFERENCES orders (id),
            user_id                 VARCHAR(64)     NOT NULL,
            client_attempt_id       VARCHAR(64)     NOT NULL,
            method                  VARCHAR(20)     NOT NULL,
            amount                  BIGINT          NOT NULL,
            currency                CHAR(3)         NOT NULL,
            gateway_order_ref       VARCHAR(64),
            gateway_payment_ref     VARCHAR(64),
            verification_signature  VARCHAR(128),
            outcome                 VARCHAR(10)     NOT NULL DEFAULT 'IN_FLIGHT',
            failure_reason          VARCHAR(40),
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_attempts_outcome CHECK (outcome IN ('IN_FLIGHT', 'SUCCESS', 'FAILED')),
            CONSTRAINT ck_attempts_amount CHECK (amount >= 0),
            CONSTRAINT uq_attempt_client_id UNIQUE (order_id, client_attempt_id),
            CONSTRAINT uq_attempt_gateway_order_ref UNIQUE (gateway_order_ref)
        );
    """)
    # At most one attempt per order may be waiting on money
    op.execute("""
        CREATE UNIQUE INDEX uq_attempt_one_in_flight ON payment_attempts (order_id)
            WHERE outcome = 'IN_FLIGHT';
    """)
    op.execute("""
        CREATE TRIGGER trg_payment_attempts_updated_at
            BEFORE UPDATE ON payment_attempts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_attempts CASCADE;")
