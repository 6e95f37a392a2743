"""SQLAlchemy ORM model for payment_attempts (DDL reference only: queries use raw SQL)."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.ck_common.database import Base


class PaymentAttemptORM(Base):
    __tablename__ = "payment_attempts"
    __table_args__ = (
        UniqueConstraint("order_id", "client_attempt_id", name="uq_attempt_client_id"),
        Index(
            "uq_attempt_one_in_flight",
            "order_id",
            unique=True,
            postgresql_where=text("outcome = 'IN_FLIGHT'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    order_id: Mapped[str] = mapped_column(String(32), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    client_attempt_id: Mapped[str] = mapped_column(String(64), nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    gateway_order_ref: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    gateway_payment_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    verification_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    outcome: Mapped[str] = mapped_column(String(10), nullable=False, default="IN_FLIGHT")
    failure_reason: Mapped[str | None] = mapped_column(String(40), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
