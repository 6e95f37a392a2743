"""SQLAlchemy ORM model for delivery_fee_rules (DDL reference only: queries use raw SQL)."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.ck_common.database import Base


class DeliveryFeeRuleORM(Base):
    __tablename__ = "delivery_fee_rules"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    min_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    charge: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
