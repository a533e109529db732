# storefront/data/models/voucher.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, Text, Boolean, DateTime, Numeric, UniqueConstraint

from storefront.data.database import Base


class VoucherModel(Base):
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True)
    code = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")

    discount_type = Column(String, nullable=False)  # percent | fixed
    discount_value = Column(Numeric(12, 2), nullable=False)
    min_order_value = Column(Numeric(12, 2), nullable=False, default=0)
    max_discount_value = Column(Numeric(12, 2), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    usage_per_user = Column(Integer, nullable=False, default=1)
    used_count = Column(Integer, nullable=False, default=0)

    start_at = Column(DateTime(timezone=True), nullable=True)
    end_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


class UserVoucherModel(Base):
    __tablename__ = "user_vouchers"
    __table_args__ = (UniqueConstraint("user_id", "voucher_id", name="u_user_voucher"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    voucher_id = Column(Integer, ForeignKey("vouchers.id"), nullable=False)
    used_count = Column(Integer, nullable=False, default=0)
