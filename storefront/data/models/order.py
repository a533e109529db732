from sqlalchemy import Column, Integer, ForeignKey, String, Text, DateTime, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from storefront.data.database import Base

ORDER_STATUSES = ("pending", "paid", "shipped", "completed", "cancelled")


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    voucher_id = Column(Integer, ForeignKey("vouchers.id"), nullable=True)

    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending, paid, shipped, completed, cancelled
    shipping_address = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    voucher = relationship("VoucherModel")
    items = relationship("OrderItemModel", back_populates="order")
    payment = relationship("PaymentModel", back_populates="order", uselist=False)


class OrderItemModel(Base):
    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_order_item_quantity"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id"), nullable=False)

    #cena z momentu zakupu, niezalezna od aktualnej ceny wariantu
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("OrderModel", back_populates="items")
    variant = relationship("ProductVariantModel")
