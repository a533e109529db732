from sqlalchemy import Column, Integer, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship

from storefront.data.database import Base

PAYMENT_METHODS = ("COD", "Momo", "VNPay")


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, unique=True)
    payment_method = Column(String, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")  # pending, success, failed
    paid_at = Column(DateTime(timezone=True), nullable=True)

    order = relationship("OrderModel", back_populates="payment")
