# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.routers.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import OrderCreate, OrderOut, OrderStatusUpdate, PaymentCreate
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.utils.settings import CHECKOUT_LOCKING, CHECKOUT_LOCK_TTL_SECONDS

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db)):
    return OrderService(
        db=db,
        notification_service=NotificationService(),
        lock_service=LockService() if CHECKOUT_LOCKING else None,
        lock_ttl=CHECKOUT_LOCK_TTL_SECONDS,
    )


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Query(..., gt=0),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamówienie z koszyka użytkownika (opcjonalnie z voucherem).
    """
    try:
        return svc.place_order(
            user_id=user_id,
            shipping_address=payload.shipping_address,
            voucher_code=payload.voucher_code,
        )
    except StorefrontError as e:
        raise to_http(e)


@router.put("/status", status_code=204)
def update_order_status(payload: OrderStatusUpdate, svc: OrderService = Depends(get_service)):
    try:
        svc.update_order_status(payload.order_id, payload.status)
    except StorefrontError as e:
        raise to_http(e)
    return Response(status_code=204)


@router.get("", response_model=List[OrderOut])
def get_my_orders(
    user_id: int = Query(..., gt=0),
    svc: OrderService = Depends(get_service),
):
    return svc.get_user_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, svc: OrderService = Depends(get_service)):
    try:
        return svc.get_order(order_id)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/{order_id}/payment", response_model=OrderOut, status_code=201)
def record_payment(
    order_id: int,
    payload: PaymentCreate,
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.record_payment(order_id, payload.payment_method)
    except StorefrontError as e:
        raise to_http(e)
