#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.api.routers.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import (
    CartItemIn,
    CartItemUpdate,
    CartOut,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session = Depends(get_db)):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.get_cart(user_id)
    except StorefrontError as e:
        raise to_http(e)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.add_to_cart(
            user_id=user_id,
            variant_id=payload.product_variant_id,
            quantity=payload.quantity,
        )
    except StorefrontError as e:
        raise to_http(e)


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: CartItemUpdate,
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_cart_item(user_id, item_id, payload.quantity)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_from_cart(user_id, item_id)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("", response_model=CartOut)
def clear_cart(
    user_id: int = Query(..., gt=0),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.clear_cart(user_id)
    except StorefrontError as e:
        raise to_http(e)
