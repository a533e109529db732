# storefront/api/routers/vouchers.py
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from storefront.api.routers.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import (
    VoucherCreate,
    VoucherOut,
    VoucherUpdate,
    VoucherValidationOut,
)
from storefront.services.voucher_service import VoucherService

router = APIRouter(prefix="/vouchers", tags=["vouchers"])


def get_service(db: Session = Depends(get_db)):
    return VoucherService(db)


@router.get("", response_model=List[VoucherOut])
def get_all_vouchers(svc: VoucherService = Depends(get_service)):
    return svc.get_all_vouchers()


@router.get("/active", response_model=List[VoucherOut])
def get_active_vouchers(svc: VoucherService = Depends(get_service)):
    return svc.get_active_vouchers()


@router.get("/validate", response_model=VoucherValidationOut)
def validate_voucher(
    code: str = Query(..., min_length=1),
    order_value: Decimal = Query(..., ge=0),
    svc: VoucherService = Depends(get_service),
):
    """
    Sprawdza voucher bez zapisu; ten sam evaluator co przy skladaniu zamowienia.
    """
    evaluation = svc.evaluate(code, order_value)
    return {
        "valid": evaluation.applicable,
        "message": evaluation.reason,
        "discount_amount": evaluation.discount_amount,
    }


@router.get("/code/{code}", response_model=VoucherOut)
def get_voucher_by_code(code: str, svc: VoucherService = Depends(get_service)):
    try:
        return svc.get_voucher_by_code(code)
    except StorefrontError as e:
        raise to_http(e)


@router.post("", response_model=VoucherOut, status_code=201)
def create_voucher(payload: VoucherCreate, svc: VoucherService = Depends(get_service)):
    try:
        return svc.create_voucher(payload)
    except StorefrontError as e:
        raise to_http(e)


@router.put("/{voucher_id}", response_model=VoucherOut)
def update_voucher(voucher_id: int, payload: VoucherUpdate, svc: VoucherService = Depends(get_service)):
    try:
        return svc.update_voucher(voucher_id, payload)
    except StorefrontError as e:
        raise to_http(e)


@router.delete("/{voucher_id}", status_code=204)
def delete_voucher(voucher_id: int, svc: VoucherService = Depends(get_service)):
    try:
        svc.delete_voucher(voucher_id)
    except StorefrontError as e:
        raise to_http(e)
    return Response(status_code=204)
