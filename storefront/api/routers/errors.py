# storefront/api/routers/errors.py
from fastapi import HTTPException

from storefront.domain.errors import (
    ConflictError,
    InsufficientStockError,
    InternalError,
    NotFoundError,
    StorefrontError,
    ValidationError,
    VoucherRejectedError,
)

_STATUS = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (VoucherRejectedError, 400),
    (InsufficientStockError, 409),
    (ConflictError, 409),
    (InternalError, 500),
)


def to_http(e: StorefrontError) -> HTTPException:
    for error_type, status_code in _STATUS:
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail={"code": e.code, "message": e.message})
    return HTTPException(status_code=500, detail={"code": e.code, "message": e.message})
