# storefront/api/routers/products.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.routers.errors import to_http
from storefront.data.database import get_db
from storefront.domain.errors import StorefrontError
from storefront.domain.schemas import ProductCreate, ProductOut, VariantOut
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session = Depends(get_db)):
    return ProductService(db)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, svc: ProductService = Depends(get_service)):
    try:
        return svc.create_product(payload)
    except StorefrontError as e:
        raise to_http(e)


@router.get("/variants/{variant_id}", response_model=VariantOut)
def get_variant(variant_id: int, svc: ProductService = Depends(get_service)):
    try:
        return svc.get_variant(variant_id)
    except StorefrontError as e:
        raise to_http(e)
