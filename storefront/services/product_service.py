# storefront/services/product_service.py
from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel, ProductVariantModel
from storefront.domain.errors import ValidationError, VariantNotFoundError
from storefront.domain.schemas import ProductCreate
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def variant_to_dict(variant: ProductVariantModel) -> Dict[str, Any]:
    return {
        "id": variant.id,
        "product_id": variant.product_id,
        "sku": variant.sku,
        "price": variant.price,
        "stock": variant.stock,
    }


class ProductService:
    """Minimalny katalog: produkt z wariantami i odczyt wariantu."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def create_product(self, payload: ProductCreate) -> ProductModel:
        skus = [v.sku for v in payload.variants]
        if len(skus) != len(set(skus)):
            raise ValidationError("Duplicate SKU in request", field="variants")

        for sku in skus:
            if self.repo.get_variant_by_sku(sku):
                raise ValidationError(f"SKU {sku} already exists", field="variants")

        product = ProductModel(
            name=payload.name,
            is_active=True,
            variants=[
                ProductVariantModel(sku=v.sku, price=v.price, stock=v.stock)
                for v in payload.variants
            ],
        )

        try:
            created = self.repo.create_product(product)
        except IntegrityError:
            self.repo.rollback()
            raise ValidationError("SKU already exists", field="variants")

        logger.info(f"Utworzono produkt {created.id} z {len(skus)} wariantami")
        return self.repo.get_product(created.id)

    def get_variant(self, variant_id: int) -> Dict[str, Any]:
        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise VariantNotFoundError(variant_id)
        return variant_to_dict(variant)
