# storefront/repos/product_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel, ProductVariantModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def get_product(self, product_id: int) -> ProductModel | None:
        stmt = (
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(selectinload(ProductModel.variants))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        stmt = (
            select(ProductVariantModel)
            .where(ProductVariantModel.id == variant_id)
            .options(selectinload(ProductVariantModel.product))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_variant_by_sku(self, sku: str) -> ProductVariantModel | None:
        return self.db.execute(
            select(ProductVariantModel).where(ProductVariantModel.sku == sku)
        ).scalar_one_or_none()

    def adjust_stock(self, variant_id: int, delta: int) -> int:
        # UPDATE product_variants SET stock = stock + :delta WHERE id = :id
        # atomowe w bazie, ale bez sprawdzenia czy stock zejdzie ponizej zera
        result = self.db.execute(
            update(ProductVariantModel)
            .where(ProductVariantModel.id == variant_id)
            .values(stock=ProductVariantModel.stock + delta)
        )
        self.db.commit()
        return result.rowcount

    def rollback(self):
        self.db.rollback()
