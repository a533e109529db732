# storefront/api/__init__.py
from fastapi import FastAPI

# rejestracja wszystkich modeli zanim SQLAlchemy skonfiguruje relacje
import storefront.data.models  # noqa: F401
from storefront.api.routers import carts, health, orders, products, users, vouchers


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Storefront Order Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(vouchers.router)
    app.include_router(orders.router)

    return app
