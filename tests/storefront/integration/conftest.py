import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api import cart_router, order_router, register_error_handlers


@pytest.fixture()
def client():
    from storefront.domain import storefront

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request, call_next):
        with storefront.domain_context():
            return await call_next(request)

    app.include_router(cart_router)
    app.include_router(order_router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def auth():
    return {"X-User-Id": "cust-api-001"}
