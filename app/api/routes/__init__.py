"""
API Routes
"""
from fastapi import APIRouter

from app.api.routes.products import router as products_router
from app.api.routes.orders import router as orders_router
from app.api.routes.wallet import router as wallet_router
from app.api.routes.payment_requests import router as payment_requests_router

router = APIRouter()

router.include_router(products_router, prefix="/products", tags=["products"])
router.include_router(orders_router, prefix="/orders", tags=["orders"])
router.include_router(wallet_router, prefix="/wallet", tags=["wallet"])
router.include_router(payment_requests_router, prefix="/payment-requests", tags=["payment-requests"])
