"""
Database Models
"""
from app.db.models.user import User
from app.db.models.product import Product
from app.db.models.order import Order, OrderItem, OrderStatusHistory
from app.db.models.wallet_transaction import WalletTransaction
from app.db.models.payment_request import PaymentRequest
from app.db.models.store_settings import StoreSettings

__all__ = [
    "User",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "WalletTransaction",
    "PaymentRequest",
    "StoreSettings",
]
