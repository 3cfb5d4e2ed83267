"""
Domain Services
"""
from app.domain.services.ledger_service import LedgerService
from app.domain.services.inventory_service import InventoryService
from app.domain.services.wallet_service import WalletService
from app.domain.services.order_service import OrderService
from app.domain.services.reconciliation_service import ReconciliationService
from app.domain.services.payment_request_service import PaymentRequestService
from app.domain.services.store_settings_service import StoreSettingsService
from app.domain.services.product_service import ProductService

__all__ = [
    "LedgerService",
    "InventoryService",
    "WalletService",
    "OrderService",
    "ReconciliationService",
    "PaymentRequestService",
    "StoreSettingsService",
    "ProductService",
]
