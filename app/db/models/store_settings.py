"""
Store Settings Model - singleton row with admin-editable storefront settings
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON

from app.db.database import Base


class StoreSettings(Base):
    """Single-row settings table; only the gift-card allow-list is read by the wallet"""

    __tablename__ = "store_settings"

    id = Column(Integer, primary_key=True)
    gift_card_types = Column(JSON, nullable=False, default=list)

    # Receiving addresses displayed at crypto checkout
    btc_address = Column(String(255), nullable=False, default="")
    eth_address = Column(String(255), nullable=False, default="")
    usdt_address = Column(String(255), nullable=False, default="")

    site_name = Column(String(100), nullable=False, default="Crypto Store")

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
