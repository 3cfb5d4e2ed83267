"""
Store Settings Service - singleton settings row
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ValidationException
from app.core.logging import get_logger
from app.core.validation import TextSanitizer
from app.db.models.store_settings import StoreSettings

logger = get_logger(__name__)

SETTINGS_ROW_ID = 1


class StoreSettingsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self) -> StoreSettings:
        """Load the settings row, creating it with defaults on first use"""
        result = await self.db.execute(
            select(StoreSettings).where(StoreSettings.id == SETTINGS_ROW_ID)
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = StoreSettings(
                id=SETTINGS_ROW_ID,
                gift_card_types=list(settings.default_gift_card_types),
                site_name=settings.APP_NAME,
            )
            self.db.add(row)
            await self.db.flush()
        return row

    async def get_gift_card_types(self) -> list[str]:
        row = await self.get()
        return list(row.gift_card_types or [])

    async def update_gift_card_types(self, types: list[str], admin_id: Optional[int] = None) -> list[str]:
        """Replace the allow-list. Blank and duplicate names are dropped."""
        cleaned: list[str] = []
        for name in types:
            name = TextSanitizer.sanitize(name, max_length=50)
            if name and name not in cleaned:
                cleaned.append(name)
        if not cleaned:
            raise ValidationException("At least one gift card type is required", field="gift_card_types")

        row = await self.get()
        row.gift_card_types = cleaned
        await self.db.commit()

        logger.info(
            "Gift card types updated",
            extra_data={"admin_id": admin_id, "gift_card_types": cleaned},
        )
        return cleaned
