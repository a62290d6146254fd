"""Site-wide settings stored in the database"""

from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession

from wellness.core.config import settings
from wellness.models import SiteSetting

REQUIRE_CONFIRMATION_KEY = "requireConfirmation"


def parse_flag(value: Any, default: bool) -> bool:
    """
    Read a stored JSON value as a boolean.
    Strings count as true only when they spell "true"; numbers when non-zero.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, (int, float)):
        return value != 0
    return default


class SiteSettingsService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str, default: Any = None) -> Any:
        setting = await self.db.get(SiteSetting, key)
        if setting is None or setting.value is None:
            return default
        return setting.value

    async def set(self, key: str, value: Any) -> SiteSetting:
        setting = await self.db.get(SiteSetting, key)
        if setting is None:
            setting = SiteSetting(key=key, value=value)
            self.db.add(setting)
        else:
            setting.value = value
        await self.db.flush()
        return setting

    async def require_confirmation(self) -> bool:
        """Whether new appointments wait for manual confirmation"""
        value = await self.get(REQUIRE_CONFIRMATION_KEY)
        return parse_flag(value, settings.REQUIRE_CONFIRMATION)

    async def set_require_confirmation(self, enabled: bool) -> bool:
        await self.set(REQUIRE_CONFIRMATION_KEY, enabled)
        return enabled
