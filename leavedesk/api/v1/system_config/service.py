"""
Typed access to the system_config key/value store.

All keys are loaded in one query and cached process-wide for a bounded TTL, so a
change made through the settings page is visible to rule checks within that TTL.
"""

import logging
import time
from typing import Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.core.config import settings
from leavedesk.core.models import SystemConfig


logger = logging.getLogger(__name__)

# Keys consumed by the leave rules
LEAVE_MIN_DAYS_KEY = "leave.min_days"
LEAVE_REQUIRE_APPROVAL_KEY = "leave.require_approval"
LEAVE_RETROACTIVE_DAYS_KEY = "leave.retroactive_days"

DEFAULT_MIN_DAYS = 3
DEFAULT_REQUIRE_APPROVAL = True

# (loaded_at monotonic seconds, values)
_cache: Optional[Tuple[float, Dict[str, Optional[str]]]] = None


def clear_cache() -> None:
    global _cache
    _cache = None


class ConfigProvider:
    """Typed accessors over system_config with defaults."""

    def __init__(self, db: AsyncSession, ttl_seconds: Optional[int] = None) -> None:
        self.db = db
        self.ttl_seconds = settings.system_config_cache_seconds if ttl_seconds is None else ttl_seconds

    async def _load(self) -> Dict[str, Optional[str]]:
        global _cache
        now = time.monotonic()
        if _cache is not None and self.ttl_seconds > 0 and now - _cache[0] < self.ttl_seconds:
            return _cache[1]
        result = await self.db.execute(select(SystemConfig.config_key, SystemConfig.config_value))
        values = {key: value for key, value in result.all()}
        _cache = (now, values)
        logger.debug("Loaded %d system config keys", len(values))
        return values

    async def get_string(self, key: str) -> Optional[str]:
        values = await self._load()
        return values.get(key)

    async def get_number(self, key: str, default: int) -> int:
        value = await self.get_string(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value.strip())
        except ValueError:
            logger.warning("System config %s has non-numeric value %r; using default %s", key, value, default)
            return default

    async def get_optional_number(self, key: str) -> Optional[int]:
        """Like get_number but distinguishes an unset key from any configured value."""
        value = await self.get_string(key)
        if value is None or not value.strip():
            return None
        try:
            return int(value.strip())
        except ValueError:
            logger.warning("System config %s has non-numeric value %r; ignoring", key, value)
            return None

    async def get_boolean(self, key: str, default: bool) -> bool:
        value = await self.get_string(key)
        if value is None or not value.strip():
            return default
        return value.strip().lower() in ("true", "1")

    # ----- Leave rule thresholds -----
    async def min_leave_days(self) -> int:
        return await self.get_number(LEAVE_MIN_DAYS_KEY, DEFAULT_MIN_DAYS)

    async def approval_required(self) -> bool:
        return await self.get_boolean(LEAVE_REQUIRE_APPROVAL_KEY, DEFAULT_REQUIRE_APPROVAL)

    async def retroactive_days(self) -> Optional[int]:
        return await self.get_optional_number(LEAVE_RETROACTIVE_DAYS_KEY)

    async def set_value(self, key: str, value: Optional[str], description: Optional[str] = None) -> None:
        """Create or update a key, then drop the cache so the next read sees it."""
        existing = (
            await self.db.execute(select(SystemConfig).where(SystemConfig.config_key == key))
        ).scalar_one_or_none()
        if existing:
            existing.config_value = value
            if description is not None:
                existing.description = description
        else:
            self.db.add(SystemConfig(config_key=key, config_value=value, description=description))
        await self.db.commit()
        clear_cache()
