from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.api.v1.system_config.service import (
    LEAVE_MIN_DAYS_KEY,
    LEAVE_REQUIRE_APPROVAL_KEY,
    LEAVE_RETROACTIVE_DAYS_KEY,
    ConfigProvider,
    clear_cache,
)
from leavedesk.core.models import SystemConfig


async def test_defaults_when_keys_are_missing(config: ConfigProvider) -> None:
    assert await config.min_leave_days() == 3
    assert await config.approval_required() is True
    assert await config.retroactive_days() is None


async def test_typed_parsing(db_session: AsyncSession, config: ConfigProvider) -> None:
    db_session.add_all(
        [
            SystemConfig(config_key=LEAVE_MIN_DAYS_KEY, config_value=" 5 "),
            SystemConfig(config_key=LEAVE_REQUIRE_APPROVAL_KEY, config_value="FALSE"),
            SystemConfig(config_key=LEAVE_RETROACTIVE_DAYS_KEY, config_value="7"),
            SystemConfig(config_key="leave.flag_one", config_value="1"),
            SystemConfig(config_key="leave.flag_empty", config_value=""),
        ]
    )
    await db_session.commit()

    assert await config.min_leave_days() == 5
    assert await config.approval_required() is False
    assert await config.retroactive_days() == 7
    assert await config.get_boolean("leave.flag_one", False) is True
    assert await config.get_boolean("leave.flag_empty", True) is True


async def test_non_numeric_value_falls_back_to_default(db_session: AsyncSession, config: ConfigProvider) -> None:
    db_session.add(SystemConfig(config_key=LEAVE_MIN_DAYS_KEY, config_value="three"))
    await db_session.commit()

    assert await config.min_leave_days() == 3


async def test_values_are_cached_until_cleared(db_session: AsyncSession, config: ConfigProvider) -> None:
    assert await config.min_leave_days() == 3

    db_session.add(SystemConfig(config_key=LEAVE_MIN_DAYS_KEY, config_value="6"))
    await db_session.commit()
    assert await config.min_leave_days() == 3

    clear_cache()
    assert await config.min_leave_days() == 6


async def test_zero_ttl_always_reloads(db_session: AsyncSession) -> None:
    provider = ConfigProvider(db_session, ttl_seconds=0)
    assert await provider.min_leave_days() == 3

    db_session.add(SystemConfig(config_key=LEAVE_MIN_DAYS_KEY, config_value="4"))
    await db_session.commit()
    assert await provider.min_leave_days() == 4


async def test_set_value_upserts_and_invalidates(config: ConfigProvider) -> None:
    assert await config.approval_required() is True

    await config.set_value(LEAVE_REQUIRE_APPROVAL_KEY, "false", description="Auto-approve leave")
    assert await config.approval_required() is False

    await config.set_value(LEAVE_REQUIRE_APPROVAL_KEY, "true")
    assert await config.approval_required() is True
