"""
App settings (brand name, slogan, logo) stored as a single row with a fixed id.
"""

import asyncio
import logging
from typing import Optional

from gustoflow.constants import default_app_settings
from gustoflow.core.config import get_settings
from gustoflow.db import DataGateway
from gustoflow.schemas import AppSettings, TableName
from gustoflow.services.errors import ValidationError
from gustoflow.services.preferences import PreferenceStore
from gustoflow.services.store import Predicate

logger = logging.getLogger(__name__)


async def load_app_settings(gateway: DataGateway, preferences: PreferenceStore) -> AppSettings:
    """
    Read the settings row, falling back to the cached copy, then to defaults.
    A row that is found refreshes the cache. The preference file is touched
    off the event loop, since its lock may be held by another process.
    """
    settings_id = get_settings().settings_id
    row = await gateway.from_(TableName.APP_SETTINGS.value).maybe_single(Predicate.by_id(settings_id))

    if row:
        app_settings = AppSettings.model_validate(row)
        await asyncio.to_thread(preferences.cache_settings, app_settings.to_row())
        return app_settings

    cached = await asyncio.to_thread(preferences.cached_settings)
    if cached:
        return AppSettings.model_validate(cached)

    return default_app_settings()


async def save_app_settings(
    gateway: DataGateway,
    preferences: PreferenceStore,
    name: str,
    slogan: Optional[str] = "",
    logo_url: Optional[str] = "",
) -> AppSettings:
    """
    Upsert the singleton settings row and refresh the local cache.

    Raises:
        ValidationError: empty brand name
    """
    if not name or not name.strip():
        raise ValidationError("Restaurant name is required")

    settings_id = get_settings().settings_id
    app_settings = AppSettings(
        id=settings_id,
        name=name.strip(),
        slogan=slogan or "",
        logo_url=logo_url or "",
    )

    rows = gateway.from_(TableName.APP_SETTINGS.value)
    if await rows.maybe_single(Predicate.by_id(settings_id)) is None:
        await rows.insert([app_settings])
    else:
        await rows.update(
            {"name": app_settings.name, "slogan": app_settings.slogan, "logo_url": app_settings.logo_url}
        ).eq("id", settings_id)

    await asyncio.to_thread(preferences.cache_settings, app_settings.to_row())
    logger.info(f"App settings saved ({app_settings.name})")
    return app_settings
