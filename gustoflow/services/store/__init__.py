"""
Store Factory

Provides the remote gateway client and the local fallback store configured
from settings.

Environment Switching:
    - GATEWAY_URL unset → no remote store, the client runs on LocalStore only
    - GATEWAY_URL set   → RemoteStore first, LocalStore per failed call
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from gustoflow.core.config import get_settings
from gustoflow.services.store.base import BaseStore, GatewayError, Predicate
from gustoflow.services.store.local import LocalStore
from gustoflow.services.store.remote import RemoteStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_remote_store() -> Optional[RemoteStore]:
    """Get the gateway client, or None when no gateway is configured."""
    settings = get_settings()

    if not settings.use_remote_gateway:
        logger.info("Remote store: disabled (no GATEWAY_URL), using local fallback only")
        return None

    logger.info(f"Remote store: {settings.gateway_url}")
    return RemoteStore(settings.gateway_url, timeout=settings.gateway_timeout_seconds)


@lru_cache()
def get_local_store() -> LocalStore:
    settings = get_settings()
    return LocalStore(
        Path(settings.fallback_directory),
        lock_timeout=settings.fallback_lock_timeout,
    )


def reset_stores() -> None:
    """
    Clear the cached store instances.

    Useful for testing or when configuration changes at runtime.
    """
    get_remote_store.cache_clear()
    get_local_store.cache_clear()
    logger.debug("Store cache cleared")


__all__ = [
    "get_remote_store",
    "get_local_store",
    "reset_stores",
    "BaseStore",
    "GatewayError",
    "LocalStore",
    "Predicate",
    "RemoteStore",
]
