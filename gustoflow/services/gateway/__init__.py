"""
Gateway (server side)

Maps tagged data actions onto parameterized SQL against the managed store.
"""

from gustoflow.services.gateway.dispatcher import (
    BindingError,
    GatewayDispatcher,
    InvalidActionError,
)

__all__ = [
    "BindingError",
    "GatewayDispatcher",
    "InvalidActionError",
]
