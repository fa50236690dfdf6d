"""
Context Module

Контекст округления: настройки, sticky-флаги, активный слот потока.
"""

from .context import (
    DEFAULT_CONTEXT,
    Context,
    active,
    active_for_write,
    get_context,
    ieee,
    load_context,
    local_context,
    set_context,
)
from .settings import (
    DEFAULT_EMAX,
    DEFAULT_EMIN,
    DEFAULT_PRECISION,
    EMAX_LIMIT,
    EMIN_LIMIT,
    ContextSettings,
    Flag,
    RoundingMode,
)

__all__ = [
    # Models
    "Context",
    "ContextSettings",
    "Flag",
    "RoundingMode",
    # Defaults
    "DEFAULT_CONTEXT",
    "DEFAULT_PRECISION",
    "DEFAULT_EMIN",
    "DEFAULT_EMAX",
    "EMIN_LIMIT",
    "EMAX_LIMIT",
    # Active slot
    "active",
    "active_for_write",
    "get_context",
    "set_context",
    "local_context",
    # Presets & config
    "ieee",
    "load_context",
]
