"""
Utilities package for core-api.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from core_api.utils.logging import (
    configure_from_settings,
    configure_logging,
    effective_log_level,
    get_logger,
)

__all__ = [
    "configure_from_settings",
    "configure_logging",
    "effective_log_level",
    "get_logger",
]
