"""Utilities package for the FIFO Cost Ledger."""

from .config import Config, get_config, reset_config
from .datetime_utils import utc_now, today

__all__ = [
    "Config",
    "get_config",
    "reset_config",
    "utc_now",
    "today",
]
