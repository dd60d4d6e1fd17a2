"""Logging setup for trackmix.

Modules log through ``logging.getLogger(__name__)``; this package only
configures handlers and injects mix context.
"""

from trackmix.logging.config import configure_logging
from trackmix.logging.context import MixContextFilter, get_mix_context, mix_context
from trackmix.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "MixContextFilter",
    "configure_logging",
    "get_mix_context",
    "mix_context",
]
