"""CLI helpers for FSDEDUPE.

Utilities used by the command-line interface: message emitters that write to
stderr with emoji→ASCII fallbacks, signal-driven cancellation, and mapping of
store errors onto Click exceptions.
"""

from .errors import store_errors
from .messages import action, error, success, warn
from .signals import cancel_on_signals

__all__ = ["action", "cancel_on_signals", "error", "store_errors", "success", "warn"]
