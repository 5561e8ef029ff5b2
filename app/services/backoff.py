# services/backoff.py
from typing import Optional

from core.config import settings

# 2**32 * any sane initial delay is far past any ceiling; keeps the float math bounded
_MAX_EXPONENT = 32


def error_backoff_seconds(
    consecutive_errors: int,
    initial_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
) -> float:
    """Seconds to sleep after `consecutive_errors` (>= 1) failed poll cycles in a row."""
    initial = settings.ERROR_BACKOFF_INITIAL_SECONDS if initial_delay is None else initial_delay
    ceiling = settings.ERROR_BACKOFF_MAX_SECONDS if max_delay is None else max_delay

    exponent = min(max(consecutive_errors, 1) - 1, _MAX_EXPONENT)
    return min(initial * 2 ** exponent, ceiling)
