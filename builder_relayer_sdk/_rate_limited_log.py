"""
Thread-safe rate-limited logging.

Degradations that repeat on every request (gas estimation falling back to the
default limit, a relayer sending unusable Retry-After headers) are logged once
per interval instead of once per request.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL = 60

# Keyed by interval so every TTLCache has a single, fixed TTL
_caches = {}
_cache_lock = threading.RLock()


def _cache_for(interval: int) -> TTLCache:
    cache = _caches.get(interval)
    if cache is None:
        cache = TTLCache(maxsize=256, ttl=interval)
        _caches[interval] = cache
    return cache


def rate_limited_log(
    message: str,
    level: str = "warning",
    interval: int = _DEFAULT_INTERVAL,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per ``interval`` seconds.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between identical messages in seconds
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{log_instance.name}:{level}:{message}"

    with _cache_lock:
        cache = _cache_for(interval)
        if key in cache:
            return False
        cache[key] = True
    log_method(message)
    return True


def reset_rate_limits() -> None:
    """Forget every suppressed message."""
    with _cache_lock:
        _caches.clear()
