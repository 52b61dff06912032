"""
Rate limiter configuration using slowapi
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from vfxhub.config import config

# Initialize the limiter
limiter = Limiter(key_func=get_remote_address)


def ai_rate_limit() -> str:
    """Limit applied to the billable AI proxy endpoints."""
    return config.get("ai", "rate_limit", "20/minute")
