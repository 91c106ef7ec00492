"""Rate limiting for the public query endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from pokedex.config import get_settings

settings = get_settings()

# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)

PUBLIC_RATE_LIMIT = settings.RATE_LIMIT_PER_MINUTE
