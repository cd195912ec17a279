"""
Shared request rate limiter
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from herbstore.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
