"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client address
limiter = Limiter(key_func=get_remote_address)
