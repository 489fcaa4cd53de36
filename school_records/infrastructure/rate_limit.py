"""Rate limiting for the public auth endpoints (per client IP)."""
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
