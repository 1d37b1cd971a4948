from slowapi import Limiter
from slowapi.util import get_remote_address

from interview_booking.config import get_config

# Rate limiter for booking endpoints (limit by IP)
limiter = Limiter(key_func=get_remote_address, enabled=get_config().server.rate_limit_enabled)
