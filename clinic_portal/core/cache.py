import redis
from .config import settings

# Appointment list cache, rate-limit counters and revoked sessions
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client
