# app/services/lock_service.py
import redis

from app.utils.logging import get_logger
from app.utils.retry import redis_retry
from app.utils.settings import REDIS_URL

logger = get_logger(__name__)

# compare-and-delete runs as one Lua script, nobody can slip in between GET and DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Named job locks in Redis (SET NX EX).

    Used to keep scheduled jobs from running twice at once; interactive
    requests never take these locks.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(name: str) -> str:
        return f"job:{name}:lock"

    @redis_retry()
    def acquire(self, name: str, token: str, ttl: int) -> bool:
        key = self._key(name)
        logger.info(f"Acquire lock {key} ({token})")
        # expires on its own if the holder dies mid-run
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, name: str, token: str) -> bool:
        key = self._key(name)
        logger.info(f"Release lock {key} ({token})")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
