"""
Per-wallet request lock.

Wallet debits run check-balance then write-ledger then write-order. Row locks
cover this on PostgreSQL; the Redis lock additionally makes a second concurrent
checkout by the same user fail fast instead of queueing behind the first.
"""
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator

from app.core import redis_client
from app.core.config import settings
from app.core.exceptions import ResourceLockedError
from app.core.logging import get_logger

logger = get_logger(__name__)

_WALLET_LOCK_PREFIX = "wallet_lock"

# מחיקת KEYS[1] רק כל עוד הוא מחזיק את ARGV[1] (השוואה ומחיקה אטומית)
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def wallet_lock_key(user_id: int) -> str:
    return f"{_WALLET_LOCK_PREFIX}:{user_id}"


@asynccontextmanager
async def wallet_lock(user_id: int, ttl_seconds: int | None = None) -> AsyncIterator[str]:
    """Hold ``wallet_lock:{user_id}`` for the duration of the block.

    Raises ResourceLockedError if another request holds it. The TTL bounds
    how long a crashed holder can block the wallet.
    """
    ttl = ttl_seconds or settings.WALLET_LOCK_TTL_SECONDS
    key = wallet_lock_key(user_id)
    token = secrets.token_hex(8)
    redis = await redis_client.get_redis()

    acquired = await redis.set(key, token, nx=True, ex=ttl)
    if not acquired:
        logger.warning(
            "Wallet lock busy",
            extra_data={"user_id": user_id, "key": key},
        )
        raise ResourceLockedError(resource=f"wallet of user {user_id}", retry_after_seconds=ttl)

    try:
        yield token
    finally:
        await redis.eval(_RELEASE_SCRIPT, 1, key, token)
