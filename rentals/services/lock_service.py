import uuid
from contextlib import contextmanager
from typing import Iterable, Iterator, List

import redis

from rentals.domain.errors import ConflictError
from rentals.utils.retry import redis_retry
from rentals.utils.settings import REDIS_URL, BOOKING_LOCK_TTL_SECONDS
from rentals.utils.logging import get_logger

logger = get_logger(__name__)

#compare and delete in one lua call, redis runs scripts atomically
#so nobody can slip in between GET and DEL and we never drop someone else's lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def _key(product_id: int) -> str:
    return f"product:{product_id}:booking-lock"


class LockService:
    """
    -per product booking lock (SET NX EX)
    -release only by the token that took it
    -hold_products: all products of one booking, ascending id order
    """

    def __init__(self, url: str | None = None, ttl: int = BOOKING_LOCK_TTL_SECONDS):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl

    @redis_retry()
    def acquire_product_lock(self, product_id: int, token: str, ttl: int) -> bool:
        key = _key(product_id)
        logger.info(f"Acquire lock {key} token {token}")
        #SET product:1:booking-lock "<token>" NX EX 10
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_product_lock(self, product_id: int, token: str) -> bool:
        key = _key(product_id)
        logger.info(f"Release lock {key} token {token}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def hold_products(self, product_ids: Iterable[int]) -> Iterator[str]:
        token = uuid.uuid4().hex
        held: List[int] = []
        try:
            #ascending id order for every caller
            for product_id in sorted(set(product_ids)):
                if not self.acquire_product_lock(product_id, token, self.ttl):
                    logger.warning(f"Product {product_id} is locked by another booking")
                    raise ConflictError(
                        f"Product {product_id} is being booked by another request, please retry"
                    )
                held.append(product_id)
            yield token
        finally:
            for product_id in held:
                self.release_product_lock(product_id, token)
