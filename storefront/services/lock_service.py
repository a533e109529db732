# storefront/services/lock_service.py
import uuid

import redis
from redis.exceptions import RedisError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nikt nie wcisnie sie miedzy GET a DEL

#tenacity retry
def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(RedisError),
    )


def voucher_lock_key(code: str) -> str:
    return f"voucher:{code}:lock"


def variant_lock_key(variant_id: int) -> str:
    return f"variant:{variant_id}:lock"


class LockService:
    """
    -locki na wspoldzielone liczniki (voucher.used_count, variant.stock) przy checkoucie
    -zwalnianie tylko przez wlasciciela (token)
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def new_token() -> str:
        return uuid.uuid4().hex

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.info(f"Acquire lock {key}")
        #SET variant:1:lock "<token>" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,  #tylko jesli klucz nie istnieje
                ex=ttl,  #wygasa sam, nawet jak proces padnie
            )
        )

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def acquire_many(self, keys: list[str], token: str, ttl: int) -> bool:
        """Wszystkie albo zadne; przy porazce zwalnia to co juz wzial."""
        taken = []
        for key in sorted(set(keys)):
            try:
                acquired = self.acquire(key, token, ttl)
            except RedisError:
                logger.error(f"Redis niedostepny przy locku {key}, wycofuje {len(taken)} lockow")
                self.release_many(taken, token)
                raise
            if not acquired:
                logger.warning(f"Lock {key} zajety, wycofuje {len(taken)} lockow")
                self.release_many(taken, token)
                return False
            taken.append(key)
        return True

    def release_many(self, keys: list[str], token: str):
        for key in keys:
            try:
                self.release(key, token)
            except RedisError as e:
                #lock i tak wygasnie po ttl
                logger.warning(f"Failed to release lock {key}: {e}")
