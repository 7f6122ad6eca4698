# app/utils/retry.py
from requests import ConnectionError as RequestsConnectionError, Timeout
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

# only transport failures are retried, a 4xx from the media host is final
_TRANSIENT_HTTP = (RequestsConnectionError, Timeout)
_TRANSIENT_REDIS = (RedisConnectionError, RedisTimeoutError)


def http_retry(attempts: int = 3):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(_TRANSIENT_HTTP),
    )


def redis_retry(attempts: int = 3):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(_TRANSIENT_REDIS),
    )
