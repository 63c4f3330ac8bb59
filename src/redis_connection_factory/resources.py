"""
Client resources that may be shared between many clients.
"""

import logging
import threading
from typing import Any

from redis.asyncio.retry import Retry as AsyncRetry
from redis.backoff import AbstractBackoff, ExponentialBackoff
from redis.retry import Retry

logger = logging.getLogger(__name__)

_resources_lock = threading.Lock()

_shared_resources: "ClientResources | None" = None


class ClientResources:
    """Retry policy and health checking applied to every connection of a client.

    redis-py keeps separate retry classes for sync and async connections, so
    the backoff strategy is the shared piece and the retry objects are built
    on demand.
    """

    def __init__(
        self,
        retries: int = 3,
        backoff: AbstractBackoff | None = None,
        health_check_interval: int = 0,
    ):
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        if health_check_interval < 0:
            raise ValueError(f"health_check_interval must be >= 0, got {health_check_interval}")
        self.retries = retries
        self.backoff = backoff if backoff is not None else ExponentialBackoff()
        self.health_check_interval = health_check_interval

    def retry(self) -> Retry:
        return Retry(self.backoff, self.retries)

    def async_retry(self) -> AsyncRetry:
        return AsyncRetry(self.backoff, self.retries)

    def connection_kwargs(self, asynchronous: bool = False) -> dict[str, Any]:
        """Keyword arguments to merge into redis-py client construction."""
        return {
            "retry": self.async_retry() if asynchronous else self.retry(),
            "health_check_interval": self.health_check_interval,
        }

    def __repr__(self) -> str:
        return (
            f"ClientResources(retries={self.retries}, backoff={type(self.backoff).__name__}, "
            f"health_check_interval={self.health_check_interval})"
        )


def get_shared_client_resources() -> ClientResources:
    """Return the process-wide ClientResources, creating it on first use."""
    global _shared_resources

    with _resources_lock:
        if _shared_resources is None:
            _shared_resources = ClientResources()
            logger.debug("Created shared client resources: %r", _shared_resources)
        return _shared_resources


def reset_shared_client_resources() -> None:
    """Forget the shared ClientResources so the next call creates a fresh one."""
    global _shared_resources

    with _resources_lock:
        _shared_resources = None
