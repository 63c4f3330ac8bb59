"""
Connection URIs: everything needed to reach one Redis endpoint.
"""

from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any

from .config import RedisNode


@dataclass(frozen=True)
class RedisURI:
    """Endpoint plus credentials, database, TLS flags and command timeout.

    A sentinel URI additionally carries the master id and the sentinel
    endpoints; ``host``/``port`` then refer to the first sentinel.
    """

    host: str
    port: int
    password: str | None = field(default=None, repr=False)
    database: int = 0
    ssl: bool = False
    verify_peer: bool = True
    start_tls: bool = False
    timeout: timedelta = timedelta(seconds=60)
    sentinel_master_id: str | None = None
    sentinels: tuple[RedisNode, ...] = ()

    @property
    def socket_timeout(self) -> float:
        """The timeout in redis-py's unit, seconds."""
        return self.timeout.total_seconds()

    @property
    def is_sentinel(self) -> bool:
        return self.sentinel_master_id is not None

    def with_node(self, node: RedisNode) -> "RedisURI":
        return replace(self, host=node.host, port=node.port)

    def connection_kwargs(self, include_database: bool = True) -> dict[str, Any]:
        """Keyword arguments for a redis-py client, without host and port."""
        kwargs: dict[str, Any] = {"socket_timeout": self.socket_timeout}
        if include_database:
            kwargs["db"] = self.database
        if self.password is not None:
            kwargs["password"] = self.password
        if self.ssl:
            kwargs["ssl"] = True
            kwargs["ssl_cert_reqs"] = "required" if self.verify_peer else "none"
        return kwargs

    def __str__(self) -> str:
        scheme = "rediss" if self.ssl else "redis"
        if self.is_sentinel:
            nodes = ",".join(str(node) for node in self.sentinels)
            return f"{scheme}-sentinel://{nodes}/{self.database}#{self.sentinel_master_id}"
        return f"{scheme}://{self.host}:{self.port}/{self.database}"
