"""
Client instances wrapping redis-py.

Creating a client never touches the network. ``connect()`` /
``connect_async()`` hand out redis-py objects, which connect lazily on their
first command.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import timedelta
from typing import Any

import redis
import redis.asyncio as async_redis
from redis.asyncio.cluster import ClusterNode as AsyncClusterNode
from redis.asyncio.cluster import RedisCluster as AsyncRedisCluster
from redis.asyncio.sentinel import Sentinel as AsyncSentinel
from redis.cluster import ClusterNode, RedisCluster
from redis.sentinel import Sentinel

from .client_configuration import ClientOptions
from .resources import ClientResources
from .uri import RedisURI

logger = logging.getLogger(__name__)


class BaseRedisClient:
    """Shared option handling and connection bookkeeping."""

    def __init__(
        self,
        client_options: ClientOptions | None = None,
        client_resources: ClientResources | None = None,
    ):
        self.client_options = client_options or ClientOptions.create()
        self.client_resources = client_resources or ClientResources()
        self._connections: list[Any] = []
        self._async_connections: list[Any] = []

    def _connection_kwargs(
        self,
        uri: RedisURI,
        asynchronous: bool = False,
        include_database: bool = True,
    ) -> dict[str, Any]:
        if uri.start_tls:
            # redis-py negotiates TLS during connect only
            logger.warning("STARTTLS is not supported by redis-py; ignoring it for %s", uri)
        kwargs = self.client_resources.connection_kwargs(asynchronous=asynchronous)
        kwargs.update(uri.connection_kwargs(include_database=include_database))
        kwargs.update(self.client_options.connection_kwargs())
        return kwargs

    def _track(self, connection: Any) -> Any:
        self._connections.append(connection)
        return connection

    def _track_async(self, connection: Any) -> Any:
        self._async_connections.append(connection)
        return connection

    @property
    def open_connections(self) -> int:
        return len(self._connections) + len(self._async_connections)

    @property
    def open_async_connections(self) -> int:
        return len(self._async_connections)

    def shutdown(self) -> None:
        """Close every sync connection handed out by this client."""
        count = len(self._connections)
        while self._connections:
            self._connections.pop().close()
        if count:
            logger.info("%s closed %d connection(s)", type(self).__name__, count)

    async def shutdown_async(self, timeout: timedelta = timedelta(0)) -> None:
        """Close every connection, waiting at most ``timeout`` per async close.

        A zero timeout waits without limit.
        """
        self.shutdown()
        limit = timeout.total_seconds() or None
        while self._async_connections:
            connection = self._async_connections.pop()
            try:
                await asyncio.wait_for(connection.aclose(), timeout=limit)
            except asyncio.TimeoutError:
                logger.warning("Timed out after %ss closing %r", limit, connection)


class RedisClient(BaseRedisClient):
    """Client for a standalone server or a sentinel-managed master."""

    def __init__(
        self,
        redis_uri: RedisURI,
        client_options: ClientOptions | None = None,
        client_resources: ClientResources | None = None,
    ):
        super().__init__(client_options, client_resources)
        self.redis_uri = redis_uri

    def _sentinel_addresses(self) -> list[tuple[str, int]]:
        return [(node.host, node.port) for node in self.redis_uri.sentinels]

    def connect(self) -> redis.Redis:
        uri = self.redis_uri
        redis_class = self.client_options.resolve_redis_class()
        kwargs = self._connection_kwargs(uri)
        if uri.is_sentinel:
            sentinel = Sentinel(
                self._sentinel_addresses(),
                sentinel_kwargs={"socket_timeout": uri.socket_timeout},
                **kwargs,
            )
            connection = sentinel.master_for(uri.sentinel_master_id, redis_class=redis_class)
        else:
            connection = redis_class(host=uri.host, port=uri.port, **kwargs)
        logger.debug("Connected to %s", uri)
        return self._track(connection)

    def connect_async(self) -> async_redis.Redis:
        uri = self.redis_uri
        redis_class = self.client_options.resolve_async_redis_class()
        kwargs = self._connection_kwargs(uri, asynchronous=True)
        if uri.is_sentinel:
            sentinel = AsyncSentinel(
                self._sentinel_addresses(),
                sentinel_kwargs={"socket_timeout": uri.socket_timeout},
                **kwargs,
            )
            connection = sentinel.master_for(uri.sentinel_master_id, redis_class=redis_class)
        else:
            connection = redis_class(host=uri.host, port=uri.port, **kwargs)
        logger.debug("Connected async client to %s", uri)
        return self._track_async(connection)

    def __repr__(self) -> str:
        return f"RedisClient({self.redis_uri})"


class RedisClusterClient(BaseRedisClient):
    """Cluster-aware client seeded with one URI per known node."""

    def __init__(
        self,
        initial_uris: Iterable[RedisURI],
        client_options: ClientOptions | None = None,
        client_resources: ClientResources | None = None,
    ):
        super().__init__(client_options, client_resources)
        self.initial_uris = list(initial_uris)
        if not self.initial_uris:
            raise ValueError("A cluster client needs at least one initial URI")

    def connect(self) -> RedisCluster:
        # Credentials and TLS settings are uniform across seed nodes.
        kwargs = self._connection_kwargs(self.initial_uris[0], include_database=False)
        startup_nodes = [ClusterNode(uri.host, uri.port) for uri in self.initial_uris]
        connection = RedisCluster(startup_nodes=startup_nodes, **kwargs)
        logger.debug("Connected cluster client to %d seed node(s)", len(startup_nodes))
        return self._track(connection)

    def connect_async(self) -> AsyncRedisCluster:
        kwargs = self._connection_kwargs(
            self.initial_uris[0], asynchronous=True, include_database=False
        )
        startup_nodes = [AsyncClusterNode(uri.host, uri.port) for uri in self.initial_uris]
        connection = AsyncRedisCluster(startup_nodes=startup_nodes, **kwargs)
        logger.debug("Connected async cluster client to %d seed node(s)", len(startup_nodes))
        return self._track_async(connection)

    def __repr__(self) -> str:
        nodes = ", ".join(f"{uri.host}:{uri.port}" for uri in self.initial_uris)
        return f"RedisClusterClient([{nodes}])"
