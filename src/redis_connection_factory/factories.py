"""
Connection factory: turns a topology configuration plus a client configuration
into exactly one client instance.
"""

import logging
import os
from dataclasses import replace
from datetime import timedelta
from typing import Any

from .client_configuration import (
    ClientConfiguration,
    ImmutableConfigurationError,
    MutableClientConfiguration,
)
from .clients import BaseRedisClient, RedisClient, RedisClusterClient
from .config import (
    ClusterConfiguration,
    RedisConfiguration,
    SentinelConfiguration,
    StandaloneConfiguration,
    TopologyConfiguration,
    configuration_from_env,
)
from .resources import ClientResources
from .uri import RedisURI

logger = logging.getLogger(__name__)


class RedisConnectionFactory:
    """Builds and owns the client for one Redis deployment.

    Password and database index are read from and written to the topology
    configuration passed in, so changes are visible through either object.
    SSL flags, timeouts and resources come from the client configuration;
    their setters only work when that configuration is mutable (the default
    when none is given).

    Usage::

        factory = RedisConnectionFactory(ClusterConfiguration(["10.0.0.1:7000"]))
        factory.initialize()
        redis = factory.get_connection()
    """

    def __init__(
        self,
        configuration: TopologyConfiguration | None = None,
        client_configuration: ClientConfiguration | MutableClientConfiguration | None = None,
    ):
        self._standalone_configuration = StandaloneConfiguration()
        self._sentinel_configuration: SentinelConfiguration | None = None
        self._cluster_configuration: ClusterConfiguration | None = None

        if isinstance(configuration, ClusterConfiguration):
            self._cluster_configuration = configuration
        elif isinstance(configuration, SentinelConfiguration):
            self._sentinel_configuration = configuration
        elif isinstance(configuration, StandaloneConfiguration):
            self._standalone_configuration = configuration
        elif configuration is not None:
            raise TypeError(f"Unsupported configuration type: {type(configuration).__name__}")

        self._client_configuration = (
            client_configuration if client_configuration is not None else MutableClientConfiguration()
        )
        self.share_native_connection = True
        self._client: BaseRedisClient | None = None
        self._connection: Any = None
        self._async_connection: Any = None

    @classmethod
    def from_env(cls) -> "RedisConnectionFactory":
        """Factory for the topology and client settings found in ``REDIS_*`` variables.

        A ``rediss://`` REDIS_URL enables SSL unless REDIS_SSL is set.
        """
        configuration = configuration_from_env()
        use_ssl = None
        if isinstance(configuration, StandaloneConfiguration) and configuration.ssl:
            if os.getenv("REDIS_SSL") is None:
                use_ssl = True
        return cls(configuration, MutableClientConfiguration(use_ssl=use_ssl))

    # topology

    @property
    def standalone_configuration(self) -> StandaloneConfiguration:
        """Never None; a default placeholder when another topology is active."""
        return self._standalone_configuration

    @property
    def sentinel_configuration(self) -> SentinelConfiguration | None:
        return self._sentinel_configuration

    @property
    def cluster_configuration(self) -> ClusterConfiguration | None:
        return self._cluster_configuration

    @property
    def is_sentinel_aware(self) -> bool:
        return self._sentinel_configuration is not None

    @property
    def is_cluster_aware(self) -> bool:
        return self._cluster_configuration is not None

    def _active_configuration(self) -> RedisConfiguration:
        if self._sentinel_configuration is not None:
            return self._sentinel_configuration
        if self._cluster_configuration is not None:
            return self._cluster_configuration
        return self._standalone_configuration

    @property
    def host_name(self) -> str:
        return self._standalone_configuration.host

    @host_name.setter
    def host_name(self, value: str):
        self._standalone_configuration.host = value

    @property
    def port(self) -> int:
        return self._standalone_configuration.port

    @port.setter
    def port(self, value: int):
        self._standalone_configuration.port = value

    @property
    def password(self) -> str | None:
        return self._active_configuration().password

    @password.setter
    def password(self, value: str | None):
        self._active_configuration().password = value

    @property
    def database(self) -> int:
        return self._active_configuration().database

    @database.setter
    def database(self, value: int):
        self._active_configuration().database = value

    # client configuration

    @property
    def client_configuration(self) -> ClientConfiguration | MutableClientConfiguration:
        return self._client_configuration

    def _mutable_client_configuration(self) -> MutableClientConfiguration:
        if not isinstance(self._client_configuration, MutableClientConfiguration):
            raise ImmutableConfigurationError(
                "Client configuration must be mutable to be changed through the factory; "
                "build a new ClientConfiguration instead"
            )
        return self._client_configuration

    @property
    def use_ssl(self) -> bool:
        return self._client_configuration.use_ssl

    @use_ssl.setter
    def use_ssl(self, value: bool):
        self._mutable_client_configuration().use_ssl = value

    @property
    def verify_peer(self) -> bool:
        return self._client_configuration.verify_peer

    @verify_peer.setter
    def verify_peer(self, value: bool):
        self._mutable_client_configuration().verify_peer = value

    @property
    def start_tls(self) -> bool:
        return self._client_configuration.start_tls

    @start_tls.setter
    def start_tls(self, value: bool):
        self._mutable_client_configuration().start_tls = value

    @property
    def timeout(self) -> int:
        """Command timeout in milliseconds."""
        return int(self._client_configuration.timeout / timedelta(milliseconds=1))

    @timeout.setter
    def timeout(self, millis: int):
        self._mutable_client_configuration().timeout = timedelta(milliseconds=millis)

    @property
    def shutdown_timeout(self) -> int:
        """Shutdown timeout in milliseconds."""
        return int(self._client_configuration.shutdown_timeout / timedelta(milliseconds=1))

    @shutdown_timeout.setter
    def shutdown_timeout(self, millis: int):
        self._mutable_client_configuration().shutdown_timeout = timedelta(milliseconds=millis)

    @property
    def client_resources(self) -> ClientResources | None:
        return self._client_configuration.client_resources

    @client_resources.setter
    def client_resources(self, value: ClientResources | None):
        self._mutable_client_configuration().client_resources = value

    # client lifecycle

    @property
    def client(self) -> BaseRedisClient | None:
        """The client built by ``initialize()``; None before that."""
        return self._client

    def _base_uri(self, node_host: str, node_port: int) -> RedisURI:
        return RedisURI(
            host=node_host,
            port=node_port,
            password=self.password,
            database=self.database,
            ssl=self.use_ssl,
            verify_peer=self.verify_peer,
            start_tls=self.start_tls,
            timeout=self._client_configuration.timeout,
        )

    def _create_client(self) -> BaseRedisClient:
        options = self._client_configuration.client_options
        resources = self._client_configuration.client_resources

        if self._cluster_configuration is not None:
            nodes = self._cluster_configuration.cluster_nodes
            if not nodes:
                raise ValueError("Cluster configuration has no nodes")
            seed = self._base_uri(nodes[0].host, nodes[0].port)
            uris = [seed.with_node(node) for node in nodes]
            return RedisClusterClient(uris, options, resources)

        if self._sentinel_configuration is not None:
            master = self._sentinel_configuration.master
            sentinels = self._sentinel_configuration.sentinels
            if not master:
                raise ValueError("Sentinel configuration has no master name")
            if not sentinels:
                raise ValueError("Sentinel configuration has no sentinel nodes")
            uri = replace(
                self._base_uri(sentinels[0].host, sentinels[0].port),
                sentinel_master_id=master,
                sentinels=tuple(sentinels),
            )
            return RedisClient(uri, options, resources)

        standalone = self._standalone_configuration
        return RedisClient(self._base_uri(standalone.host, standalone.port), options, resources)

    def initialize(self) -> None:
        """Build the client. Later calls keep the client that already exists."""
        if self._client is not None:
            return
        self._client = self._create_client()
        logger.debug("Initialized %r", self._client)

    def _require_client(self) -> BaseRedisClient:
        if self._client is None:
            raise RuntimeError("Connection factory is not initialized; call initialize() first.")
        return self._client

    def get_connection(self) -> Any:
        """Return a redis-py client, shared between calls unless share_native_connection is off."""
        client = self._require_client()
        if not self.share_native_connection:
            return client.connect()
        if self._connection is None:
            self._connection = client.connect()
        return self._connection

    def get_async_connection(self) -> Any:
        """Async counterpart of ``get_connection()``."""
        client = self._require_client()
        if not self.share_native_connection:
            return client.connect_async()
        if self._async_connection is None:
            self._async_connection = client.connect_async()
        return self._async_connection

    def destroy(self) -> None:
        """Close sync connections and release the client.

        Raises RuntimeError, keeping the client, while async connections are
        open; those can only be closed by ``adestroy()``.
        """
        if self._client is None:
            return
        if self._client.open_async_connections:
            raise RuntimeError(
                f"{self._client.open_async_connections} async connection(s) still open; "
                "use adestroy() instead of destroy()"
            )
        self._client.shutdown()
        logger.info("Destroyed connection factory for %r", self._client)
        self._reset()

    async def adestroy(self) -> None:
        """Close sync and async connections and release the client."""
        if self._client is None:
            return
        await self._client.shutdown_async(self._client_configuration.shutdown_timeout)
        logger.info("Destroyed connection factory for %r", self._client)
        self._reset()

    def _reset(self) -> None:
        self._client = None
        self._connection = None
        self._async_connection = None

    def __enter__(self) -> "RedisConnectionFactory":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.destroy()

    async def __aenter__(self) -> "RedisConnectionFactory":
        self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.adestroy()
