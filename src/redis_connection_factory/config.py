"""
Topology configurations: where the Redis server(s) live and how to authenticate.

Every value can be set programmatically (constructor argument or property
setter) and otherwise falls back to a ``REDIS_*`` environment variable, then
to a built-in default.
"""

import os
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from redis.connection import SSLConnection, parse_url

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379


def _str_to_bool(value: str | bool) -> bool:
    """Convert string environment variable to boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value.lower() in ("true", "1", "yes", "on"):
            return True
    return False


def _str_to_int(value: str | None, default: int | None = None) -> None | int:
    """Convert string environment variable to integer."""
    try:
        return int(value)  # type: ignore[arg-type]
    except (ValueError, TypeError):
        return default


@dataclass(frozen=True)
class RedisNode:
    """A single ``host:port`` endpoint."""

    host: str
    port: int

    def __post_init__(self):
        if not self.host:
            raise ValueError("Redis node host must not be empty")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"Redis node port must be an integer, got {self.port!r}")
        if not 0 < self.port < 65536:
            raise ValueError(f"Redis node port out of range: {self.port}")

    @classmethod
    def parse(cls, value: str) -> "RedisNode":
        """Parse ``"host:port"``."""
        host, sep, port = value.strip().rpartition(":")
        if not sep:
            raise ValueError(f"Expected 'host:port', got {value!r}")
        parsed_port = _str_to_int(port)
        if parsed_port is None:
            raise ValueError(f"Invalid port in {value!r}")
        return cls(host, parsed_port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def _to_node(value: "str | RedisNode") -> RedisNode:
    if isinstance(value, RedisNode):
        return value
    return RedisNode.parse(value)


def _parse_nodes(values: Iterable["str | RedisNode"]) -> list[RedisNode]:
    """Parse nodes, dropping duplicates while keeping insertion order."""
    nodes: list[RedisNode] = []
    for value in values:
        node = _to_node(value)
        if node not in nodes:
            nodes.append(node)
    return nodes


def _nodes_from_env(name: str) -> list[RedisNode]:
    raw = os.getenv(name, "")
    return _parse_nodes(part for part in raw.split(",") if part.strip())


class RedisConfiguration:
    """Settings shared by every topology: password and database index."""

    def __init__(self, password: str | None = None, database: int | None = None):
        self._password = password
        self._database: int | None = None
        if database is not None:
            self.database = database

    @property
    def password(self) -> str | None:
        """Redis password. Default: None
        Environment variable: REDIS_PASSWORD
        """
        if self._password is not None:
            return self._password
        return os.getenv("REDIS_PASSWORD")

    @password.setter
    def password(self, value: str | None):
        self._password = value

    @property
    def database(self) -> int:
        """Redis database index. Default: 0
        Environment variable: REDIS_DB
        """
        if self._database is not None:
            return self._database
        database = _str_to_int(os.getenv("REDIS_DB", "0"))
        if database is None or database < 0:
            return 0
        return database

    @database.setter
    def database(self, value: int):
        value = int(value)
        if value < 0:
            raise ValueError(f"Invalid database index: {value}")
        self._database = value

    def reset(self) -> None:
        """Reset all configuration values to defaults (environment variables)."""
        self._password = None
        self._database = None

    def to_dict(self) -> dict[str, Any]:
        """Return current configuration as dictionary."""
        return {"password": self.password, "database": self.database}


class StandaloneConfiguration(RedisConfiguration):
    """A single Redis server."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        password: str | None = None,
        database: int | None = None,
    ):
        super().__init__(password=password, database=database)
        self._host = host
        self._port = port
        # set by from_url() for rediss:// URLs
        self.ssl = False

    @classmethod
    def from_url(cls, url: str) -> "StandaloneConfiguration":
        """Build a configuration from ``redis[s]://[:password@]host[:port][/db]``.

        A ``rediss://`` URL sets ``ssl``; the client configuration decides
        whether TLS is actually used.
        """
        parsed = parse_url(url)
        configuration = cls(
            host=parsed.get("host"),
            port=parsed.get("port"),
            password=parsed.get("password"),
            database=parsed.get("db"),
        )
        connection_class = parsed.get("connection_class")
        configuration.ssl = connection_class is not None and issubclass(connection_class, SSLConnection)
        return configuration

    @property
    def host(self) -> str:
        """Redis host. Default: localhost
        Environment variable: REDIS_HOST
        """
        if self._host is not None:
            return self._host
        return os.getenv("REDIS_HOST", DEFAULT_HOST)

    @host.setter
    def host(self, value: str):
        self._host = value

    @property
    def port(self) -> int:
        """Redis port. Default: 6379
        Environment variable: REDIS_PORT
        """
        if self._port is not None:
            return self._port
        return _str_to_int(os.getenv("REDIS_PORT", str(DEFAULT_PORT))) or DEFAULT_PORT

    @port.setter
    def port(self, value: int):
        self._port = int(value)

    @property
    def node(self) -> RedisNode:
        return RedisNode(self.host, self.port)

    def reset(self) -> None:
        super().reset()
        self._host = None
        self._port = None
        self.ssl = False

    def to_dict(self) -> dict[str, Any]:
        return {"host": self.host, "port": self.port, **super().to_dict()}

    def __repr__(self) -> str:
        return f"StandaloneConfiguration(host={self.host!r}, port={self.port}, database={self.database})"


class SentinelConfiguration(RedisConfiguration):
    """A master monitored by one or more Redis Sentinels."""

    def __init__(
        self,
        master: str | None = None,
        sentinels: Iterable["str | RedisNode"] = (),
        password: str | None = None,
        database: int | None = None,
    ):
        super().__init__(password=password, database=database)
        self._master = master
        sentinels = list(sentinels)
        self._sentinels: list[RedisNode] | None = _parse_nodes(sentinels) if sentinels else None

    @property
    def master(self) -> str | None:
        """Name of the monitored master.
        Environment variable: REDIS_SENTINEL_MASTER
        """
        if self._master is not None:
            return self._master
        return os.getenv("REDIS_SENTINEL_MASTER")

    @master.setter
    def master(self, value: str | None):
        self._master = value

    @property
    def sentinels(self) -> list[RedisNode]:
        """Sentinel endpoints, in insertion order.

        Environment variable: REDIS_SENTINEL_NODES (comma separated host:port)
        """
        if self._sentinels is not None:
            return list(self._sentinels)
        return _nodes_from_env("REDIS_SENTINEL_NODES")

    def sentinel(self, host: "str | RedisNode", port: int | None = None) -> "SentinelConfiguration":
        """Add a sentinel endpoint."""
        node = host if isinstance(host, RedisNode) else RedisNode(host, port)  # type: ignore[arg-type]
        if self._sentinels is None:
            self._sentinels = []
        if node not in self._sentinels:
            self._sentinels.append(node)
        return self

    def reset(self) -> None:
        super().reset()
        self._master = None
        self._sentinels = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "master": self.master,
            "sentinels": [str(node) for node in self.sentinels],
            **super().to_dict(),
        }

    def __repr__(self) -> str:
        sentinels = ", ".join(str(node) for node in self.sentinels)
        return f"SentinelConfiguration(master={self.master!r}, sentinels=[{sentinels}])"


class ClusterConfiguration(RedisConfiguration):
    """A Redis Cluster, seeded with an ordered list of known nodes."""

    def __init__(
        self,
        nodes: Iterable["str | RedisNode"] = (),
        password: str | None = None,
        database: int | None = None,
    ):
        super().__init__(password=password, database=database)
        nodes = list(nodes)
        self._nodes: list[RedisNode] | None = _parse_nodes(nodes) if nodes else None

    @property
    def cluster_nodes(self) -> list[RedisNode]:
        """Seed nodes, in insertion order.

        Environment variable: REDIS_CLUSTER_NODES (comma separated host:port)
        """
        if self._nodes is not None:
            return list(self._nodes)
        return _nodes_from_env("REDIS_CLUSTER_NODES")

    def cluster_node(self, host: "str | RedisNode", port: int | None = None) -> "ClusterConfiguration":
        """Add a seed node."""
        node = host if isinstance(host, RedisNode) else RedisNode(host, port)  # type: ignore[arg-type]
        if self._nodes is None:
            self._nodes = []
        if node not in self._nodes:
            self._nodes.append(node)
        return self

    def reset(self) -> None:
        super().reset()
        self._nodes = None

    def to_dict(self) -> dict[str, Any]:
        return {"cluster_nodes": [str(node) for node in self.cluster_nodes], **super().to_dict()}

    def __repr__(self) -> str:
        nodes = ", ".join(str(node) for node in self.cluster_nodes)
        return f"ClusterConfiguration(nodes=[{nodes}])"


TopologyConfiguration = StandaloneConfiguration | SentinelConfiguration | ClusterConfiguration


def configuration_from_env() -> TopologyConfiguration:
    """Pick a topology from the environment.

    REDIS_CLUSTER_NODES wins over REDIS_SENTINEL_MASTER, which wins over
    REDIS_URL. Without any of them a plain standalone configuration is used.
    """
    if os.getenv("REDIS_CLUSTER_NODES"):
        return ClusterConfiguration()
    if os.getenv("REDIS_SENTINEL_MASTER"):
        return SentinelConfiguration()
    url = os.getenv("REDIS_URL")
    if url:
        return StandaloneConfiguration.from_url(url)
    return StandaloneConfiguration()
