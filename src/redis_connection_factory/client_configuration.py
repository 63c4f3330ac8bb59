"""
Client configuration: connection-level options (SSL, timeouts, shared resources).

``ClientConfiguration`` is immutable once built. ``MutableClientConfiguration``
is what a connection factory uses when the caller does not supply one, so that
the factory's own setters have something to write to.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import redis
import redis.asyncio as async_redis

from .config import _str_to_bool, _str_to_int
from .resources import ClientResources
from .utils import DynamicImporter

DEFAULT_TIMEOUT = timedelta(seconds=60)
DEFAULT_SHUTDOWN_TIMEOUT = timedelta(milliseconds=100)


class ImmutableConfigurationError(RuntimeError):
    """Raised when trying to change a client configuration that was already built."""


def _check_timeout(name: str, value: timedelta) -> timedelta:
    if not isinstance(value, timedelta):
        raise ValueError(f"{name} must be a timedelta, got {type(value).__name__}")
    if value < timedelta(0):
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass(frozen=True)
class ClientOptions:
    """redis-py options that are not covered by the topology or SSL settings.

    ``redis_class`` and ``async_redis_class`` may be given as dotted import
    paths, e.g. ``"fakeredis.FakeRedis"``.
    """

    decode_responses: bool = False
    socket_connect_timeout: float | None = None
    socket_keepalive: bool | None = None
    client_name: str | None = None
    redis_class: type | str = redis.Redis
    async_redis_class: type | str = async_redis.Redis
    additional_connection_kwargs: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def create(cls) -> "ClientOptions":
        return cls()

    def resolve_redis_class(self) -> type:
        return DynamicImporter.resolve_class(self.redis_class)

    def resolve_async_redis_class(self) -> type:
        return DynamicImporter.resolve_class(self.async_redis_class)

    def connection_kwargs(self) -> dict[str, Any]:
        """Options as redis-py keyword arguments; unset options are left out."""
        kwargs: dict[str, Any] = {"decode_responses": self.decode_responses}
        if self.socket_connect_timeout is not None:
            kwargs["socket_connect_timeout"] = self.socket_connect_timeout
        if self.socket_keepalive is not None:
            kwargs["socket_keepalive"] = self.socket_keepalive
        if self.client_name is not None:
            kwargs["client_name"] = self.client_name
        kwargs.update(self.additional_connection_kwargs)
        return kwargs


@dataclass(frozen=True)
class ClientConfiguration:
    """Immutable client configuration. Use ``builder()`` or ``create()``."""

    use_ssl: bool = False
    verify_peer: bool = True
    start_tls: bool = False
    client_options: ClientOptions = field(default_factory=ClientOptions)
    client_resources: ClientResources | None = None
    timeout: timedelta = DEFAULT_TIMEOUT
    shutdown_timeout: timedelta = DEFAULT_SHUTDOWN_TIMEOUT

    def __post_init__(self):
        if self.client_options is None:
            raise ValueError("client_options must not be None")
        _check_timeout("timeout", self.timeout)
        _check_timeout("shutdown_timeout", self.shutdown_timeout)

    @classmethod
    def create(cls) -> "ClientConfiguration":
        """Configuration with all defaults: no SSL, 60s timeout, 100ms shutdown timeout."""
        return cls()

    @classmethod
    def builder(cls) -> "ClientConfigurationBuilder":
        return ClientConfigurationBuilder()


class ClientConfigurationBuilder:
    """Fluent builder for ``ClientConfiguration``.

    Example::

        ClientConfiguration.builder().use_ssl().disable_peer_verification().start_tls() \\
            .timeout(timedelta(minutes=5)).build()
    """

    def __init__(self):
        self._use_ssl = False
        self._verify_peer = True
        self._start_tls = False
        self._client_options = ClientOptions.create()
        self._client_resources: ClientResources | None = None
        self._timeout = DEFAULT_TIMEOUT
        self._shutdown_timeout = DEFAULT_SHUTDOWN_TIMEOUT

    def use_ssl(self, enabled: bool = True) -> "ClientConfigurationBuilder":
        self._use_ssl = enabled
        return self

    def verify_peer(self, enabled: bool) -> "ClientConfigurationBuilder":
        self._verify_peer = enabled
        return self

    def disable_peer_verification(self) -> "ClientConfigurationBuilder":
        return self.verify_peer(False)

    def start_tls(self, enabled: bool = True) -> "ClientConfigurationBuilder":
        self._start_tls = enabled
        return self

    def client_options(self, options: ClientOptions) -> "ClientConfigurationBuilder":
        if options is None:
            raise ValueError("client_options must not be None")
        self._client_options = options
        return self

    def client_resources(self, resources: ClientResources) -> "ClientConfigurationBuilder":
        if resources is None:
            raise ValueError("client_resources must not be None")
        self._client_resources = resources
        return self

    def timeout(self, timeout: timedelta) -> "ClientConfigurationBuilder":
        self._timeout = _check_timeout("timeout", timeout)
        return self

    def shutdown_timeout(self, timeout: timedelta) -> "ClientConfigurationBuilder":
        self._shutdown_timeout = _check_timeout("shutdown_timeout", timeout)
        return self

    def build(self) -> ClientConfiguration:
        return ClientConfiguration(
            use_ssl=self._use_ssl,
            verify_peer=self._verify_peer,
            start_tls=self._start_tls,
            client_options=self._client_options,
            client_resources=self._client_resources,
            timeout=self._timeout,
            shutdown_timeout=self._shutdown_timeout,
        )


class MutableClientConfiguration:
    """Client configuration whose fields may be changed after construction.

    Unset SSL flags and timeouts fall back to environment variables:
    REDIS_SSL, REDIS_VERIFY_PEER, REDIS_START_TLS, REDIS_TIMEOUT and
    REDIS_SHUTDOWN_TIMEOUT (both in milliseconds).
    """

    def __init__(
        self,
        use_ssl: bool | None = None,
        verify_peer: bool | None = None,
        start_tls: bool | None = None,
        client_options: ClientOptions | None = None,
        client_resources: ClientResources | None = None,
        timeout: timedelta | None = None,
        shutdown_timeout: timedelta | None = None,
    ):
        self._use_ssl = use_ssl
        self._verify_peer = verify_peer
        self._start_tls = start_tls
        self.client_options = client_options or ClientOptions.create()
        self.client_resources = client_resources
        self._timeout = None if timeout is None else _check_timeout("timeout", timeout)
        self._shutdown_timeout = (
            None if shutdown_timeout is None else _check_timeout("shutdown_timeout", shutdown_timeout)
        )

    @property
    def use_ssl(self) -> bool:
        if self._use_ssl is not None:
            return self._use_ssl
        return _str_to_bool(os.getenv("REDIS_SSL", "false"))

    @use_ssl.setter
    def use_ssl(self, value: bool):
        self._use_ssl = bool(value)

    @property
    def verify_peer(self) -> bool:
        if self._verify_peer is not None:
            return self._verify_peer
        return _str_to_bool(os.getenv("REDIS_VERIFY_PEER", "true"))

    @verify_peer.setter
    def verify_peer(self, value: bool):
        self._verify_peer = bool(value)

    @property
    def start_tls(self) -> bool:
        if self._start_tls is not None:
            return self._start_tls
        return _str_to_bool(os.getenv("REDIS_START_TLS", "false"))

    @start_tls.setter
    def start_tls(self, value: bool):
        self._start_tls = bool(value)

    @property
    def timeout(self) -> timedelta:
        if self._timeout is not None:
            return self._timeout
        millis = _str_to_int(os.getenv("REDIS_TIMEOUT"))
        if millis is None or millis < 0:
            return DEFAULT_TIMEOUT
        return timedelta(milliseconds=millis)

    @timeout.setter
    def timeout(self, value: timedelta):
        self._timeout = _check_timeout("timeout", value)

    @property
    def shutdown_timeout(self) -> timedelta:
        if self._shutdown_timeout is not None:
            return self._shutdown_timeout
        millis = _str_to_int(os.getenv("REDIS_SHUTDOWN_TIMEOUT"))
        if millis is None or millis < 0:
            return DEFAULT_SHUTDOWN_TIMEOUT
        return timedelta(milliseconds=millis)

    @shutdown_timeout.setter
    def shutdown_timeout(self, value: timedelta):
        self._shutdown_timeout = _check_timeout("shutdown_timeout", value)

    def freeze(self) -> ClientConfiguration:
        """Snapshot the current values into an immutable ``ClientConfiguration``."""
        return ClientConfiguration(
            use_ssl=self.use_ssl,
            verify_peer=self.verify_peer,
            start_tls=self.start_tls,
            client_options=self.client_options,
            client_resources=self.client_resources,
            timeout=self.timeout,
            shutdown_timeout=self.shutdown_timeout,
        )
