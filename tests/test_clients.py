"""Tests for redis_connection_factory.clients module."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import fakeredis
import pytest
import redis
from redis.asyncio.retry import Retry as AsyncRetry
from redis.retry import Retry

from redis_connection_factory.client_configuration import ClientOptions
from redis_connection_factory.clients import RedisClient, RedisClusterClient
from redis_connection_factory.config import RedisNode
from redis_connection_factory.resources import ClientResources
from redis_connection_factory.uri import RedisURI


@pytest.fixture
def resources():
    return ClientResources(retries=2, health_check_interval=15)


class TestRedisClient:
    """Test cases for the standalone / sentinel client."""

    @patch("redis_connection_factory.clients.Sentinel")
    def test_construction_does_not_connect(self, mock_sentinel):
        """Test that creating a client opens nothing."""
        client = RedisClient(RedisURI("localhost", 6379))

        assert client.open_connections == 0
        mock_sentinel.assert_not_called()

    def test_connect_standalone_passes_uri_settings(self, resources):
        """Test that URI, resource and option settings reach the redis class."""
        redis_class = MagicMock()
        uri = RedisURI(
            "cache.local",
            6390,
            password="pw",
            database=3,
            ssl=True,
            verify_peer=False,
            timeout=timedelta(seconds=5),
        )
        client = RedisClient(uri, ClientOptions(redis_class=redis_class), resources)

        connection = client.connect()

        assert connection is redis_class.return_value
        kwargs = redis_class.call_args.kwargs
        assert kwargs["host"] == "cache.local"
        assert kwargs["port"] == 6390
        assert kwargs["password"] == "pw"
        assert kwargs["db"] == 3
        assert kwargs["ssl"] is True
        assert kwargs["ssl_cert_reqs"] == "none"
        assert kwargs["socket_timeout"] == 5.0
        assert kwargs["health_check_interval"] == 15
        assert isinstance(kwargs["retry"], Retry)
        assert kwargs["decode_responses"] is False

    def test_connect_uses_default_redis_class(self):
        """Test that redis.Redis is used when no class is configured."""
        client = RedisClient(RedisURI("localhost", 6379))

        connection = client.connect()

        assert isinstance(connection, redis.Redis)
        connection.close()

    @patch("redis_connection_factory.clients.Sentinel")
    def test_connect_sentinel_uses_master_for(self, mock_sentinel, resources):
        """Test that sentinel URIs go through Sentinel.master_for."""
        uri = RedisURI(
            "s1",
            26379,
            password="pw",
            database=1,
            sentinel_master_id="mymaster",
            sentinels=(RedisNode("s1", 26379), RedisNode("s2", 26380)),
        )
        client = RedisClient(uri, client_resources=resources)

        connection = client.connect()

        args, kwargs = mock_sentinel.call_args
        assert args[0] == [("s1", 26379), ("s2", 26380)]
        assert kwargs["sentinel_kwargs"] == {"socket_timeout": 60.0}
        assert kwargs["password"] == "pw"
        assert kwargs["db"] == 1
        mock_sentinel.return_value.master_for.assert_called_once_with(
            "mymaster", redis_class=redis.Redis
        )
        assert connection is mock_sentinel.return_value.master_for.return_value

    def test_connect_async_uses_async_retry(self, resources):
        """Test that async connections get the asyncio Retry."""
        redis_class = MagicMock()
        client = RedisClient(
            RedisURI("localhost", 6379),
            ClientOptions(async_redis_class=redis_class),
            resources,
        )

        client.connect_async()

        assert isinstance(redis_class.call_args.kwargs["retry"], AsyncRetry)

    def test_start_tls_logs_warning(self, caplog):
        """Test that STARTTLS is reported as unsupported."""
        client = RedisClient(
            RedisURI("localhost", 6379, ssl=True, start_tls=True),
            ClientOptions(redis_class=MagicMock()),
        )

        client.connect()

        assert "STARTTLS is not supported" in caplog.text

    def test_shutdown_closes_connections(self):
        """Test that shutdown() closes every sync connection."""
        client = RedisClient(RedisURI("localhost", 6379), ClientOptions(redis_class=MagicMock))
        first = client.connect()
        second = client.connect()

        client.shutdown()

        first.close.assert_called_once()
        second.close.assert_called_once()
        assert client.open_connections == 0

    @pytest.mark.asyncio
    async def test_shutdown_async_closes_async_connections(self):
        """Test that shutdown_async() awaits aclose() on async connections."""
        connection = MagicMock()
        connection.aclose = AsyncMock()
        client = RedisClient(
            RedisURI("localhost", 6379),
            ClientOptions(async_redis_class=MagicMock(return_value=connection)),
        )
        client.connect_async()

        await client.shutdown_async(timedelta(seconds=1))

        connection.aclose.assert_awaited_once()
        assert client.open_connections == 0

    def test_open_async_connections_counts_only_async(self):
        """Test that open_async_connections ignores sync connections."""
        client = RedisClient(
            RedisURI("localhost", 6379),
            ClientOptions(redis_class=MagicMock(), async_redis_class=MagicMock()),
        )
        client.connect()
        client.connect_async()

        assert client.open_connections == 2
        assert client.open_async_connections == 1

    @pytest.mark.asyncio
    async def test_shutdown_async_times_out(self, caplog):
        """Test that a slow aclose() is abandoned after the timeout."""
        async def slow_close():
            await asyncio.sleep(1)

        connection = MagicMock()
        connection.aclose = slow_close
        client = RedisClient(
            RedisURI("localhost", 6379),
            ClientOptions(async_redis_class=MagicMock(return_value=connection)),
        )
        client.connect_async()

        await client.shutdown_async(timedelta(milliseconds=10))

        assert "Timed out" in caplog.text
        assert client.open_connections == 0

    def test_round_trip_with_fakeredis(self):
        """Test a set/get round trip against fakeredis."""
        client = RedisClient(
            RedisURI("fake-client", 6379),
            ClientOptions(decode_responses=True, redis_class=fakeredis.FakeRedis),
        )

        connection = client.connect()
        connection.set("k", "v")

        assert connection.get("k") == "v"
        client.shutdown()


class TestRedisClusterClient:
    """Test cases for the cluster client."""

    def test_requires_initial_uris(self):
        """Test that a cluster client needs at least one URI."""
        with pytest.raises(ValueError):
            RedisClusterClient([])

    @patch("redis_connection_factory.clients.RedisCluster")
    def test_connect_seeds_every_node_without_database(self, mock_cluster, resources):
        """Test that every URI seeds the cluster and db is never passed."""
        uris = [
            RedisURI("127.0.0.1", 6379, password="pw", database=2, ssl=True),
            RedisURI("127.0.0.1", 6380, password="pw", database=2, ssl=True),
        ]
        client = RedisClusterClient(uris, client_resources=resources)

        connection = client.connect()

        kwargs = mock_cluster.call_args.kwargs
        assert [(node.host, node.port) for node in kwargs["startup_nodes"]] == [
            ("127.0.0.1", 6379),
            ("127.0.0.1", 6380),
        ]
        assert "db" not in kwargs
        assert kwargs["password"] == "pw"
        assert kwargs["ssl"] is True
        assert kwargs["ssl_cert_reqs"] == "required"
        assert connection is mock_cluster.return_value

    @patch("redis_connection_factory.clients.AsyncRedisCluster")
    def test_connect_async(self, mock_cluster):
        """Test that the async cluster client is seeded and tracked."""
        client = RedisClusterClient([RedisURI("127.0.0.1", 7000)])

        client.connect_async()

        kwargs = mock_cluster.call_args.kwargs
        assert [(node.host, node.port) for node in kwargs["startup_nodes"]] == [("127.0.0.1", 7000)]
        assert isinstance(kwargs["retry"], AsyncRetry)
        assert client.open_connections == 1

    @patch("redis_connection_factory.clients.RedisCluster")
    def test_shutdown_closes_cluster_connection(self, mock_cluster):
        """Test that shutdown() closes the cluster connection."""
        client = RedisClusterClient([RedisURI("127.0.0.1", 7000)])
        client.connect()

        client.shutdown()

        mock_cluster.return_value.close.assert_called_once()
