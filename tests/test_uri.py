"""Tests for redis_connection_factory.uri module."""

from datetime import timedelta

from redis_connection_factory.config import RedisNode
from redis_connection_factory.uri import RedisURI


class TestRedisURI:
    def test_timeout_is_converted_to_seconds(self):
        """Test that the timeout is exposed in seconds."""
        uri = RedisURI("localhost", 6379, timeout=timedelta(milliseconds=1500))
        assert uri.socket_timeout == 1.5

    def test_plain_connection_kwargs(self):
        """Test kwargs for a plain URI."""
        uri = RedisURI("localhost", 6379, database=2)

        assert uri.connection_kwargs() == {"socket_timeout": 60.0, "db": 2}

    def test_connection_kwargs_with_password_and_ssl(self):
        """Test kwargs with password and SSL."""
        uri = RedisURI("localhost", 6379, password="pw", ssl=True)

        assert uri.connection_kwargs() == {
            "socket_timeout": 60.0,
            "db": 0,
            "password": "pw",
            "ssl": True,
            "ssl_cert_reqs": "required",
        }

    def test_disabled_peer_verification(self):
        """Test that disabled peer verification maps to ssl_cert_reqs none."""
        uri = RedisURI("localhost", 6379, ssl=True, verify_peer=False)
        assert uri.connection_kwargs()["ssl_cert_reqs"] == "none"

    def test_verify_peer_is_ignored_without_ssl(self):
        """Test that verify_peer is ignored without SSL."""
        uri = RedisURI("localhost", 6379, verify_peer=False)
        assert "ssl_cert_reqs" not in uri.connection_kwargs()

    def test_database_can_be_left_out(self):
        """Test that the database can be left out."""
        uri = RedisURI("localhost", 6379, database=4)
        assert "db" not in uri.connection_kwargs(include_database=False)

    def test_with_node_keeps_everything_else(self):
        """Test that with_node() only changes host and port."""
        uri = RedisURI("a", 1, password="pw", ssl=True)

        moved = uri.with_node(RedisNode("b", 2))

        assert (moved.host, moved.port) == ("b", 2)
        assert moved.password == "pw"
        assert moved.ssl is True

    def test_repr_and_str_hide_password(self):
        """Test that the password stays out of repr() and str()."""
        uri = RedisURI("localhost", 6379, password="hunter2")

        assert "hunter2" not in repr(uri)
        assert "hunter2" not in str(uri)

    def test_str(self):
        """Test the URL form of plain and SSL URIs."""
        assert str(RedisURI("h", 1, database=2)) == "redis://h:1/2"
        assert str(RedisURI("h", 1, ssl=True)) == "rediss://h:1/0"

    def test_sentinel_uri(self):
        """Test the sentinel form of a URI."""
        uri = RedisURI(
            "s1",
            26379,
            sentinel_master_id="mymaster",
            sentinels=(RedisNode("s1", 26379), RedisNode("s2", 26380)),
        )

        assert uri.is_sentinel is True
        assert str(uri) == "redis-sentinel://s1:26379,s2:26380/0#mymaster"
