import os

import pytest

from redis_connection_factory.config import ClusterConfiguration
from redis_connection_factory.resources import (
    get_shared_client_resources,
    reset_shared_client_resources,
)


@pytest.fixture(autouse=True)
def clean_redis_env(monkeypatch):
    """Keep REDIS_* variables from the host out of the tests."""
    for name in list(os.environ):
        if name.startswith("REDIS_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def shared_client_resources():
    yield get_shared_client_resources()
    reset_shared_client_resources()


@pytest.fixture
def cluster_config():
    return ClusterConfiguration().cluster_node("127.0.0.1", 6379).cluster_node("127.0.0.1", 6380)


@pytest.fixture
def factory_tracker():
    """Collect factories and destroy them after the test."""
    factories = []
    yield factories.append
    for factory in factories:
        factory.destroy()
