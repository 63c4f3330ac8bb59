from .client_configuration import (
    ClientConfiguration,
    ClientConfigurationBuilder,
    ClientOptions,
    ImmutableConfigurationError,
    MutableClientConfiguration,
)
from .clients import BaseRedisClient, RedisClient, RedisClusterClient
from .config import (
    ClusterConfiguration,
    RedisConfiguration,
    RedisNode,
    SentinelConfiguration,
    StandaloneConfiguration,
    TopologyConfiguration,
    configuration_from_env,
)
from .factories import RedisConnectionFactory
from .resources import ClientResources, get_shared_client_resources, reset_shared_client_resources
from .uri import RedisURI

__all__ = [
    "RedisConnectionFactory",
    "RedisConfiguration",
    "StandaloneConfiguration",
    "SentinelConfiguration",
    "ClusterConfiguration",
    "TopologyConfiguration",
    "RedisNode",
    "configuration_from_env",
    "ClientConfiguration",
    "ClientConfigurationBuilder",
    "MutableClientConfiguration",
    "ClientOptions",
    "ImmutableConfigurationError",
    "ClientResources",
    "get_shared_client_resources",
    "reset_shared_client_resources",
    "RedisURI",
    "BaseRedisClient",
    "RedisClient",
    "RedisClusterClient",
]
