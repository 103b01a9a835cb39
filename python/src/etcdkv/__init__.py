"""etcdkv - etcd v2 key-value client over HTTP."""

from etcdkv.client import EtcdClient
from etcdkv.result import handle_generator
from etcdkv.types import (
    API_VERSION,
    Config,
    ConfigurationError,
    DeleteOptions,
    EtcdError,
    ReadOptions,
    Response,
    ResultCallback,
    SSLOptions,
    WriteOptions,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "EtcdClient",
    "handle_generator",
    # Core types
    "API_VERSION",
    "Config",
    "Response",
    "ResultCallback",
    # Options types
    "ReadOptions",
    "WriteOptions",
    "DeleteOptions",
    "SSLOptions",
    # Exceptions
    "EtcdError",
    "ConfigurationError",
]
