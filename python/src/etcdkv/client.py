"""etcdkv client implementation."""

import concurrent.futures
import logging
from typing import Any, Optional, Tuple

from etcdkv._internal.async_http_client import AsyncHttpTransport
from etcdkv._internal.descriptors import (
    build_append,
    build_delete,
    build_get,
    build_read,
    build_write,
)
from etcdkv._internal.sync_http_client import BlockingHttpTransport
from etcdkv._internal.tls import build_ssl_context, load_ssl_material
from etcdkv._internal.types import (
    BlockingRequest,
    ClientConfig,
    RequestDescriptor,
    join_url,
    select_strategy,
)
from etcdkv.result import handle_generator
from etcdkv.types import (
    API_VERSION,
    Config,
    DeleteOptions,
    ReadOptions,
    Response,
    ResultCallback,
    WriteOptions,
)

logger = logging.getLogger(__name__)


def configure(config: Config) -> ClientConfig:
    """Resolve a Config into the immutable client configuration.

    TLS credential files are read here, so a missing file fails before any
    request is made.

    Raises:
        ConfigurationError: If TLS material cannot be read or loaded
    """
    base_url = f"{config.url}/{API_VERSION}"
    if config.ssl_options is None:
        return ClientConfig(base_url=base_url, ssl_options=None, ssl_context=None)

    material = load_ssl_material(config.ssl_options)
    return ClientConfig(
        base_url=base_url,
        ssl_options=dict(config.ssl_options),
        ssl_context=build_ssl_context(material),
    )


class EtcdClient:
    """Main client interface - etcd v2 key operations over HTTP.

    Every key operation takes an options mapping and an optional callback
    receiving (error, response, body). Requests run on a background event
    loop unless ``blocking`` is set, in which case the call waits on the
    current thread. Key operations return the client for chaining.

    Usage:
        with EtcdClient(Config(url="http://127.0.0.1:2379")) as etcd:
            etcd.write({"key": "/config/a", "value": "1"}, on_result)
            etcd.read({"key": "/config", "wait": True, "blocking": True}, on_change)
    """

    # Factory for the callback used when none is supplied
    generator = staticmethod(handle_generator)

    def __init__(self, config: Config) -> None:
        """Initialize client with configuration."""
        self.config = configure(config)
        self._async = AsyncHttpTransport(self.config.ssl_context)
        self._blocking = BlockingHttpTransport(self.config.ssl_options)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def url(self, *segments: Optional[str]) -> str:
        """Endpoint URL for the given path segments."""
        return join_url(self.config.base_url, *segments)

    # ===== Key Operations =====

    def read(
        self, options: Optional[ReadOptions] = None, callback: Optional[ResultCallback] = None
    ) -> "EtcdClient":
        """Read a key or directory.

        Options: key (default "/"), recursive, wait, wait_index, sorted, blocking.
        Set wait (and usually blocking) to long-poll for the next change.
        """
        return self._call(build_read(self.config.base_url, options or {}), callback)

    def get(self, key: str, callback: Optional[ResultCallback] = None) -> "EtcdClient":
        """Read a single key with no other options."""
        return self.read({"key": key}, callback)

    def write(self, options: WriteOptions, callback: Optional[ResultCallback] = None) -> "EtcdClient":
        """Set a key's value.

        Options: key (default "/"), value, ttl, dir, prev_exists, prev_index,
        prev_value, method (default PUT), blocking. The compare-and-swap
        conditions prev_* are only sent when present.
        """
        return self._call(build_write(self.config.base_url, options), callback)

    def append(self, options: WriteOptions, callback: Optional[ResultCallback] = None) -> "EtcdClient":
        """Create an in-order key under a directory (write with POST)."""
        return self._call(build_append(self.config.base_url, options), callback)

    def delete(
        self, options: DeleteOptions, callback: Optional[ResultCallback] = None
    ) -> "EtcdClient":
        """Delete a key or directory.

        Options: key, recursive, dir, prev_value, prev_index, blocking.
        """
        return self._call(build_delete(self.config.base_url, options), callback)

    # ===== Cluster Information =====

    def machines(
        self, callback: Optional[ResultCallback] = None
    ) -> "concurrent.futures.Future[Tuple[Response, str]]":
        """List cluster machines. Returns the in-flight request handle."""
        return self._async.submit(
            build_get(self.config.base_url, "machines"), callback or self.generator()
        )

    def leader(
        self, callback: Optional[ResultCallback] = None
    ) -> "concurrent.futures.Future[Tuple[Response, str]]":
        """Get the current leader. Returns the in-flight request handle."""
        return self._async.submit(
            build_get(self.config.base_url, "leader"), callback or self.generator()
        )

    # ===== Lifecycle =====

    def close(self) -> None:
        """Close client and cleanup resources."""
        self._async.close()
        self._blocking.close()

    def __enter__(self) -> "EtcdClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()

    # ===== Private Helper Methods =====

    def _call(
        self, descriptor: RequestDescriptor, callback: Optional[ResultCallback]
    ) -> "EtcdClient":
        """Dispatch a descriptor through exactly one transport."""
        cb = callback if callback is not None else self.generator()
        request = select_strategy(descriptor)

        if isinstance(request, BlockingRequest):
            logger.debug(f"Blocking {descriptor.method} {descriptor.url} qs={descriptor.qs}")
            error, response, body = self._blocking.perform(request.descriptor)
            cb(error, response, body)
        else:
            logger.debug(f"Async {descriptor.method} {descriptor.url} qs={descriptor.qs}")
            self._async.submit(request.descriptor, cb)
        return self
