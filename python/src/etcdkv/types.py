"""Type definitions for etcdkv."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Literal, Mapping, Optional, TypedDict, Union

# API version segment appended to every base URL
API_VERSION = "v2"

HttpMethod = Literal["GET", "PUT", "POST", "DELETE"]

# Anything an option can carry onto the wire before encoding
OptionValue = Union[None, bool, int, float, str]

# TLS settings: credential file paths (ca, key, cert, pfx) plus passthrough knobs
SSLOptions = Dict[str, Any]


@dataclass(frozen=True)
class Config:
    """Client configuration."""

    # Service root, e.g. "http://127.0.0.1:2379" (API version is appended)
    url: str

    # Optional: TLS options. None means no client TLS context is built.
    ssl_options: Optional[SSLOptions] = None

    @classmethod
    def from_dict(cls, settings: Mapping[str, Any]) -> "Config":
        """Build a Config from a settings mapping.

        Accepts the wire-style shape ``{"url": ..., "ssloptions": {...}}``.
        The TLS options are considered present whenever the ``ssloptions``
        key is, even if its mapping is empty.
        """
        if "ssloptions" in settings:
            return cls(url=settings["url"], ssl_options=dict(settings["ssloptions"] or {}))
        return cls(url=settings["url"])


class ReadOptions(TypedDict, total=False):
    """Options accepted by ``EtcdClient.read``.

    Only the keys present in the mapping are forwarded, so ``False`` and ``0``
    reach the server while an omitted key does not.
    """

    key: str
    recursive: bool
    wait: bool
    wait_index: int
    sorted: bool
    blocking: bool


class WriteOptions(TypedDict, total=False):
    """Options accepted by ``EtcdClient.write`` and ``EtcdClient.append``."""

    key: str
    value: OptionValue
    ttl: OptionValue
    dir: bool
    prev_exists: bool
    prev_index: int
    prev_value: OptionValue
    method: str
    blocking: bool


class DeleteOptions(TypedDict, total=False):
    """Options accepted by ``EtcdClient.delete``."""

    key: str
    recursive: bool
    dir: bool
    prev_value: OptionValue
    prev_index: int
    blocking: bool


@dataclass(frozen=True)
class Response:
    """Response metadata, normalized across the async and blocking transports."""

    status: int
    reason: Optional[str]
    url: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def etcd_index(self) -> Optional[int]:
        """Value of the X-Etcd-Index header, if the server sent one."""
        for name, value in self.headers.items():
            if name.lower() == "x-etcd-index":
                return int(value)
        return None


# Result continuation: (error, response, body). Exactly one of error/response is set.
ResultCallback = Callable[[Optional[BaseException], Optional[Response], Optional[str]], None]


class EtcdError(Exception):
    """Base exception for etcdkv."""

    pass


class ConfigurationError(EtcdError):
    """Raised when the client configuration cannot be built (e.g. unreadable TLS files)."""

    pass
