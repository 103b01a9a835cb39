"""Internal type definitions not exposed in public API."""

import re
import ssl
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple, TypedDict, Union
from urllib.parse import urlencode, urlsplit

if TYPE_CHECKING:
    import aiohttp
    import requests

from etcdkv.types import HttpMethod, OptionValue, Response, SSLOptions

_SLASH_RUN = re.compile(r"/{2,}")


@dataclass(frozen=True)
class ClientConfig:
    """Resolved client configuration, immutable after construction."""

    base_url: str
    # Options exactly as supplied (file paths), forwarded to blocking requests
    ssl_options: Optional[SSLOptions]
    # Built once, shared by every async request
    ssl_context: Optional[ssl.SSLContext]


@dataclass(frozen=True)
class RequestDescriptor:
    """Normalized request built per call before dispatch."""

    method: HttpMethod
    url: str
    qs: Dict[str, str]
    form: Optional[Dict[str, str]] = None
    blocking: bool = False


@dataclass(frozen=True)
class AsyncRequest:
    """Dispatch through the non-blocking transport."""

    descriptor: RequestDescriptor


@dataclass(frozen=True)
class BlockingRequest:
    """Dispatch through the blocking transport on the calling thread."""

    descriptor: RequestDescriptor


DispatchRequest = Union[AsyncRequest, BlockingRequest]


class BlockingRequestParams(TypedDict):
    """URL decomposed for a synchronous request, query folded into the path."""

    protocol: str
    method: HttpMethod
    host: str
    port: Optional[int]
    path: str


# Factory functions


def select_strategy(descriptor: RequestDescriptor) -> DispatchRequest:
    """Pick exactly one transport strategy for a descriptor."""
    if descriptor.blocking:
        return BlockingRequest(descriptor)
    return AsyncRequest(descriptor)


def encode_value(value: OptionValue) -> str:
    """Encode an option value the way the server expects it on the wire.

    Booleans become 'true'/'false', numbers their decimal form, None the
    empty string. Strings pass through.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def copy_present(
    options: Mapping[str, object],
    target: Dict[str, str],
    fields: Tuple[Tuple[str, str], ...],
) -> None:
    """Copy each option present in ``options`` into ``target`` under its wire name.

    Presence decides, not truthiness: ``False`` and ``0`` are copied.
    """
    for option_name, wire_name in fields:
        if option_name in options:
            target[wire_name] = encode_value(options[option_name])  # type: ignore[arg-type]


def join_url(base_url: str, *segments: Optional[str]) -> str:
    """Join path segments under ``base_url``.

    Slash runs produced where segments meet collapse to one, so
    ``join_url(b, "keys", "/x")`` gives ``b/keys/x``. The base URL is
    left untouched.
    """
    route = "/".join("" if segment is None else str(segment) for segment in segments)
    return f"{base_url}/{_SLASH_RUN.sub('/', route)}"


def blocking_request_params(descriptor: RequestDescriptor) -> BlockingRequestParams:
    """Decompose a descriptor's URL into protocol/host/port/path.

    Query parameters are urlencoded and appended to the path.
    """
    parts = urlsplit(descriptor.url)
    path = parts.path or "/"
    if parts.query:
        path += "?" + parts.query
    qs = urlencode(descriptor.qs)
    if qs:
        path += ("&" if "?" in path else "?") + qs
    return {
        "protocol": parts.scheme,
        "method": descriptor.method,
        "host": parts.hostname or "",
        "port": parts.port,
        "path": path,
    }


def blocking_request_url(params: BlockingRequestParams) -> str:
    """Recompose a URL from decomposed blocking request parameters."""
    host = params["host"]
    if ":" in host:
        host = f"[{host}]"
    if params["port"] is not None:
        host = f"{host}:{params['port']}"
    return f"{params['protocol']}://{host}{params['path']}"


class ResponseOutputs:
    """Helper functions for building Response from transport responses."""

    @staticmethod
    def from_aiohttp(response: "aiohttp.ClientResponse") -> Response:
        """Convert an aiohttp response to our Response type."""
        return Response(
            status=response.status,
            reason=response.reason,
            url=str(response.url),
            headers=dict(response.headers),
        )

    @staticmethod
    def from_requests(response: "requests.Response") -> Response:
        """Convert a requests response to our Response type."""
        return Response(
            status=response.status_code,
            reason=response.reason,
            url=response.url,
            headers=dict(response.headers),
        )
