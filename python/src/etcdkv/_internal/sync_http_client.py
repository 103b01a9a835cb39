"""Blocking HTTP transport (requests backend).

This client is not part of the public API and should only be used internally.
"""

import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from etcdkv._internal.types import (
    RequestDescriptor,
    ResponseOutputs,
    blocking_request_params,
    blocking_request_url,
)
from etcdkv.types import Response

logger = logging.getLogger(__name__)

Outcome = Tuple[Optional[BaseException], Optional[Response], Optional[str]]

# TLS options with no requests keyword argument
UNSUPPORTED_BLOCKING_FIELDS = ("pfx", "passphrase", "ciphers")


def tls_request_params(ssl_options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Map raw TLS options (file paths) onto requests keyword arguments.

    requests has no equivalent for pfx, passphrase or ciphers; those are
    dropped with a warning.
    """
    params: Dict[str, Any] = {}
    if ssl_options is None:
        return params

    if ssl_options.get("ca") is not None:
        params["verify"] = os.fspath(ssl_options["ca"])
    if ssl_options.get("reject_unauthorized") is False:
        params["verify"] = False

    cert = ssl_options.get("cert")
    if cert is not None:
        key = ssl_options.get("key")
        params["cert"] = (os.fspath(cert), os.fspath(key)) if key is not None else os.fspath(cert)

    for name in UNSUPPORTED_BLOCKING_FIELDS:
        if ssl_options.get(name) is not None:
            logger.warning(f"TLS option {name!r} is not supported for blocking requests; ignored")
    return params


class BlockingHttpTransport:
    """Synchronous transport for long-poll requests.

    Runs one request-response cycle on the calling thread. Transport
    failures are logged and returned as the error element of the outcome
    rather than raised.
    """

    def __init__(self, ssl_options: Optional[Mapping[str, Any]]) -> None:
        self._session = requests.Session()
        self._tls_params = tls_request_params(ssl_options)

    def perform(self, descriptor: RequestDescriptor) -> Outcome:
        """Issue the request and wait for the full response."""
        url = descriptor.url
        try:
            params = blocking_request_params(descriptor)
            url = blocking_request_url(params)
            response = self._session.request(
                descriptor.method,
                url,
                data=descriptor.form,
                **self._tls_params,
            )
        except (OSError, ValueError) as e:
            # requests.RequestException derives from OSError; ValueError is a malformed URL
            logger.warning(f"Blocking {descriptor.method} {url} failed: {e}")
            return e, None, None

        return None, ResponseOutputs.from_requests(response), response.text

    def close(self) -> None:
        self._session.close()
