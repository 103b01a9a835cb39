"""Default result continuation for interactive use.

When an operation is called without a callback, its outcome is printed
here. Programmatic callers should always pass their own callback.
"""

import json
import sys
from typing import Optional, TextIO

from etcdkv.types import Response, ResultCallback


def format_body(body: str) -> str:
    """Pretty-print a JSON body; return anything else unchanged."""
    try:
        return json.dumps(json.loads(body), indent=2, sort_keys=True)
    except ValueError:
        return body


def handle_generator(stream: Optional[TextIO] = None) -> ResultCallback:
    """Return a callback that prints (error, response, body) to ``stream``.

    ``stream`` defaults to sys.stdout, resolved when the callback runs.
    """

    def handle(
        error: Optional[BaseException], response: Optional[Response], body: Optional[str]
    ) -> None:
        out = stream if stream is not None else sys.stdout
        if error is not None:
            print(f"error: {error!r}", file=out)
            return
        if response is not None:
            print(f"{response.status} {response.reason or ''}".rstrip(), file=out)
        if body:
            print(format_body(body), file=out)

    return handle
