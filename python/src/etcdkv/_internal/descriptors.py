"""Operation builders: turn caller options into request descriptors.

These functions are not part of the public API and should only be used internally.
"""

from typing import Dict, Mapping, Tuple

from etcdkv._internal.types import RequestDescriptor, copy_present, encode_value, join_url

# (option name, wire name) pairs, forwarded only when the option is present
READ_QUERY_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("recursive", "recursive"),
    ("wait", "wait"),
    ("wait_index", "waitIndex"),
    ("sorted", "sorted"),
)

WRITE_QUERY_FIELDS: Tuple[Tuple[str, str], ...] = (("dir", "dir"),)

WRITE_FORM_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("ttl", "ttl"),
    ("prev_exists", "prevExists"),
    ("prev_index", "prevIndex"),
    ("prev_value", "prevValue"),
)

DELETE_QUERY_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("recursive", "recursive"),
    ("dir", "dir"),
    ("prev_value", "prevValue"),
    ("prev_index", "prevIndex"),
)


def _blocking(options: Mapping[str, object]) -> bool:
    return bool(options.get("blocking", False))


def _keys_url(base_url: str, key: object) -> str:
    return join_url(base_url, "keys", None if key is None else str(key))


def build_read(base_url: str, options: Mapping[str, object]) -> RequestDescriptor:
    """GET keys/{key} with recursive, wait, waitIndex and sorted as query fields."""
    qs: Dict[str, str] = {}
    copy_present(options, qs, READ_QUERY_FIELDS)
    return RequestDescriptor(
        method="GET",
        url=_keys_url(base_url, options.get("key") or "/"),
        qs=qs,
        blocking=_blocking(options),
    )


def build_write(base_url: str, options: Mapping[str, object]) -> RequestDescriptor:
    """PUT (or the caller's method) keys/{key}; value always sent as a form field."""
    method = options.get("method") or "PUT"
    qs: Dict[str, str] = {}
    form: Dict[str, str] = {"value": encode_value(options.get("value"))}  # type: ignore[arg-type]
    copy_present(options, qs, WRITE_QUERY_FIELDS)
    copy_present(options, form, WRITE_FORM_FIELDS)
    return RequestDescriptor(
        method=str(method).upper(),  # type: ignore[arg-type]
        url=_keys_url(base_url, options.get("key") or "/"),
        qs=qs,
        form=form,
        blocking=_blocking(options),
    )


def build_append(base_url: str, options: Mapping[str, object]) -> RequestDescriptor:
    """Same as build_write with the method forced to POST.

    The caller's mapping is left unmodified.
    """
    return build_write(base_url, {**options, "method": "POST"})


def build_delete(base_url: str, options: Mapping[str, object]) -> RequestDescriptor:
    qs: Dict[str, str] = {}
    copy_present(options, qs, DELETE_QUERY_FIELDS)
    return RequestDescriptor(
        method="DELETE",
        url=_keys_url(base_url, options.get("key")),
        qs=qs,
        blocking=_blocking(options),
    )


def build_get(base_url: str, route: str) -> RequestDescriptor:
    """Plain GET of a top-level route such as 'machines' or 'leader'."""
    return RequestDescriptor(method="GET", url=join_url(base_url, route), qs={})
