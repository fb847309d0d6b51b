from __future__ import annotations

import json
from typing import (
    Any,
    Mapping,
    Optional,
    Tuple,
)

import aiohttp

from .exceptions import DecodeError
from .types import JSONObject


async def parse_result(
    response: aiohttp.ClientResponse, *, encoding: str = "utf-8"
) -> Any:
    """
    Convert the response body to native objects according to the
    HTTP content-type.  Empty bodies (e.g. ``204 No Content``) yield ``None``.

    Raises:
        DecodeError: if the content-type header is malformed, or the body
            cannot be decoded as declared text or parsed as JSON.
    """
    body = await response.read()
    if not body:
        return None
    ct = response.headers.get("content-type")
    try:
        if ct is not None:
            main_type, sub_type, extras = parse_content_type(ct)
            if (main_type, sub_type) == ("text", "plain"):
                return body.decode(extras.get("charset", encoding))
            encoding = extras.get("charset", encoding)
        return json.loads(body.decode(encoding))
    except (LookupError, ValueError) as exc:
        raise DecodeError(
            f"Unreadable body for {response.method} {response.url.path}: {exc}",
            response.status,
        ) from exc


def parse_content_type(ct: str) -> Tuple[str, str, Mapping[str, str]]:
    """
    Decompose the value of HTTP "Content-Type" header into
    the main/sub MIME types and other extra options as a dictionary.
    All parsed values are lower-cased automatically.
    """
    pieces = ct.split(";")
    try:
        main_type, sub_type = pieces[0].split("/")
    except ValueError:
        msg = f'Invalid mime-type component: "{pieces[0]}"'
        raise ValueError(msg)
    options = {}
    for opt in pieces[1:]:
        opt = opt.strip()
        if not opt:
            continue
        try:
            k, v = opt.split("=", 1)
        except ValueError:
            msg = f'Invalid option component: "{opt}"'
            raise ValueError(msg)
        else:
            options[k.lower()] = v.lower()
    return main_type.strip().lower(), sub_type.strip().lower(), options


def httpize(d: Optional[JSONObject]) -> Optional[Mapping[str, str]]:
    """
    Render a mapping of query parameters as strings the way the daemon
    expects them: booleans as ``1``/``0``, other non-strings as JSON.
    """
    if d is None:
        return None
    converted = {}
    for k, v in d.items():
        if isinstance(v, bool):
            v = "1" if v else "0"
        if not isinstance(v, str):
            v = json.dumps(v)
        converted[k] = v
    return converted


def normalize_filters(
    filters: Optional[Mapping[str, Any]] = None,
) -> dict[str, list[str]]:
    """
    Ensures that the values inside `filters` are lists of string values, by
    wrapping scalar values as a single-item lists.  The result has the
    `map[string][]string` shape described in
    https://docs.docker.com/engine/api/v1.41/#operation/VolumeList .
    """
    if filters is None:
        return {}
    if not isinstance(filters, Mapping):
        raise TypeError("filters must be a mapping")
    cleaned = {}
    for k, v in filters.items():
        if not isinstance(v, (list, tuple)):
            v = [v]
        cleaned[str(k)] = [_filter_value(item) for item in v]
    return cleaned


def pascal_case(name: str) -> str:
    """
    Convert a snake_case attribute name into the PascalCase
    wire name used by the Docker Engine API (``created_at`` -> ``CreatedAt``).
    """
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
