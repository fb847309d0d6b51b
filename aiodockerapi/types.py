from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import (
    TypeAlias,
    Union,
)


# NOTE: These types are used to annotate arguments and raw payloads only.
# Decoded responses are returned as per-API records (see records.py).
JSONValue: TypeAlias = Union[
    str,
    int,
    float,
    bool,
    None,
    Mapping[str, "JSONValue"],
    Sequence["JSONValue"],
]
JSONObject: TypeAlias = Mapping[str, JSONValue]

# Labels and driver options share the same wire shape.
Labels: TypeAlias = Mapping[str, str]
Options: TypeAlias = Mapping[str, str]
