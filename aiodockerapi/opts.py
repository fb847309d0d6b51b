"""
Fluent builders for request options.

Every endpoint that takes options gets a pair of classes: an immutable
:class:`JsonOpts` subclass holding the finalized values, and a
:class:`JsonOptsBuilder` subclass declaring which fields can be set.
Fields are declared in the builder body with the ``*_field()`` helpers:

.. code-block:: python

    class VolumeCreateOpts(JsonOpts["VolumeCreateOptsBuilder"]):
        pass

    class VolumeCreateOptsBuilder(
        JsonOptsBuilder[VolumeCreateOpts], opts=VolumeCreateOpts
    ):
        name = str_field("Name")
        labels = map_field("Labels")

    opts = VolumeCreateOpts.builder().name("data").labels({"a": "b"}).build()
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Generic, Optional, TypeVar

from .exceptions import SerializationError
from .types import JSONValue, Labels
from .utils import httpize, normalize_filters


__all__ = (
    "JsonOpts",
    "JsonOptsBuilder",
    "bool_field",
    "filters_field",
    "list_field",
    "map_field",
    "number_field",
    "str_field",
)

_B = TypeVar("_B", bound="JsonOptsBuilder[Any]")
_O = TypeVar("_O", bound="JsonOpts[Any]")
_Self = TypeVar("_Self", bound="JsonOpts[Any]")


class JsonOpts(Generic[_B]):
    """
    Finalized, immutable options of a single API call.

    The values are deep-copied on construction, so nothing done to the
    builder (or to the mappings passed into it) afterwards changes them.
    Subclasses name their builder class as the type argument, e.g.
    ``class VolumeCreateOpts(JsonOpts["VolumeCreateOptsBuilder"])``.
    """

    __slots__ = ("_params",)

    _builder_class: ClassVar[Optional[type[JsonOptsBuilder[Any]]]] = None

    def __init__(self, params: Optional[Mapping[str, JSONValue]] = None) -> None:
        self._params: dict[str, Any] = copy.deepcopy(dict(params or {}))

    @classmethod
    def builder(cls) -> _B:
        """Return a new, empty builder for these options."""
        if cls._builder_class is None:
            raise TypeError(f"{cls.__name__} has no builder declared")
        return cls._builder_class()  # type: ignore[return-value]

    @classmethod
    def default(cls: type[_Self]) -> _Self:
        """Return options with no field set."""
        return cls()

    @property
    def params(self) -> Mapping[str, Any]:
        return MappingProxyType(self._params)

    def get(self, key: str, default: Any = None) -> Any:
        return self._params.get(key, default)

    def is_empty(self) -> bool:
        return not self._params

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable deep copy of the option values."""
        return copy.deepcopy(self._params)

    def serialize(self) -> str:
        """
        Encode the options as a JSON object body.

        Raises:
            SerializationError: if a value cannot be represented in JSON.
        """
        try:
            return json.dumps(self._params, sort_keys=True, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot serialize {self.__class__.__name__}: {exc}"
            ) from exc

    def to_query(self) -> Mapping[str, str]:
        """Render the options as HTTP query parameters."""
        try:
            return httpize(self._params) or {}
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot serialize {self.__class__.__name__}: {exc}"
            ) from exc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonOpts) or type(self) is not type(other):
            return NotImplemented
        return self._params == other._params

    def __hash__(self) -> int:
        return hash((type(self), self.serialize()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._params!r})"


class JsonOptsBuilder(Generic[_O]):
    """
    Accumulates option fields and freezes them with :meth:`build`.

    Subclasses bind themselves to their options class with the ``opts``
    class keyword and declare their fluent setters with the ``*_field()``
    helpers of this module.  The generic ``set_*`` methods are always
    available for fields without a dedicated setter.
    """

    opts_class: ClassVar[type[JsonOpts[Any]]] = JsonOpts

    def __init_subclass__(
        cls, opts: Optional[type[JsonOpts[Any]]] = None, **kwargs: Any
    ) -> None:
        super().__init_subclass__(**kwargs)
        if opts is not None:
            cls.opts_class = opts
            opts._builder_class = cls

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._params!r})"

    def set_string(self: _B, field: str, value: str) -> _B:
        if not isinstance(value, str):
            raise TypeError(f"{field} must be a string, not {type(value).__name__}")
        self._params[field] = value
        return self

    def set_map(self: _B, field: str, value: Labels) -> _B:
        if not isinstance(value, Mapping):
            raise TypeError(
                f"{field} must be a mapping, not {type(value).__name__}"
            )
        for k, v in value.items():
            if not isinstance(k, str) or not isinstance(v, str):
                raise TypeError(f"{field} must map strings to strings")
        self._params[field] = dict(value)
        return self

    def set_bool(self: _B, field: str, value: bool) -> _B:
        if not isinstance(value, bool):
            raise TypeError(f"{field} must be a bool, not {type(value).__name__}")
        self._params[field] = value
        return self

    def set_number(self: _B, field: str, value: int | float) -> _B:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"{field} must be a number, not {type(value).__name__}")
        self._params[field] = value
        return self

    def set_list(self: _B, field: str, values: Sequence[JSONValue]) -> _B:
        if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
            raise TypeError(
                f"{field} must be a sequence, not {type(values).__name__}"
            )
        self._params[field] = copy.deepcopy(list(values))
        return self

    def build(self) -> _O:
        return self.opts_class(self._params)  # type: ignore[return-value]


def _setter(
    key: str, set_method: Callable[..., Any], doc: Optional[str]
) -> Callable[..., Any]:
    def setter(self, value):
        return set_method(self, key, value)

    setter.__doc__ = doc or f"Set the ``{key}`` field."
    return setter


def str_field(key: str, doc: Optional[str] = None) -> Callable[..., Any]:
    return _setter(key, JsonOptsBuilder.set_string, doc)


def map_field(key: str, doc: Optional[str] = None) -> Callable[..., Any]:
    return _setter(key, JsonOptsBuilder.set_map, doc)


def bool_field(key: str, doc: Optional[str] = None) -> Callable[..., Any]:
    return _setter(key, JsonOptsBuilder.set_bool, doc)


def number_field(key: str, doc: Optional[str] = None) -> Callable[..., Any]:
    return _setter(key, JsonOptsBuilder.set_number, doc)


def list_field(key: str, doc: Optional[str] = None) -> Callable[..., Any]:
    return _setter(key, JsonOptsBuilder.set_list, doc)


def filters_field(
    key: str = "filters", doc: Optional[str] = None
) -> Callable[..., Any]:
    """
    A setter for the ``filters`` query parameter.  Scalar filter values
    are wrapped into single-item lists, booleans become ``true``/``false``.
    """

    def setter(self, filters):
        self._params[key] = normalize_filters(filters)
        return self

    setter.__doc__ = doc or "Set the filters applied by the daemon."
    return setter
