"""
Typed records for Docker Engine API responses.

Records are frozen :mod:`attrs` classes whose fields are declared with the
helpers of this module.  Each field knows its wire name, which defaults to
the PascalCase form of the attribute name (``created_at`` <-> ``CreatedAt``),
and the same mapping is used by :meth:`Record.from_json` and
:meth:`Record.to_json`.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from typing import Any, Optional, TypeVar

import attrs
from dateutil.parser import isoparse

from .exceptions import DecodeError
from .utils import pascal_case


__all__ = (
    "Record",
    "integer",
    "json_object",
    "nested",
    "string",
    "string_list",
    "string_map",
    "timestamp",
)

_R = TypeVar("_R", bound="Record")

_META_KEY = "aiodockerapi"

_PLAIN = "plain"
_TIMESTAMP = "timestamp"
_RECORD = "record"


@attrs.frozen
class _Wire:
    name: Optional[str]
    kind: str = _PLAIN
    record: Optional[type[Record]] = None
    many: bool = False


def _field(
    validator: Any,
    *,
    wire: Optional[str],
    optional: bool,
    default: Any = None,
    kind: str = _PLAIN,
    record: Optional[type[Record]] = None,
    many: bool = False,
) -> Any:
    metadata = {_META_KEY: _Wire(wire, kind, record, many)}
    if optional:
        return attrs.field(
            default=default,
            validator=attrs.validators.optional(validator),
            metadata=metadata,
        )
    return attrs.field(validator=validator, metadata=metadata)


def string(*, wire: Optional[str] = None, optional: bool = False) -> Any:
    return _field(attrs.validators.instance_of(str), wire=wire, optional=optional)


def integer(
    *, wire: Optional[str] = None, optional: bool = False, default: Any = None
) -> Any:
    """An integer field.  JSON booleans are rejected."""
    validator = attrs.validators.and_(
        attrs.validators.instance_of(int),
        attrs.validators.not_(attrs.validators.instance_of(bool)),
    )
    return _field(validator, wire=wire, optional=optional, default=default)


def string_map(*, wire: Optional[str] = None) -> Any:
    """An optional ``map[string]string`` field such as labels."""
    validator = attrs.validators.deep_mapping(
        key_validator=attrs.validators.instance_of(str),
        value_validator=attrs.validators.instance_of(str),
        mapping_validator=attrs.validators.instance_of(dict),
    )
    return _field(validator, wire=wire, optional=True)


def json_object(*, wire: Optional[str] = None) -> Any:
    """An optional free-form JSON object, kept as decoded."""
    return _field(attrs.validators.instance_of(dict), wire=wire, optional=True)


def string_list(*, wire: Optional[str] = None) -> Any:
    validator = attrs.validators.deep_iterable(
        member_validator=attrs.validators.instance_of(str),
        iterable_validator=attrs.validators.instance_of(list),
    )
    return _field(validator, wire=wire, optional=True)


def timestamp(*, wire: Optional[str] = None, optional: bool = False) -> Any:
    """
    A point in time.  Decoded as a timezone-aware :class:`datetime.datetime`
    when timestamp parsing is enabled, kept as the raw string otherwise.
    """
    return _field(
        attrs.validators.instance_of((datetime.datetime, str)),
        wire=wire,
        optional=optional,
        kind=_TIMESTAMP,
    )


def nested(
    record: type[Record], *, wire: Optional[str] = None, many: bool = False
) -> Any:
    """An optional sub-record, or a list of them when ``many`` is set."""
    if many:
        validator = attrs.validators.deep_iterable(
            member_validator=attrs.validators.instance_of(record),
            iterable_validator=attrs.validators.instance_of(list),
        )
    else:
        validator = attrs.validators.instance_of(record)
    return _field(
        validator, wire=wire, optional=True, kind=_RECORD, record=record, many=many
    )


def parse_timestamp(value: Any) -> datetime.datetime:
    """
    Parse an RFC 3339 timestamp as sent by the daemon into an aware
    datetime in UTC.  Sub-microsecond digits are truncated.
    """
    if not isinstance(value, str):
        raise DecodeError(f"Expected a timestamp string, got {value!r}")
    try:
        parsed = isoparse(value)
    except ValueError as exc:
        raise DecodeError(f"Invalid timestamp {value!r}: {exc}") from exc
    if parsed.tzinfo is None:
        raise DecodeError(f"Timestamp {value!r} has no timezone")
    return parsed.astimezone(datetime.timezone.utc)


def format_timestamp(value: datetime.datetime) -> str:
    return value.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


def _wire_fields(cls: type) -> list[tuple[attrs.Attribute, str, _Wire]]:
    fields = []
    for f in attrs.fields(cls):
        wire = f.metadata.get(_META_KEY)
        if wire is None:
            continue
        fields.append((f, wire.name or pascal_case(f.name), wire))
    return fields


class Record:
    """
    Base class of all response records.

    Subclasses must be decorated with ``@attrs.frozen``.
    """

    @classmethod
    def from_json(cls: type[_R], data: Any, *, parse_timestamps: bool = True) -> _R:
        """
        Build the record from a decoded JSON object.

        Unknown keys are ignored.  Optional fields that are absent or
        ``null`` decode to their default.

        Raises:
            DecodeError: if ``data`` is not an object, a required key is
                missing or a value has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise DecodeError(
                f"Expected a JSON object for {cls.__name__}, "
                f"got {type(data).__name__}"
            )
        kwargs = {}
        for f, key, wire in _wire_fields(cls):
            value = data.get(key)
            if value is None:
                if f.default is attrs.NOTHING:
                    raise DecodeError(
                        f"Missing required field {key!r} in {cls.__name__}"
                    )
                continue
            kwargs[f.name] = _decode(value, wire, parse_timestamps)
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Invalid {cls.__name__}: {exc}") from exc

    def to_json(self) -> dict[str, Any]:
        """Encode the record back into its wire form, dropping unset fields."""
        data = {}
        for f, key, wire in _wire_fields(type(self)):
            value = getattr(self, f.name)
            if value is None:
                continue
            data[key] = _encode(value, wire)
        return data


def _decode(value: Any, wire: _Wire, parse_timestamps: bool) -> Any:
    if wire.kind == _TIMESTAMP:
        return parse_timestamp(value) if parse_timestamps else value
    if wire.kind == _RECORD:
        assert wire.record is not None
        if not wire.many:
            return wire.record.from_json(value, parse_timestamps=parse_timestamps)
        if not isinstance(value, list):
            raise DecodeError(
                f"Expected a list of {wire.record.__name__}, "
                f"got {type(value).__name__}"
            )
        return [
            wire.record.from_json(item, parse_timestamps=parse_timestamps)
            for item in value
        ]
    return value


def _encode(value: Any, wire: _Wire) -> Any:
    if wire.kind == _TIMESTAMP and isinstance(value, datetime.datetime):
        return format_timestamp(value)
    if wire.kind == _RECORD:
        if wire.many:
            return [item.to_json() for item in value]
        return value.to_json()
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value
