from __future__ import annotations

import json
from typing import Any, get_args

import pytest

from aiodockerapi.exceptions import SerializationError
from aiodockerapi.opts import JsonOpts, JsonOptsBuilder, bool_field, number_field
from aiodockerapi.volumes import (
    VolumeCreateOpts,
    VolumeCreateOptsBuilder,
    VolumeListOpts,
    VolumeListOptsBuilder,
    VolumePruneOpts,
    VolumePruneOptsBuilder,
)


def test_set_string_serializes_field() -> None:
    opts = VolumeCreateOpts.builder().set_string("Name", "x").build()
    assert json.loads(opts.serialize()) == {"Name": "x"}


def test_last_write_wins() -> None:
    opts = VolumeCreateOpts.builder().name("first").name("second").build()
    assert json.loads(opts.serialize()) == {"Name": "second"}

    opts = (
        VolumeCreateOpts.builder()
        .labels({"a": "1"})
        .set_map("Labels", {"b": "2"})
        .build()
    )
    assert opts.params["Labels"] == {"b": "2"}


def test_declared_fields() -> None:
    builder = VolumeCreateOpts.builder()
    assert isinstance(builder, VolumeCreateOptsBuilder)
    opts = (
        builder.name("test-vol")
        .driver("local")
        .driver_opts({"type": "tmpfs", "device": "tmpfs"})
        .labels({"com.github": "docker_api"})
        .build()
    )
    assert isinstance(opts, VolumeCreateOpts)
    assert opts.to_dict() == {
        "Name": "test-vol",
        "Driver": "local",
        "DriverOpts": {"type": "tmpfs", "device": "tmpfs"},
        "Labels": {"com.github": "docker_api"},
    }


def test_serialize_is_deterministic() -> None:
    a = VolumeCreateOpts.builder().name("v").labels({"x": "1"}).build()
    b = VolumeCreateOpts.builder().labels({"x": "1"}).name("v").build()
    assert a == b
    assert a.serialize() == b.serialize()
    assert hash(a) == hash(b)


def test_built_opts_do_not_alias_builder() -> None:
    labels = {"a": "1"}
    builder = VolumeCreateOpts.builder().name("v").labels(labels)
    opts = builder.build()

    labels["b"] = "2"
    builder.name("changed").set_map("Labels", {"c": "3"})

    assert json.loads(opts.serialize()) == {"Name": "v", "Labels": {"a": "1"}}
    assert builder.build().get("Name") == "changed"


def test_built_opts_are_read_only() -> None:
    opts = VolumeCreateOpts.builder().name("v").build()
    with pytest.raises(TypeError):
        opts.params["Name"] = "other"  # type: ignore[index]
    copied = opts.to_dict()
    copied["Name"] = "other"
    assert opts.get("Name") == "v"


def test_default_opts_are_empty() -> None:
    opts = VolumeCreateOpts.default()
    assert opts.is_empty()
    assert opts.serialize() == "{}"
    assert VolumeCreateOpts.builder().build() == opts


@pytest.mark.parametrize(
    "method, value",
    [
        ("set_string", 1),
        ("set_map", ["a"]),
        ("set_map", {"a": 1}),
        ("set_bool", "yes"),
        ("set_number", True),
        ("set_number", "1"),
        ("set_list", "abc"),
    ],
)
def test_setters_reject_wrong_types(method: str, value: object) -> None:
    builder = VolumeCreateOpts.builder()
    with pytest.raises(TypeError):
        getattr(builder, method)("Field", value)


def test_generic_setters() -> None:
    items = [{"a": 1}]
    opts = (
        JsonOptsBuilder()
        .set_bool("Flag", False)
        .set_number("Size", 1.5)
        .set_list("Items", items)
        .build()
    )
    items[0]["a"] = 2
    assert opts.to_dict() == {"Flag": False, "Size": 1.5, "Items": [{"a": 1}]}


def test_custom_builder_declaration() -> None:
    class LimitsOpts(JsonOpts["LimitsOptsBuilder"]):
        pass

    class LimitsOptsBuilder(JsonOptsBuilder[LimitsOpts], opts=LimitsOpts):
        enabled = bool_field("Enabled")
        limit = number_field("Limit", "The upper bound.")

    assert LimitsOptsBuilder.limit.__doc__ == "The upper bound."
    opts = LimitsOpts.builder().enabled(True).limit(10).build()
    assert isinstance(opts, LimitsOpts)
    assert opts.serialize() == '{"Enabled": true, "Limit": 10}'


@pytest.mark.parametrize(
    "opts_class, builder_class",
    [
        (VolumeCreateOpts, VolumeCreateOptsBuilder),
        (VolumeListOpts, VolumeListOptsBuilder),
        (VolumePruneOpts, VolumePruneOptsBuilder),
    ],
)
def test_builders_are_typed_per_opts(
    opts_class: type[JsonOpts[Any]], builder_class: type[JsonOptsBuilder[Any]]
) -> None:
    builder = opts_class.builder()
    assert type(builder) is builder_class
    assert type(builder.build()) is opts_class
    assert get_args(builder_class.__orig_bases__[0]) == (opts_class,)
    (builder_ref,) = get_args(opts_class.__orig_bases__[0])
    assert builder_ref.__forward_arg__ == builder_class.__name__


def test_base_opts_have_no_builder() -> None:
    with pytest.raises(TypeError):
        JsonOpts.builder()


def test_unserializable_values() -> None:
    with pytest.raises(SerializationError) as excinfo:
        JsonOpts({"Size": float("nan")}).serialize()
    assert excinfo.value.status == 0

    with pytest.raises(SerializationError):
        JsonOpts({"Items": {1, 2}}).serialize()


def test_list_filters_to_query() -> None:
    opts = (
        VolumeListOpts.builder()
        .filters({"dangling": True, "label": ["a", "b=c"], "name": "data"})
        .build()
    )
    query = opts.to_query()
    assert list(query) == ["filters"]
    assert json.loads(query["filters"]) == {
        "dangling": ["true"],
        "label": ["a", "b=c"],
        "name": ["data"],
    }


def test_prune_filters_reject_non_mapping() -> None:
    with pytest.raises(TypeError):
        VolumePruneOpts.builder().filters(["label=a"])


def test_empty_query() -> None:
    assert VolumeListOpts.default().to_query() == {}
