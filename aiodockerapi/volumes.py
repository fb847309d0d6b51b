"""
Create and manage persistent storage that can be attached to containers.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Optional, Union

import attrs

from .handles import ApiCollection, ApiItem
from .opts import (
    JsonOpts,
    JsonOptsBuilder,
    filters_field,
    map_field,
    str_field,
)
from .records import (
    Record,
    integer,
    json_object,
    nested,
    string,
    string_list,
    string_map,
    timestamp,
)
from .types import Labels, Options


__all__ = (
    "DockerVolume",
    "DockerVolumes",
    "VolumeCreateInfo",
    "VolumeCreateOpts",
    "VolumeCreateOptsBuilder",
    "VolumeInfo",
    "VolumeListOpts",
    "VolumeListOptsBuilder",
    "VolumePruneInfo",
    "VolumePruneOpts",
    "VolumePruneOptsBuilder",
    "VolumeUsageData",
    "VolumesInfo",
)

log = logging.getLogger(__name__)


class VolumeCreateOpts(JsonOpts["VolumeCreateOptsBuilder"]):
    """Body of ``POST /volumes/create``."""


class VolumeCreateOptsBuilder(JsonOptsBuilder[VolumeCreateOpts], opts=VolumeCreateOpts):
    name = str_field("Name", "The new volume's name.")
    driver = str_field("Driver", "Name of the volume driver to use.")
    driver_opts = map_field(
        "DriverOpts", "Driver-specific options, passed to the driver as is."
    )
    labels = map_field("Labels", "User-defined key/value metadata.")


class VolumeListOpts(JsonOpts["VolumeListOptsBuilder"]):
    """Query of ``GET /volumes``."""


class VolumeListOptsBuilder(JsonOptsBuilder[VolumeListOpts], opts=VolumeListOpts):
    """
    Available filters:
        dangling=<boolean>
        driver=<volume-driver-name>
        label=<key> or label=<key>:<value>
        name=<volume-name>
    """

    filters = filters_field()


class VolumePruneOpts(JsonOpts["VolumePruneOptsBuilder"]):
    """Query of ``POST /volumes/prune``."""


class VolumePruneOptsBuilder(JsonOptsBuilder[VolumePruneOpts], opts=VolumePruneOpts):
    """
    Available filters:
        label=<key>, label=<key>=<value>, label!=<key> or label!=<key>=<value>
        all=<boolean> (API v1.42+)
    """

    filters = filters_field()


@attrs.frozen
class VolumeCreateInfo(Record):
    name: str = string()


@attrs.frozen
class VolumeUsageData(Record):
    size: int = integer()
    ref_count: int = integer()


@attrs.frozen
class VolumeInfo(Record):
    driver: str = string()
    name: str = string()
    mountpoint: str = string()
    scope: str = string()
    created_at: Optional[Union[datetime.datetime, str]] = timestamp(optional=True)
    labels: Optional[Labels] = string_map()
    options: Optional[Options] = string_map()
    status: Optional[dict[str, Any]] = json_object()
    usage_data: Optional[VolumeUsageData] = nested(VolumeUsageData)


@attrs.frozen
class VolumesInfo(Record):
    volumes: Optional[list[VolumeInfo]] = nested(VolumeInfo, many=True)
    warnings: Optional[list[str]] = string_list()


@attrs.frozen
class VolumePruneInfo(Record):
    volumes_deleted: Optional[list[str]] = string_list()
    space_reclaimed: int = integer(optional=True, default=0)


class DockerVolume(ApiItem):
    resource = "volumes"

    async def inspect(self) -> VolumeInfo:
        """
        Return low-level information about the volume.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/VolumeInspect
        """
        return await self.docker.get_json(self.path, VolumeInfo)

    async def delete(self, *, force: bool = False) -> None:
        """
        Delete the volume.

        Deleting a volume that does not exist is not treated as a success:
        the daemon's 404 is raised as :class:`~aiodockerapi.exceptions.ApiError`.

        Args:
            force: force the removal of the volume

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/VolumeDelete
        """
        params = {"force": True} if force else None
        await self.docker.delete(self.path, params=params)


class DockerVolumes(ApiCollection[DockerVolume]):
    resource = "volumes"
    item_class = DockerVolume

    async def create(
        self, opts: Optional[VolumeCreateOpts] = None
    ) -> VolumeCreateInfo:
        """
        Create a new volume.  Without options, the daemon picks a random name
        and the default ``local`` driver.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/VolumeCreate
        """
        opts = opts or VolumeCreateOpts.default()
        return await self.docker.post_json(self.url("create"), opts, VolumeCreateInfo)

    async def list_info(self, opts: Optional[VolumeListOpts] = None) -> VolumesInfo:
        """
        Return the raw volume list response, including the daemon's warnings.
        """
        params = None if opts is None else opts.to_query()
        return await self.docker.get_json(self.url(), VolumesInfo, params=params)

    async def list(self, opts: Optional[VolumeListOpts] = None) -> list[VolumeInfo]:
        """
        Return the volumes of the docker host, in the order sent by the daemon.

        Warnings attached to the response are logged, not raised.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/VolumeList
        """
        info = await self.list_info(opts)
        for warning in info.warnings or ():
            log.warning("Volume list: %s", warning)
        return info.volumes or []

    async def prune(
        self, opts: Optional[VolumePruneOpts] = None
    ) -> VolumePruneInfo:
        """
        Delete unused volumes.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/VolumePrune
        """
        params = None if opts is None else opts.to_query()
        return await self.docker.post_json(
            self.url("prune"), None, VolumePruneInfo, params=params
        )
