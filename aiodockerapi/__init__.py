from .docker import Docker
from .exceptions import (
    ApiError,
    DecodeError,
    DockerError,
    SerializationError,
    TransportError,
)
from .opts import JsonOpts, JsonOptsBuilder
from .volumes import (
    DockerVolume,
    DockerVolumes,
    VolumeCreateInfo,
    VolumeCreateOpts,
    VolumeInfo,
    VolumeListOpts,
    VolumePruneInfo,
    VolumePruneOpts,
    VolumesInfo,
    VolumeUsageData,
)


__version__ = "0.1.0"


__all__ = (
    "ApiError",
    "DecodeError",
    "Docker",
    "DockerError",
    "DockerVolume",
    "DockerVolumes",
    "JsonOpts",
    "JsonOptsBuilder",
    "SerializationError",
    "TransportError",
    "VolumeCreateInfo",
    "VolumeCreateOpts",
    "VolumeInfo",
    "VolumeListOpts",
    "VolumePruneInfo",
    "VolumePruneOpts",
    "VolumeUsageData",
    "VolumesInfo",
)
