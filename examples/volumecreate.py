#!/usr/bin/env python3

import asyncio
import sys

from aiodockerapi import Docker, DockerError, VolumeCreateOpts


async def create_volume(docker: Docker, name: str) -> None:
    opts = (
        VolumeCreateOpts.builder()
        .name(name)
        .labels({"com.github": "docker_api"})
        .build()
    )
    try:
        info = await docker.volumes.create(opts)
    except DockerError as e:
        print(f"Error: {e}", file=sys.stderr)
    else:
        print(info)


async def main() -> None:
    if len(sys.argv) < 2:
        sys.exit("You need to specify a volume name")
    async with Docker() as docker:
        await create_volume(docker, sys.argv[1])


if __name__ == "__main__":
    asyncio.run(main())
