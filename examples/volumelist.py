#!/usr/bin/env python3

import asyncio
import logging

from aiodockerapi import Docker, VolumeListOpts


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    opts = VolumeListOpts.builder().filters({"dangling": True}).build()
    async with Docker() as docker:
        for volume in await docker.volumes.list(opts):
            print(volume.name, volume.driver, volume.mountpoint, volume.created_at)


if __name__ == "__main__":
    asyncio.run(main())
