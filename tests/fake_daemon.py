from __future__ import annotations

import json
import secrets
import socket
from typing import Any, Callable, Optional

import attrs
from aiohttp import web


API_VERSION = "1.41"


@attrs.define
class RecordedRequest:
    method: str
    path: str
    query: dict[str, str]
    body: Any


class FakeDaemon:
    """
    An in-process stand-in for the Docker Engine volume API.

    Volumes are kept in insertion order.  Individual endpoints can be
    replaced with :meth:`override` to produce arbitrary responses.
    """

    def __init__(self) -> None:
        self.url = ""
        self.volumes: dict[str, dict[str, Any]] = {}
        self.requests: list[RecordedRequest] = []
        self._overrides: dict[tuple[str, str], Callable[[], web.StreamResponse]] = {}

    def override(
        self, method: str, path: str, factory: Callable[[], web.StreamResponse]
    ) -> None:
        self._overrides[(method, path)] = factory

    def add_volume(self, name: str, **extra: Any) -> dict[str, Any]:
        volume = {
            "CreatedAt": "2024-05-01T10:20:30.123456789Z",
            "Driver": "local",
            "Labels": None,
            "Mountpoint": f"/var/lib/docker/volumes/{name}/_data",
            "Name": name,
            "Options": None,
            "Scope": "local",
        }
        volume.update(extra)
        self.volumes[name] = volume
        return volume

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._dispatch)
        return app

    async def _dispatch(self, request: web.Request) -> web.StreamResponse:
        raw = await request.read()
        body = json.loads(raw) if raw else None
        path = request.path
        prefix = f"/v{API_VERSION}"
        if path.startswith(prefix):
            path = path[len(prefix) :]
        self.requests.append(
            RecordedRequest(request.method, path, dict(request.query), body)
        )
        override = self._overrides.get((request.method, path))
        if override is not None:
            return override()
        parts = path.strip("/").split("/")
        match (request.method, parts):
            case ("GET", ["version"]):
                return web.json_response(
                    {"ApiVersion": API_VERSION, "Version": "24.0.0"}
                )
            case ("POST", ["volumes", "create"]):
                return self._create(body or {})
            case ("POST", ["volumes", "prune"]):
                return self._prune(request.query)
            case ("GET", ["volumes"]):
                return self._list(request.query)
            case ("GET", ["volumes", name]):
                if name not in self.volumes:
                    return self._no_such_volume(name)
                return web.json_response(self.volumes[name])
            case ("DELETE", ["volumes", name]):
                if name not in self.volumes:
                    return self._no_such_volume(name)
                del self.volumes[name]
                return web.Response(status=204)
        return web.json_response({"message": "page not found"}, status=404)

    def _create(self, body: dict[str, Any]) -> web.StreamResponse:
        name = body.get("Name") or secrets.token_hex(32)
        volume = self.volumes.get(name)
        if volume is None:
            volume = self.add_volume(
                name,
                Driver=body.get("Driver", "local"),
                Labels=body.get("Labels") or None,
                Options=body.get("DriverOpts") or None,
            )
        return web.json_response(volume, status=201)

    def _matching(self, query: Any) -> list[dict[str, Any]]:
        filters = json.loads(query.get("filters", "{}"))
        volumes = list(self.volumes.values())
        for name in filters.get("name", []):
            volumes = [v for v in volumes if name in v["Name"]]
        for label in filters.get("label", []):
            key, _, value = label.partition("=")
            volumes = [
                v
                for v in volumes
                if key in (v["Labels"] or {})
                and (not value or v["Labels"][key] == value)
            ]
        return volumes

    def _list(self, query: Any) -> web.StreamResponse:
        return web.json_response({"Volumes": self._matching(query), "Warnings": None})

    def _prune(self, query: Any) -> web.StreamResponse:
        deleted = [v["Name"] for v in self._matching(query)]
        for name in deleted:
            del self.volumes[name]
        return web.json_response({"VolumesDeleted": deleted, "SpaceReclaimed": 0})

    @staticmethod
    def _no_such_volume(name: str) -> web.StreamResponse:
        return web.json_response(
            {"message": f"get {name}: no such volume"}, status=404
        )


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def json_body(payload: Any, status: int = 200) -> Callable[[], web.StreamResponse]:
    return lambda: web.json_response(payload, status=status)


def raw_body(
    text: str, status: int = 200, content_type: Optional[str] = "application/json"
) -> Callable[[], web.StreamResponse]:
    return lambda: web.Response(text=text, status=status, content_type=content_type)


def bytes_body(
    body: bytes, content_type: str, status: int = 200
) -> Callable[[], web.StreamResponse]:
    headers = {"Content-Type": content_type}
    return lambda: web.Response(body=body, status=status, headers=headers)


def empty_body(status: int) -> Callable[[], web.StreamResponse]:
    return lambda: web.Response(status=status)
