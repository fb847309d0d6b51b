from __future__ import annotations

import json
import logging
import os
import re
import ssl
import sys
from collections.abc import Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from types import TracebackType
from typing import (
    Any,
    AsyncIterator,
    Optional,
    Type,
    TypeVar,
    Union,
    overload,
)

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from .exceptions import ApiError, DecodeError, SerializationError, TransportError
from .opts import JsonOpts
from .records import Record
from .types import JSONObject
from .utils import httpize, parse_result
from .volumes import DockerVolume, DockerVolumes


__all__ = (
    "Docker",
    "DockerVolume",
    "DockerVolumes",
)

log = logging.getLogger(__name__)

_R = TypeVar("_R", bound=Record)

Payload = Union[JsonOpts, JSONObject, str, bytes, None]

_sock_search_paths = [
    Path("/run/docker.sock"),
    Path("/var/run/docker.sock"),
    Path.home() / ".docker/run/docker.sock",
]

_rx_version = re.compile(r"^v\d+\.\d+$")
_rx_tcp_schemes = re.compile(r"^(tcp|http|https)://")


class Docker:
    """
    The connection to a Docker daemon and the entrypoint to the typed
    resource handles.

    .. code-block:: python

        async with aiodockerapi.Docker() as docker:
            opts = VolumeCreateOpts.builder().name("data").build()
            info = await docker.volumes.create(opts)
            await docker.volumes.get(info.name).delete()

    The daemon address is resolved in this order: the ``url`` argument,
    the ``DOCKER_HOST`` environment variable, the first existing local
    socket among the well-known paths, and finally the default Windows
    named pipe.

    Args:
        url: The Docker daemon address as the full URL string (e.g.,
            ``"unix:///var/run/docker.sock"``, ``"tcp://127.0.0.1:2375"``,
            ``"npipe:////./pipe/docker_engine"``).
        connector: Custom :class:`aiohttp.BaseConnector` implementation to
            establish new connections to the docker host.  If provided, it is
            used instead of creating a connector based on the **url** value.
        session: Custom :class:`aiohttp.ClientSession`.  If None, a new session
            is created with the connector and timeout settings.
        timeout: :class:`aiohttp.ClientTimeout` configuration for API requests.
            If None, there is no timeout at all.
        ssl_context: SSL context for HTTPS connections.  If None and
            ``DOCKER_TLS_VERIFY`` is set, a context is created from the
            ``DOCKER_CERT_PATH`` certificates.
        api_version: Pin the Docker API version (e.g., "v1.41").  Use "auto"
            to take ``DOCKER_API_VERSION`` if set, or else detect the API
            version from the daemon on the first request.
        parse_timestamps: Decode timestamp fields of responses into
            timezone-aware :class:`datetime.datetime` objects.  When False,
            they are returned as the raw strings sent by the daemon.

    Raises:
        ValueError: Raised if the docker host cannot be determined or has an
            unsupported scheme, or if the api_version format is invalid.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        connector: Optional[aiohttp.BaseConnector] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
        api_version: str = "auto",
        parse_timestamps: bool = True,
    ) -> None:
        docker_host = url  # rename
        if docker_host is None:
            docker_host = os.environ.get("DOCKER_HOST", None)
        if docker_host is None:
            for sockpath in _sock_search_paths:
                if sockpath.is_socket():
                    docker_host = "unix://" + str(sockpath)
                    break
        if docker_host is None and sys.platform == "win32":
            docker_host = "npipe:////./pipe/docker_engine"
        if docker_host is None:
            raise ValueError(
                "Missing valid docker_host. "
                "Either DOCKER_HOST or local sockets are not available."
            )
        self.docker_host = docker_host

        if api_version == "auto":
            env_version = os.environ.get("DOCKER_API_VERSION")
            if env_version:
                if not env_version.startswith("v"):
                    env_version = "v" + env_version
                api_version = env_version
        if api_version != "auto" and _rx_version.search(api_version) is None:
            raise ValueError("Invalid API version format")
        self.api_version = api_version
        self.parse_timestamps = parse_timestamps

        self._timeout = timeout or aiohttp.ClientTimeout()

        self._connection_info = docker_host
        if connector is None:
            UNIX_PRE = "unix://"
            UNIX_PRE_LEN = len(UNIX_PRE)
            WIN_PRE = "npipe://"
            WIN_PRE_LEN = len(WIN_PRE)

            if _rx_tcp_schemes.search(docker_host):
                if (
                    ssl_context is None
                    and os.environ.get("DOCKER_TLS_VERIFY", "0") == "1"
                ):
                    ssl_context = self._docker_machine_ssl_context()
                if ssl_context is not None:
                    docker_host = _rx_tcp_schemes.sub("https://", docker_host)
                else:
                    docker_host = _rx_tcp_schemes.sub("http://", docker_host)
                connector = aiohttp.TCPConnector(
                    ssl=ssl_context if ssl_context is not None else True
                )
                self.docker_host = docker_host
            elif docker_host.startswith(UNIX_PRE):
                connector = aiohttp.UnixConnector(docker_host[UNIX_PRE_LEN:])
                # dummy hostname for URL composition
                self.docker_host = UNIX_PRE + "localhost"
            elif docker_host.startswith(WIN_PRE):
                connector = aiohttp.NamedPipeConnector(
                    docker_host[WIN_PRE_LEN:].replace("/", "\\")
                )
                # dummy hostname for URL composition
                self.docker_host = WIN_PRE + "localhost"
            else:
                raise ValueError("Missing protocol scheme in docker_host.")
        self.connector = connector
        if session is None:
            session = aiohttp.ClientSession(
                connector=self.connector,
                timeout=self._timeout,
            )
        self.session = session

        self.volumes = DockerVolumes(self)

    async def __aenter__(self) -> Docker:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying aiohttp session and its connections."""
        await self.session.close()

    def volume(self, name: str) -> DockerVolume:
        """Return a handle to the named volume without querying the daemon."""
        return self.volumes.get(name)

    async def version(self) -> dict[str, Any]:
        """Get Docker daemon version information.

        Returns:
            A dict with keys like ``Version``, ``ApiVersion``, ``Os``
            and ``Arch``.

        Raises:
            DockerError: If the request fails or the daemon is unreachable.
        """
        data = await self._query_json("version")
        return data

    @overload
    async def get_json(
        self,
        path: str,
        record: None = None,
        *,
        params: Optional[JSONObject] = None,
    ) -> Any: ...

    @overload
    async def get_json(
        self,
        path: str,
        record: type[_R],
        *,
        params: Optional[JSONObject] = None,
    ) -> _R: ...

    async def get_json(self, path, record=None, *, params=None):
        """
        ``GET`` the path and return the JSON body, decoded into ``record``
        when one is given.
        """
        return await self._query_json(path, "GET", params=params, record=record)

    @overload
    async def post_json(
        self,
        path: str,
        payload: Payload = None,
        record: None = None,
        *,
        params: Optional[JSONObject] = None,
    ) -> Any: ...

    @overload
    async def post_json(
        self,
        path: str,
        payload: Payload,
        record: type[_R],
        *,
        params: Optional[JSONObject] = None,
    ) -> _R: ...

    async def post_json(self, path, payload=None, record=None, *, params=None):
        """
        ``POST`` the payload as a JSON body and return the JSON response,
        decoded into ``record`` when one is given.
        """
        return await self._query_json(
            path,
            "POST",
            params=params,
            data=self._encode_payload(payload),
            record=record,
        )

    async def delete(self, path: str, *, params: Optional[JSONObject] = None) -> None:
        """
        ``DELETE`` the path.  Any 2xx status is a success and the response
        body, if any, is discarded.
        """
        async with self._query(path, "DELETE", params=params):
            pass

    @staticmethod
    def _encode_payload(payload: Payload) -> Optional[Union[str, bytes]]:
        if payload is None or isinstance(payload, (str, bytes)):
            return payload
        if isinstance(payload, JsonOpts):
            return payload.serialize()
        try:
            return json.dumps(payload, sort_keys=True, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot serialize request body: {exc}"
            ) from exc

    def _canonicalize_url(
        self, path: Union[str, URL], *, versioned_api: bool = True
    ) -> URL:
        if isinstance(path, URL):
            assert not path.is_absolute()
        if versioned_api:
            return URL(
                "{self.docker_host}/{self.api_version}/{path}".format(
                    self=self, path=path
                )
            )
        else:
            return URL(f"{self.docker_host}/{path}")

    async def _check_version(self) -> None:
        if self.api_version == "auto":
            ver = await self._query_json("version", versioned_api=False)
            self.api_version = "v" + str(ver["ApiVersion"])
            log.debug("Using Docker API version %s", self.api_version)

    @asynccontextmanager
    async def _query(
        self,
        path: str | URL,
        method: str = "GET",
        *,
        params: Optional[JSONObject] = None,
        data: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
        versioned_api: bool = True,
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        """
        Get the response object by performing the HTTP request.
        The response is released when the context exits.
        """
        response = await self._do_query(
            path,
            method,
            params=params,
            data=data,
            headers=headers,
            versioned_api=versioned_api,
        )
        try:
            yield response
        finally:
            response.release()

    async def _do_query(
        self,
        path: str | URL,
        method: str,
        *,
        params: Optional[JSONObject] = None,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        versioned_api: bool = True,
    ) -> aiohttp.ClientResponse:
        if versioned_api:
            await self._check_version()
        url = self._canonicalize_url(path, versioned_api=versioned_api)
        _headers: CIMultiDict[str] = CIMultiDict()
        if headers:
            _headers.update(headers)
        if "Content-Type" not in _headers:
            _headers["Content-Type"] = "application/json"
        log.debug("%s %s", method, url)
        try:
            response = await self.session.request(
                method,
                url,
                params=httpize(params),
                headers=_headers,
                data=data,
            )
        except aiohttp.ClientConnectionError as exc:
            raise TransportError(
                f"Cannot connect to Docker Engine via {self._connection_info} [{exc}]"
            ) from exc
        if not 200 <= response.status < 300:
            try:
                what = await response.read()
            except aiohttp.ClientError as exc:
                response.close()
                raise TransportError(
                    f"Failed to read the error response of {method} {url} [{exc}]"
                ) from exc
            content_type = response.headers.get("content-type", "")
            response.close()
            raise ApiError(response.status, self._error_message(what, content_type))
        return response

    @staticmethod
    def _error_message(body: bytes, content_type: str) -> str:
        text = body.decode("utf8", errors="replace")
        if content_type.startswith("application/json"):
            try:
                data = json.loads(text)
            except ValueError:
                return text
            if isinstance(data, dict) and "message" in data:
                return str(data["message"])
        return text

    async def _query_json(
        self,
        path: str | URL,
        method: str = "GET",
        *,
        params: Optional[JSONObject] = None,
        data: Optional[Any] = None,
        record: Optional[type[Record]] = None,
        versioned_api: bool = True,
    ) -> Any:
        """
        A shorthand of _query() that treats the input and the output as JSON.
        """
        async with self._query(
            path,
            method,
            params=params,
            data=data,
            versioned_api=versioned_api,
        ) as response:
            try:
                result = await parse_result(response)
            except aiohttp.ClientError as exc:
                raise TransportError(
                    f"Failed to read the response of {method} {path} [{exc}]"
                ) from exc
            if record is None:
                return result
            try:
                return record.from_json(result, parse_timestamps=self.parse_timestamps)
            except DecodeError as exc:
                raise DecodeError(
                    f"{method} {path}: {exc.message}", response.status
                ) from exc

    @staticmethod
    def _docker_machine_ssl_context() -> ssl.SSLContext:
        """
        Create a SSLContext object using DOCKER_* env vars.
        """
        context = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)
        certs_path = os.environ.get("DOCKER_CERT_PATH", None)
        if certs_path is None:
            raise ValueError("Cannot create ssl context, DOCKER_CERT_PATH is not set!")
        certs_path2 = Path(certs_path)
        context.load_verify_locations(cafile=str(certs_path2 / "ca.pem"))
        context.load_cert_chain(
            certfile=str(certs_path2 / "cert.pem"), keyfile=str(certs_path2 / "key.pem")
        )
        return context
