from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar
from urllib.parse import quote


if TYPE_CHECKING:
    from .docker import Docker


_I = TypeVar("_I", bound="ApiItem")


class ApiItem:
    """
    A handle to one named resource on the daemon, e.g. a single volume.

    Creating a handle does not talk to the daemon; the name is only
    looked up when one of the handle's operations is awaited.
    """

    resource: ClassVar[str]

    def __init__(self, docker: Docker, name: str) -> None:
        if not name:
            raise ValueError(f"{self.__class__.__name__} requires a non-empty name")
        self._docker = docker
        self._name = name

    @property
    def docker(self) -> Docker:
        return self._docker

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        return f"{self.resource}/{quote(self._name, safe='')}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self._name}>"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, self.__class__) and self._name == other._name

    def __hash__(self) -> int:
        return hash((self.__class__, self._name))


class ApiCollection(Generic[_I]):
    """
    A handle to a whole resource collection, e.g. all volumes.
    """

    resource: ClassVar[str]
    item_class: ClassVar[type[ApiItem]]

    def __init__(self, docker: Docker) -> None:
        self._docker = docker

    @property
    def docker(self) -> Docker:
        return self._docker

    def url(self, action: str = "") -> str:
        return f"{self.resource}/{action}" if action else self.resource

    def get(self, name: str) -> _I:
        """Return a handle to the named resource without querying the daemon."""
        return self.item_class(self._docker, name)  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
