"""In-memory repositories and the machine registry read API."""

from __future__ import annotations

from dataclasses import replace
from typing import Generic, Iterator, List, MutableMapping, Protocol, Sequence, TypeVar

from .domain import Machine, MachineStatus

T = TypeVar("T")


class RepositoryError(RuntimeError):
    """Base exception for repository errors."""


class DuplicateRecordError(RepositoryError):
    """Raised when attempting to insert a record that already exists."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested record is missing."""


class RegistryUnavailableError(RepositoryError):
    """Raised when the backing machine registry cannot be read."""


class InMemoryRepository(Generic[T]):
    """Generic repository backed by a simple dictionary."""

    def __init__(self) -> None:
        self._items: MutableMapping[str, T] = {}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def add(self, item_id: str, item: T) -> None:
        if item_id in self._items:
            raise DuplicateRecordError(f"Record with id {item_id!r} already exists")
        self._items[item_id] = item

    def upsert(self, item_id: str, item: T) -> None:
        self._items[item_id] = item

    def get(self, item_id: str) -> T:
        try:
            return self._items[item_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found") from exc

    def remove(self, item_id: str) -> None:
        if item_id not in self._items:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found")
        del self._items[item_id]

    def list(self) -> List[T]:
        return list(self._items.values())

    def __iter__(self) -> Iterator[T]:
        return iter(self._items.values())


class MachineRegistry(Protocol):
    """Read API the resolver consumes; may block on external storage."""

    def list_by_category(self, category: str) -> Sequence[Machine]:
        ...

    def list_all(self) -> Sequence[Machine]:
        ...


def same_category(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


class InMemoryMachineRegistry(InMemoryRepository[Machine]):
    """Machine registry kept in process memory."""

    def register(self, machine: Machine) -> Machine:
        self.add(machine.id, machine)
        return machine

    def list_all(self) -> List[Machine]:
        return sorted(self.list(), key=lambda machine: machine.id)

    def list_by_category(self, category: str) -> List[Machine]:
        return [machine for machine in self.list_all() if same_category(machine.category, category)]

    def set_status(self, machine_id: str, status: MachineStatus) -> Machine:
        machine = replace(self.get(machine_id), status=status)
        self.upsert(machine_id, machine)
        return machine


__all__ = [
    "InMemoryRepository",
    "InMemoryMachineRegistry",
    "MachineRegistry",
    "RepositoryError",
    "DuplicateRecordError",
    "RecordNotFoundError",
    "RegistryUnavailableError",
    "same_category",
]
