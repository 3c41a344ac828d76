"""SQLite-backed machine registry."""

from __future__ import annotations

import logging
import pickle
import sqlite3
from dataclasses import replace
from typing import Iterator, List, Optional

from .domain import Machine, MachineStatus
from .repository import DuplicateRecordError, RecordNotFoundError, RegistryUnavailableError

logger = logging.getLogger(__name__)


class SQLiteMachineRegistry:
    """Registry implementation that persists machines inside SQLite.

    Reads always hit the database so status changes made by other writers are
    visible to the next query. Any ``sqlite3.Error`` raised while reading is
    reported as :class:`RegistryUnavailableError`.
    """

    def __init__(self, path: str, table: str = "machines") -> None:
        connection = sqlite3.connect(path, check_same_thread=False)
        self._connection = connection
        self._table = table
        self._connection.execute(
            f"CREATE TABLE IF NOT EXISTS {table} ("  # nosec - static table names
            "id TEXT PRIMARY KEY, category TEXT NOT NULL, payload BLOB NOT NULL)"
        )
        self._connection.commit()

    def __contains__(self, machine_id: object) -> bool:
        if not isinstance(machine_id, str):
            return False
        cursor = self._execute(
            f"SELECT 1 FROM {self._table} WHERE id = ? LIMIT 1", (machine_id,)
        )
        return cursor.fetchone() is not None

    def __iter__(self) -> Iterator[Machine]:
        return iter(self.list_all())

    def __len__(self) -> int:
        cursor = self._execute(f"SELECT COUNT(1) FROM {self._table}")
        value = cursor.fetchone()
        return int(value[0]) if value else 0

    def _execute(self, sql: str, parameters: tuple = ()) -> sqlite3.Cursor:
        try:
            return self._connection.execute(sql, parameters)
        except sqlite3.Error as exc:
            logger.error("Machine registry read failed: %s", exc)
            raise RegistryUnavailableError(f"Machine registry unavailable: {exc}") from exc

    # ------------------------------------------------------------------
    # Registry management
    # ------------------------------------------------------------------
    def register(self, machine: Machine) -> Machine:
        if machine.id in self:
            raise DuplicateRecordError(f"Record with id {machine.id!r} already exists")
        self.upsert(machine)
        return machine

    def upsert(self, machine: Machine) -> None:
        self._connection.execute(
            f"INSERT INTO {self._table} (id, category, payload) VALUES (?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET category = excluded.category, "
            "payload = excluded.payload",
            (machine.id, machine.category.strip().casefold(), pickle.dumps(machine)),
        )
        self._connection.commit()

    def get(self, machine_id: str) -> Machine:
        cursor = self._execute(
            f"SELECT payload FROM {self._table} WHERE id = ?", (machine_id,)
        )
        row = cursor.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Record with id {machine_id!r} not found")
        return pickle.loads(row[0])

    def remove(self, machine_id: str) -> None:
        cursor = self._connection.execute(
            f"DELETE FROM {self._table} WHERE id = ?", (machine_id,)
        )
        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Record with id {machine_id!r} not found")
        self._connection.commit()

    def set_status(self, machine_id: str, status: MachineStatus) -> Machine:
        machine = replace(self.get(machine_id), status=status)
        self.upsert(machine)
        return machine

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------
    def list_all(self) -> List[Machine]:
        cursor = self._execute(f"SELECT payload FROM {self._table} ORDER BY id")
        return [pickle.loads(row[0]) for row in cursor.fetchall()]

    def list_by_category(self, category: str) -> List[Machine]:
        cursor = self._execute(
            f"SELECT payload FROM {self._table} WHERE category = ? ORDER BY id",
            (category.strip().casefold(),),
        )
        return [pickle.loads(row[0]) for row in cursor.fetchall()]

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "SQLiteMachineRegistry":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[BaseException],
    ) -> None:
        self.close()


__all__ = ["SQLiteMachineRegistry"]
