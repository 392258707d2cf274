"""An in-memory store of game tables and the context reducers run in."""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import Any, Generic, Iterator, Optional, TypeVar

Row = TypeVar("Row")


class ReducerError(Exception):
    """Raised when a reducer or table operation is rejected."""


class Table(Generic[Row]):
    """Rows keyed by one column, with optional unique columns and auto-increment."""

    def __init__(
        self,
        name: str,
        key: str,
        unique: tuple[str, ...] = (),
        auto_inc: bool = False,
        public: bool = True,
    ) -> None:
        self.name = name
        self.key = key
        self.unique = tuple(unique)
        self.auto_inc = auto_inc
        self.public = public
        self._rows: dict[Any, Row] = {}
        self._sequence = 0

    def __iter__(self) -> Iterator[Row]:
        # A snapshot, so callers may modify the table while iterating.
        return iter(list(self._rows.values()))

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: Any) -> bool:
        return key in self._rows

    def _conflict(self, row: Row) -> Optional[str]:
        if getattr(row, self.key) in self._rows:
            return self.key
        for column in self.unique:
            value = getattr(row, column)
            if any(getattr(other, column) == value for other in self._rows.values()):
                return column
        return None

    def try_insert(self, row: Row) -> Optional[Row]:
        """Insert ``row`` and return it as stored, or None on a unique conflict."""
        if self.auto_inc and getattr(row, self.key) == 0:
            candidate = self._sequence + 1
            while candidate in self._rows:
                candidate += 1
            row = replace(row, **{self.key: candidate})
            if self._conflict(row) is not None:
                return None
            self._sequence = candidate
        elif self._conflict(row) is not None:
            return None
        self._rows[getattr(row, self.key)] = row
        return row

    def insert(self, row: Row) -> Row:
        """Insert ``row`` and return it as stored; raise ReducerError on conflict."""
        stored = self.try_insert(row)
        if stored is None:
            raise ReducerError(f"unique constraint violated inserting into {self.name}")
        return stored

    def find(self, key: Any) -> Optional[Row]:
        return self._rows.get(key)

    def find_by(self, field: str, value: Any) -> Optional[Row]:
        """Return the first row whose ``field`` equals ``value``, if any."""
        if field == self.key:
            return self._rows.get(value)
        return next((row for row in self._rows.values() if getattr(row, field) == value), None)

    def update(self, row: Row) -> Row:
        """Replace the row sharing ``row``'s key; raise ReducerError if absent."""
        key = getattr(row, self.key)
        if key not in self._rows:
            raise ReducerError(f"no row with {self.key}={key!r} in {self.name}")
        for column in self.unique:
            value = getattr(row, column)
            for other_key, other in self._rows.items():
                if other_key != key and getattr(other, column) == value:
                    raise ReducerError(f"unique constraint on {column} violated in {self.name}")
        self._rows[key] = row
        return row

    def delete(self, key: Any) -> bool:
        """Delete the row with ``key``; return whether one was removed."""
        return self._rows.pop(key, None) is not None


def _table(name: str, key: str, **options: Any):
    return field(default_factory=lambda: Table(name, key, **options))


@dataclass
class Database:
    """Every table of the game module."""

    person: Table = _table("person", "identity")
    player: Table = _table("player", "identity")
    sector_location: Table = _table("sector_location", "id", auto_inc=True)
    asteroid: Table = _table("asteroid", "entity_id")
    ship: Table = _table("ship", "entity_id")
    stellar_object: Table = _table("stellar_object", "id", auto_inc=True)
    player_controlled_stellar_object: Table = _table(
        "player_controlled_stellar_object", "identity", unique=("controlled_sobj_id",)
    )
    stellar_object_internal: Table = _table("stellar_object_internal", "sobj_id", public=False)
    stellar_object_velocity: Table = _table("stellar_object_velocity", "sobj_id")
    stellar_object_hi_res: Table = _table("stellar_object_hi_res", "sobj_id")
    stellar_object_low_res: Table = _table("stellar_object_low_res", "sobj_id")
    stellar_object_controller_turn_left: Table = _table(
        "stellar_object_controller_turn_left", "sobj_id", public=False
    )
    stellar_object_player_window: Table = _table(
        "stellar_object_player_window", "identity", unique=("sobj_id",)
    )
    update_sobj_transform_timer: Table = _table(
        "update_sobj_transform_timer", "scheduled_id", auto_inc=True, public=False
    )
    move_ships_timer: Table = _table("move_ships_timer", "scheduled_id", auto_inc=True, public=False)
    update_player_windows_timer: Table = _table(
        "update_player_windows_timer", "scheduled_id", auto_inc=True, public=False
    )


@dataclass
class ReducerContext:
    """The database, the caller's identity and the module's own identity."""

    db: Database
    sender: str
    identity: str
    rng: random.Random = field(default_factory=random.Random)

    def is_server(self) -> bool:
        return self.sender == self.identity