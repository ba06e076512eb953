"""Open-addressing hash table of audio channels keyed by channel id."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

_MAX_LOAD = 0.75
_MASK64 = (1 << 64) - 1
_NIL_KEY = 0


def hash_bits(key: int) -> int:
    """Mix the bits of a 64-bit key into a 30-bit hash."""
    h = key & _MASK64
    h = (~h + (h << 18)) & _MASK64
    h ^= h >> 31
    h = (h * 21) & _MASK64
    h ^= h >> 11
    h = (h + (h << 6)) & _MASK64
    h ^= h >> 22
    return h & 0x3FFFFFFF


@dataclass(slots=True)
class _Entry:
    key: int
    value: Any


class _Marker:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return self.name


_EMPTY = _Marker("EMPTY")
_TOMBSTONE = _Marker("TOMBSTONE")


def _find(slots: list, key: int) -> tuple[bool, int | None]:
    """Locate ``key``; otherwise return the slot where it would be placed."""
    capacity = len(slots)
    if capacity == 0:
        return False, None
    start = hash_bits(key) % capacity
    index = start
    tombstone: int | None = None
    while True:
        slot = slots[index]
        if slot is _EMPTY:
            return False, tombstone if tombstone is not None else index
        if slot is _TOMBSTONE:
            if tombstone is None:
                tombstone = index
        elif slot.key == key:
            return True, index
        index = (index + 1) % capacity
        if index == start:
            return False, tombstone


class ChannelTable:
    """Maps positive integer ids to channels.

    Iterating the table yields the stored channels in slot order. Entries
    may be deleted while iterating.
    """

    def __init__(self) -> None:
        self._slots: list = []
        self._count = 0  # live entries plus tombstones
        self._items = 0  # live entries

    def _resize(self, capacity: int) -> None:
        slots: list = [_EMPTY] * capacity
        self._count = 0
        for slot in self._slots:
            if not isinstance(slot, _Entry):
                continue
            found, index = _find(slots, slot.key)
            if not found:
                slots[index] = _Entry(slot.key, slot.value)
                self._count += 1
        self._slots = slots

    def set(self, key: int, channel: Any) -> Any:
        """Store ``channel`` under ``key`` and return it."""
        if key == _NIL_KEY:
            raise ValueError("key 0 is reserved")
        capacity = len(self._slots)
        if self._items + 1 > capacity * _MAX_LOAD:
            self._resize(4 if capacity < 4 else capacity * 2)
        found, index = _find(self._slots, key)
        if found:
            self._slots[index].value = channel
        else:
            if self._slots[index] is not _TOMBSTONE:
                self._count += 1
            self._items += 1
            self._slots[index] = _Entry(key, channel)
        return channel

    def get(self, key: int) -> Any | None:
        """The channel stored under ``key``, or None."""
        if self._count == 0:
            return None
        found, index = _find(self._slots, key)
        return self._slots[index].value if found else None

    def delete(self, key: int) -> bool:
        """Remove ``key``; report whether it was present."""
        if self._count == 0:
            return False
        found, index = _find(self._slots, key)
        if not found:
            return False
        self._items -= 1
        self._slots[index] = _TOMBSTONE
        return True

    def add_all(self, other: ChannelTable) -> None:
        """Copy every entry of ``other`` into this table."""
        for slot in list(other._slots):
            if isinstance(slot, _Entry):
                self.set(slot.key, slot.value)

    def clear(self) -> None:
        self._slots = []
        self._count = 0
        self._items = 0

    def __iter__(self) -> Iterator[Any]:
        found = 0
        for slot in self._slots:
            if found >= self._items:
                return
            if isinstance(slot, _Entry):
                found += 1
                yield slot.value

    def __len__(self) -> int:
        return self._items

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, int) or self._count == 0:
            return False
        found, _ = _find(self._slots, key)
        return found