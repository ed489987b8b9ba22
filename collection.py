"""Ordered key -> value collection used to hold records and scraped lists.

A Collection is a single insertion-ordered mapping. List behaviour is the
special case of integer keys 0..n-1, which is what you get when building one
from a list or any non-mapping iterable.

    c = Collection([3, 1, 2])
    c.sort_asc().values()          -> [1, 2, 3]
    c.filter(lambda v, k: v > 1)   -> Collection({0: 3, 2: 2})
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Iterable, Iterator, Mapping
from functools import cmp_to_key
from typing import Any

_SORT_MODES = ("regular", "numeric", "string")


def to_plain(value: Any) -> Any:
    """Recursively turn Collections and Records into plain dicts/lists."""
    if isinstance(value, Collection):
        return value.to_dict()
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return value.to_dict()
    if isinstance(value, list):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    return value


def _sort_key(mode: str) -> Callable[[Any], Any]:
    if mode not in _SORT_MODES:
        raise ValueError(f"Unknown sort mode {mode!r}, expected one of {_SORT_MODES}")
    if mode == "numeric":
        return lambda v: float(v) if v is not None else -math.inf
    if mode == "string":
        return lambda v: "" if v is None else str(v)
    return lambda v: v


def _compare(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


class Collection:
    """Insertion-ordered mapping with functional helpers."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping | Iterable | None = None):
        if items is None:
            self._items: dict[Any, Any] = {}
        elif isinstance(items, Collection):
            self._items = dict(items._items)
        elif isinstance(items, Mapping):
            self._items = dict(items)
        elif isinstance(items, (str, bytes)) or not isinstance(items, Iterable):
            raise TypeError(
                f"Collection items must be a mapping or an iterable, got {type(items).__name__}"
            )
        else:
            self._items = dict(enumerate(items))

    @classmethod
    def new(cls, items: Mapping | Iterable | None = None) -> Collection:
        return cls(items)

    # ------------------------------------------------------------------
    # In-place mutation (returns self)
    # ------------------------------------------------------------------

    def put(self, key: str | int, value: Any) -> Collection:
        """Add or replace the value at key. Existing keys keep their position."""
        self._items[key] = value
        return self

    def push(self, value: Any) -> Collection:
        """Append value under the next free integer key."""
        int_keys = [k for k in self._items if isinstance(k, int)]
        self._items[max(int_keys) + 1 if int_keys else 0] = value
        return self

    def each(self, callback: Callable[[Any, Any], Any]) -> Collection:
        """Call callback(value, key) for every item."""
        for key, value in self._items.items():
            callback(value, key)
        return self

    # ------------------------------------------------------------------
    # Transformations (return a new Collection)
    # ------------------------------------------------------------------

    def filter(self, callback: Callable[[Any, Any], bool] | None = None) -> Collection:
        """Keep items where callback(value, key) is truthy; keys are preserved."""
        if callback is None:
            return Collection({k: v for k, v in self._items.items() if v})
        return Collection({k: v for k, v in self._items.items() if callback(v, k)})

    def except_keys(self, keys: Iterable) -> Collection:
        excluded = set(keys)
        return Collection({k: v for k, v in self._items.items() if k not in excluded})

    def map(self, callback: Callable[[Any, Any], Any]) -> Collection:
        """Apply callback(value, key) to every item; keys are preserved."""
        return Collection({k: callback(v, k) for k, v in self._items.items()})

    def slice(self, offset: int, length: int | None = None) -> Collection:
        """Items from position offset, at most length of them; keys are preserved."""
        items = list(self._items.items())
        if offset < 0:
            offset = max(len(items) + offset, 0)
        if length is None:
            selected = items[offset:]
        elif length < 0:
            selected = items[offset:length]
        else:
            selected = items[offset:offset + length]
        return Collection(dict(selected))

    def sort_by(self, callbacks: Callable | list[Callable], mode: str = "regular") -> Collection:
        """Stable multi-key sort. The result is re-keyed 0..n-1.

        Each callback maps a value to a sort key; later callbacks break ties
        left by earlier ones.
        """
        if callable(callbacks):
            callbacks = [callbacks]
        to_key = _sort_key(mode)

        def compare(a: Any, b: Any) -> int:
            for callback in callbacks:
                result = _compare(to_key(callback(a)), to_key(callback(b)))
                if result:
                    return result
            return 0

        return Collection(sorted(self._items.values(), key=cmp_to_key(compare)))

    def sort_asc(self, mode: str = "regular") -> Collection:
        """Sort by value ascending; keys are preserved."""
        to_key = _sort_key(mode)
        return Collection(dict(sorted(self._items.items(), key=lambda kv: to_key(kv[1]))))

    def sort_desc(self, mode: str = "regular") -> Collection:
        """Sort by value descending; keys are preserved."""
        to_key = _sort_key(mode)
        return Collection(
            dict(sorted(self._items.items(), key=lambda kv: to_key(kv[1]), reverse=True))
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def reduce(self, callback: Callable[[Any, Any, Any], Any], initial: Any = None) -> Any:
        """Fold items with callback(carry, value, key)."""
        carry = initial
        for key, value in self._items.items():
            carry = callback(carry, value, key)
        return carry

    def contains(self, value: Any, key: str | None = None) -> bool:
        """Whether any item equals value, or (with key) has field key equal to value."""
        for item in self._items.values():
            if key is None:
                if item == value:
                    return True
            elif isinstance(item, Collection):
                if item.contains(value, key):
                    return True
            elif _field(item, key, _MISSING) == value:
                return True
        return False

    def first(self) -> Any:
        """First value in order, or None when empty."""
        return next(iter(self._items.values()), None)

    def first_where(self, key: str, value: Any) -> Any:
        """First item whose field key equals value, searching nested collections."""
        for item in self._items.values():
            if isinstance(item, Collection):
                found = item.first_where(key, value)
                if found is not None:
                    return found
            elif _field(item, key, _MISSING) == value:
                return item
        return None

    def has(self, key: str | int) -> bool:
        return key in self._items

    def get(self, key: str | int, default: Any = None) -> Any:
        return self._items.get(key, default)

    def count(self) -> int:
        return len(self._items)

    def keys(self) -> list:
        return list(self._items.keys())

    def values(self, unique: bool = False) -> list:
        values = list(self._items.values())
        if not unique:
            return values
        seen: list = []
        for value in values:
            if value not in seen:
                seen.append(value)
        return seen

    def items(self) -> Iterator[tuple[Any, Any]]:
        return iter(self._items.items())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Plain ordered dict, flattening nested Collections and Records."""
        return {k: to_plain(v) for k, v in self._items.items()}

    def to_list(self) -> list:
        return [to_plain(v) for v in self._items.values()]

    def is_list(self) -> bool:
        """True when keys are exactly 0..n-1 in order."""
        return list(self._items.keys()) == list(range(len(self._items)))

    def to_json(self, **kwargs: Any) -> str:
        payload = self.to_list() if self.is_list() else self.to_dict()
        return json.dumps(payload, ensure_ascii=False, **kwargs)

    @staticmethod
    def flatten(items: Iterable, depth: float = math.inf) -> list:
        """Flatten nested lists/Collections up to depth levels, preserving order."""
        result: list = []
        for item in items:
            nested = isinstance(item, (list, tuple, Collection))
            if nested and depth > 1:
                result.extend(Collection.flatten(item, depth - 1))
            elif nested:
                result.extend(item)
            else:
                result.append(item)
        return result

    # ------------------------------------------------------------------
    # Python protocols
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator:
        return iter(self._items.values())

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __getitem__(self, key: str | int) -> Any:
        return self._items[key]

    def __setitem__(self, key: str | int, value: Any) -> None:
        self.put(key, value)

    def __delitem__(self, key: str | int) -> None:
        del self._items[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Collection):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())

    def __repr__(self) -> str:
        return f"Collection({self._items!r})"


_MISSING = object()


def _field(item: Any, key: str, default: Any) -> Any:
    """Read key from a mapping item or attribute from a record item."""
    if isinstance(item, Mapping):
        return item.get(key, default)
    if hasattr(item, "__dataclass_fields__"):
        return getattr(item, key, default) if key in item.__dataclass_fields__ else default
    return getattr(item, key, default)
