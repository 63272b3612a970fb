"""ReactiveList — an observable list with per-element add/remove events.

Reading ``use()``, ``at()``, ``find()`` or ``size()`` inside a derivation
registers a dependency on the whole list: any structural change invalidates
every reader. ``value``, ``peek()`` and the container dunders read an
untracked snapshot. All reads hand out copies, so the backing list can only
change through the methods below, and each of them notifies exactly once.

Per call, notification runs in this order: dependents are invalidated, then
element listeners fire (removals before additions), then whole-list
listeners receive a copy of the items.
"""

from __future__ import annotations

from typing import Callable, Generic, Iterable, Iterator, Sequence, TypeVar

from rxcells._tracking import track_dependency
from rxcells.computed import ComputedList
from rxcells.core import Dependent, Unsubscribe, invalidate_all, values_equal

T = TypeVar("T")
R = TypeVar("R")

ItemListener = Callable[[T, int], None]


def _subscribe(listeners: dict, callback) -> Unsubscribe:
    listeners[callback] = None

    def _unsubscribe() -> None:
        listeners.pop(callback, None)

    return _unsubscribe


class ReactiveList(Generic[T]):
    """An ordered, observable sequence."""

    __slots__ = ("_items", "_dependents", "_listeners", "_added", "_removed")

    def __init__(self, items: Iterable[T] | None = None) -> None:
        self._items: list[T] = list(items) if items is not None else []
        self._dependents: dict[Dependent, None] = {}
        self._listeners: dict[Callable[[list[T]], None], None] = {}
        self._added: dict[ItemListener, None] = {}
        self._removed: dict[ItemListener, None] = {}

    # --- Read operations ---

    @property
    def value(self) -> list[T]:
        """A copy of the items. Never registers a dependency."""
        return list(self._items)

    @value.setter
    def value(self, items: Iterable[T]) -> None:
        self.replace(items)

    def peek(self) -> list[T]:
        return list(self._items)

    def use(self) -> list[T]:
        """A copy of the items. If inside a derivation, registers the dependency."""
        track_dependency(self)
        return list(self._items)

    def at(self, index: int, default: T | None = None) -> T | None:
        """Item at ``index``, or ``default`` when out of range."""
        track_dependency(self)
        if 0 <= index < len(self._items):
            return self._items[index]
        return default

    def find(self, predicate: Callable[[T], bool], default: T | None = None) -> T | None:
        track_dependency(self)
        return next((item for item in self._items if predicate(item)), default)

    def size(self) -> int:
        track_dependency(self)
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, item: object) -> bool:
        return self._index(item) is not None

    def _index(self, item: object) -> int | None:
        return next((i for i, x in enumerate(self._items) if values_equal(x, item)), None)

    # --- Write operations (notify) ---

    def set(self, items: Iterable[T]) -> None:
        self.replace(items)

    def append(self, item: T) -> None:
        self._items.append(item)
        self._changed(added=[(item, len(self._items) - 1)])

    def extend(self, items: Iterable[T]) -> None:
        new = list(items)
        if not new:
            return
        start = len(self._items)
        self._items.extend(new)
        self._changed(added=list(zip(new, range(start, start + len(new)))))

    def insert(self, index: int, item: T) -> None:
        """Insert with ``list.insert`` index rules; events report the final position."""
        size = len(self._items)
        if index < 0:
            index = max(size + index, 0)
        index = min(index, size)
        self._items.insert(index, item)
        self._changed(added=[(item, index)])

    def remove(self, item: T) -> bool:
        """Remove the first item matching ``item`` under values_equal. Returns False if absent."""
        index = self._index(item)
        if index is None:
            return False
        item = self._items.pop(index)
        self._changed(removed=[(item, index)])
        return True

    def remove_at(self, index: int) -> T | None:
        """Remove and return the item at index, or None if out of range."""
        if not 0 <= index < len(self._items):
            return None
        item = self._items.pop(index)
        self._changed(removed=[(item, index)])
        return item

    def update(self, index: int, item: T) -> bool:
        """Replace the item at index. Returns False if out of range."""
        if not 0 <= index < len(self._items):
            return False
        old = self._items[index]
        self._items[index] = item
        self._changed(removed=[(old, index)], added=[(item, index)])
        return True

    def clear(self) -> None:
        if not self._items:
            return
        old = self._items
        self._items = []
        self._changed(removed=self._removals(old))

    def replace(self, items: Iterable[T]) -> None:
        """Swap in new items. No-op if they match the current items one for one."""
        new = list(items)
        old = self._items
        if len(old) == len(new) and all(map(values_equal, old, new)):
            return
        self._items = new
        self._changed(removed=self._removals(old), added=list(zip(new, range(len(new)))))

    @staticmethod
    def _removals(old: list[T]) -> list[tuple[T, int]]:
        # Last to first, so each index is valid at the moment it is removed.
        return [(old[index], index) for index in reversed(range(len(old)))]

    def _changed(
        self,
        *,
        removed: Sequence[tuple[T, int]] = (),
        added: Sequence[tuple[T, int]] = (),
    ) -> None:
        try:
            self.notify_dependents()
        finally:
            for item, index in removed:
                for listener in list(self._removed):
                    listener(item, index)
            for item, index in added:
                for listener in list(self._added):
                    listener(item, index)
            for listener in list(self._listeners):
                listener(list(self._items))

    # --- Observable ---

    def add_dependent(self, dependent: Dependent) -> None:
        self._dependents[dependent] = None

    def remove_dependent(self, dependent: Dependent) -> None:
        self._dependents.pop(dependent, None)

    def notify_dependents(self) -> None:
        invalidate_all(self._dependents)

    def on_change(self, callback: Callable[[list[T]], None]) -> Unsubscribe:
        """Register a whole-list listener, called once per structural change."""
        return _subscribe(self._listeners, callback)

    def on_added(self, callback: ItemListener) -> Unsubscribe:
        """Register ``callback(item, index)`` for every element added."""
        return _subscribe(self._added, callback)

    def on_removed(self, callback: ItemListener) -> Unsubscribe:
        """Register ``callback(item, index)`` for every element removed."""
        return _subscribe(self._removed, callback)

    # --- Derivations ---

    def map(self, selector: Callable[[T], R]) -> ComputedList[R]:
        return ComputedList(lambda: [selector(item) for item in self.use()])

    def filter(self, predicate: Callable[[T], bool]) -> ComputedList[T]:
        return ComputedList(lambda: [item for item in self.use() if predicate(item)])

    def __repr__(self) -> str:
        return f"ReactiveList({self._items!r})"
