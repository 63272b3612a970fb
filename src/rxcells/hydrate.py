"""hydrate() — keep plain attributes in sync with reactive nodes."""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any, Callable

from rxcells.core import is_reactive
from rxcells.watch import WatchHandle, watch

logger = logging.getLogger("rxcells.hydrate")

Watcher = Callable[[Any, Callable[[Any], None]], WatchHandle]


def _setter(target: Any, key: str) -> Callable[[Any], None]:
    if isinstance(target, MutableMapping):
        def _assign(value: Any) -> None:
            target[key] = value
    else:
        def _assign(value: Any) -> None:
            setattr(target, key, value)
    return _assign


def hydrate(
    target: Any,
    bindings: Mapping[str, Any],
    *,
    watcher: Watcher = watch,
) -> Callable[[], None]:
    """Bind target's attributes to reactive nodes or plain values.

    Reactive entries are watched: the attribute is seeded right away and
    rewritten on every change. Plain entries are assigned once. Mapping
    targets get item assignment instead of setattr.

    Returns one teardown that disposes every subscription made here.

    Usage:
        first = State("John")
        person = Person()
        dispose = hydrate(person, {
            "name": first,
            "full_name": Computed(lambda: f"{first.use()} Doe"),
            "kind": "person",
        })
        first.set("Jane")
        # person.full_name == "Jane Doe"
        dispose()
    """
    handles: list[WatchHandle] = []

    def _dispose() -> None:
        while handles:
            handles.pop().dispose()

    try:
        for key, binding in bindings.items():
            assign = _setter(target, key)
            if is_reactive(binding):
                handles.append(watcher(binding, assign))
            else:
                assign(binding)
    except Exception:
        _dispose()
        raise
    logger.debug("Hydrated %s: %d bindings, %d reactive", type(target).__name__, len(bindings), len(handles))
    return _dispose
