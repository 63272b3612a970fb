"""Capabilities shared by every reactive node, and the equality they agree on."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)

Unsubscribe = Callable[[], None]

# Compared by value. Everything else compares by identity.
_SCALARS = (type(None), bool, int, float, complex, str, bytes)


def values_equal(a: Any, b: Any) -> bool:
    """Identity, or ``==`` for primitive scalars. Never a deep comparison."""
    if a is b:
        return True
    return type(a) in _SCALARS and type(b) in _SCALARS and a == b


def invalidate_all(dependents: Iterable[Dependent]) -> None:
    """Invalidate every dependent, even if some of them raise.

    The first error is re-raised once the sweep is complete; later ones are
    recorded as notes on it.
    """
    first: Exception | None = None
    for dependent in list(dependents):
        try:
            dependent.invalidate()
        except Exception as exc:
            if first is None:
                first = exc
            else:
                first.add_note(f"also raised while invalidating {dependent!r}: {exc!r}")
    if first is not None:
        raise first


@runtime_checkable
class Dependent(Protocol):
    """Something that must be told when a value it read has changed."""

    def invalidate(self) -> None: ...


@runtime_checkable
class Observable(Protocol):
    """Something that keeps a set of dependents and can notify them."""

    def add_dependent(self, dependent: Dependent) -> None: ...

    def remove_dependent(self, dependent: Dependent) -> None: ...

    def notify_dependents(self) -> None: ...


@runtime_checkable
class Reactive(Observable, Protocol[T_co]):
    """Observable with a readable value and change subscriptions."""

    @property
    def value(self) -> T_co: ...

    def peek(self) -> T_co: ...

    def use(self) -> T_co: ...

    def on_change(self, callback: Callable[[Any], None]) -> Unsubscribe: ...


def is_reactive(obj: Any) -> bool:
    """Whether obj offers the Reactive read surface.

    Checked on the type so a dirty Computed is not evaluated by the check.
    """
    cls = type(obj)
    return all(callable(getattr(cls, name, None)) for name in ("peek", "use", "on_change"))
