"""rxcells error hierarchy.

Derivation faults are not wrapped: whatever a derivation function raises
reaches the caller unchanged.
"""


class ReactiveError(Exception):
    """Base error for all rxcells misuse."""


class ReadOnlyError(ReactiveError, AttributeError):
    """A derived value was assigned. Derived values are computed, never set."""
