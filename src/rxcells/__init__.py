"""rxcells: cells, derivations and reactive lists with implicit dependency tracking."""

from importlib.metadata import version as _version

__version__ = _version("rxcells")

from rxcells._tracking import DependencyTracker, TrackResult, get_tracker, use_tracker
from rxcells.core import Dependent, Observable, Reactive, values_equal
from rxcells.errors import ReactiveError, ReadOnlyError
from rxcells.computed import Computed, ComputedList, computed
from rxcells.state import State, set_scheduler
from rxcells.reactive_list import ReactiveList
from rxcells.watch import watch, WatchHandle
from rxcells.hydrate import hydrate
# textual NOT auto-imported — opt-in only

__all__ = [
    "State",
    "Computed",
    "ComputedList",
    "computed",
    "ReactiveList",
    "watch",
    "WatchHandle",
    "hydrate",
    "set_scheduler",
    "DependencyTracker",
    "TrackResult",
    "get_tracker",
    "use_tracker",
    "Dependent",
    "Observable",
    "Reactive",
    "values_equal",
    "ReactiveError",
    "ReadOnlyError",
]
