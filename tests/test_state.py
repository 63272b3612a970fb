"""Tests for State."""

import threading

import pytest

import rxcells.state as _state_mod
from rxcells import Computed, State, set_scheduler


@pytest.fixture
def restore_scheduler():
    old_sched, old_thread = _state_mod._scheduler, _state_mod._scheduler_thread
    yield
    _state_mod._scheduler = old_sched
    _state_mod._scheduler_thread = old_thread


class TestState:
    def test_get_set(self):
        s = State(42)
        assert s.value == 42
        assert s.peek() == 42
        s.set(100)
        assert s.value == 100

    def test_value_setter_writes(self):
        s = State("a")
        log = []
        s.on_change(log.append)
        s.value = "b"
        assert log == ["b"]

    def test_dedup(self):
        """Setting the same value should not notify anyone."""
        s = State(42)
        calls = 0

        def fn():
            nonlocal calls
            calls += 1
            return s.use()

        c = Computed(fn)
        log = []
        s.on_change(log.append)
        s.set(42)
        assert log == []
        assert not c.dirty
        assert calls == 1

    def test_containers_compare_by_identity(self):
        items = [1, 2]
        s = State(items)
        log = []
        s.on_change(log.append)
        s.set(items)
        assert log == []
        s.set([1, 2])
        assert len(log) == 1

    def test_dependents_before_listeners(self):
        s = State(1)
        doubled = Computed(lambda: s.use() * 2)
        seen = []
        s.on_change(lambda v: seen.append((v, doubled.value)))
        s.set(4)
        assert seen == [(4, 8)]

    def test_unsubscribe(self):
        s = State(0)
        log = []
        unsubscribe = s.on_change(log.append)
        s.set(1)
        unsubscribe()
        unsubscribe()
        s.set(2)
        assert log == [1]

    def test_value_read_does_not_track(self):
        s = State(1)
        calls = 0

        def fn():
            nonlocal calls
            calls += 1
            return s.value

        c = Computed(fn)
        s.set(2)
        assert c.value == 1
        assert calls == 1

    def test_map_and_filter(self):
        s = State(3)
        doubled = s.map(lambda v: v * 2)
        is_even = s.filter(lambda v: v % 2 == 0)
        assert doubled.value == 6
        assert is_even.value is False
        s.set(4)
        assert doubled.value == 8
        assert is_even.value is True

    def test_repr(self):
        assert repr(State(5)) == "State(5)"


class TestAutoMarshal:
    """State.set() hands foreign-thread writes to the scheduler."""

    def test_owning_thread_is_synchronous(self, restore_scheduler):
        calls = []
        set_scheduler(lambda f: (calls.append(f), f()))
        s = State(0)
        s.set(42)
        assert s.value == 42
        assert calls == []

    def test_background_thread_marshals(self, restore_scheduler):
        calls = []
        set_scheduler(lambda f: (calls.append(f), f()))
        s = State(0)

        t = threading.Thread(target=lambda: s.set(99))
        t.start()
        t.join(timeout=2)

        assert len(calls) == 1
        assert s.value == 99

    def test_no_scheduler_is_direct(self, restore_scheduler):
        set_scheduler(None)
        s = State(0)
        t = threading.Thread(target=lambda: s.set(7))
        t.start()
        t.join(timeout=2)
        assert s.value == 7
