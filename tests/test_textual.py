"""Tests for rxcells.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from rxcells import State
from rxcells import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class _Label:
    pass


class TestWatch:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s = State(1)
        effects = []
        rtx.watch(app, s, effects.append)
        s.set(2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        s = State(1)
        effects = []
        rtx.watch(app, s, effects.append)
        with rtx.pause(app):
            s.set(2)
        assert effects == [1]

    def test_fires_when_safe(self):
        app = _MockApp()
        s = State(1)
        effects = []
        rtx.watch(app, s, effects.append)
        s.set(2)
        assert effects == [1, 2]

    def test_catches_nomatch(self):
        app = _MockApp()
        s = State(1)

        def _raise_nomatch(v):
            if v > 1:
                raise NoMatches("StatusFooter")

        handle = rtx.watch(app, s, _raise_nomatch)
        s.set(2)  # should not raise
        handle.dispose()

    def test_propagates_real_errors(self):
        app = _MockApp()
        s = State(1)

        def _raise_value_error(v):
            if v > 1:
                raise ValueError("boom")

        rtx.watch(app, s, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            s.set(2)

    def test_dispose_stops_watch(self):
        app = _MockApp()
        s = State(1)
        effects = []
        handle = rtx.watch(app, s, effects.append)
        handle.dispose()
        s.set(2)
        assert effects == [1]

    def test_thread_marshal(self):
        """Triggers from a background thread use call_from_thread."""
        app = _MockApp()
        s = State(1)
        effects = []
        rtx.watch(app, s, effects.append)

        t = threading.Thread(target=lambda: s.set(2))
        t.start()
        t.join()

        assert effects == [1, 2]
        assert len(app._call_from_thread_log) == 1


class TestHydrate:
    def test_binds_widget_attributes(self):
        app = _MockApp()
        label = _Label()
        text = State("ready")
        dispose = rtx.hydrate(app, label, {"renderable": text, "id": "status"})
        assert label.renderable == "ready"
        assert label.id == "status"
        text.set("busy")
        assert label.renderable == "busy"
        dispose()
        text.set("done")
        assert label.renderable == "busy"

    def test_paused_updates_skipped(self):
        app = _MockApp()
        label = _Label()
        text = State("a")
        rtx.hydrate(app, label, {"renderable": text})
        with rtx.pause(app):
            text.set("b")
        assert label.renderable == "a"


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        assert rtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with rtx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)
