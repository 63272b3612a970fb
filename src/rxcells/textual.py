"""Textual integration for rxcells. Opt-in — requires textual.

Widget-facing callbacks are guarded here, not at call sites: they are skipped
while the app is not running or is paused, marshaled through
``app.call_from_thread`` when triggered off the app's thread, and a
``NoMatches`` from a widget query that raced a recompose is dropped.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from rxcells.hydrate import hydrate as _hydrate
from rxcells.watch import watch as _watch

logger = logging.getLogger("rxcells.textual")

# Keyed by id(app) so several apps can coexist in one process (and in tests).
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, callback):
    main = threading.get_ident()

    def _safe(value):
        try:
            callback(value)
        except NoMatches:
            logger.debug("Dropped update for missing widget", exc_info=True)

    def _guarded(value):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    return _guarded


def watch(app, source, callback):
    """watch() that safely bridges to Textual widgets.

    The initial call is guarded too, so watching before the app runs does
    not touch widgets.
    """
    return _watch(source, _guard(app, callback))


def hydrate(app, target, bindings):
    """hydrate() a widget, with every reactive binding guarded like watch()."""
    return _hydrate(target, bindings, watcher=lambda source, assign: watch(app, source, assign))
