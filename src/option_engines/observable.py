"""Change notification and lazy recomputation.

Objects that hold pricing-relevant parameters derive from :class:`Observable`
and call :meth:`Observable.notify_observers` whenever one of them changes.
Dependents subscribe an explicit callback; there is no global registry.

:class:`LazyObject` adds a per-instance dirty flag on top. Its
:meth:`~LazyObject.update` is a valid observer callback, so an engine can
subscribe to a process and have its cached results dropped on any change.
"""

from __future__ import annotations

import logging

from .typing import Callback

logger = logging.getLogger(__name__)


class Observable:
    """Holds a list of subscriber callbacks invoked on invalidation."""

    def __init__(self) -> None:
        self._observers: list[Callback] = []

    def register_observer(self, callback: Callback) -> Callback:
        """Subscribe ``callback``; registering twice is a no-op.

        Returns the callback so it can be kept for :meth:`unregister_observer`.
        """
        if callback not in self._observers:
            self._observers.append(callback)
        return callback

    def unregister_observer(self, callback: Callback) -> None:
        try:
            self._observers.remove(callback)
        except ValueError:
            raise ValueError("callback is not registered") from None

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    def notify_observers(self) -> None:
        # copy: a callback may unregister itself
        for callback in list(self._observers):
            callback()


class LazyObject(Observable):
    """Observable whose results are computed on demand and cached.

    Subclasses implement :meth:`perform_calculations`, which must either
    store a complete set of results or raise. The dirty flag is cleared
    only after it returns, so a failed pass leaves nothing half-valid.
    """

    def __init__(self) -> None:
        super().__init__()
        self._calculated = False
        self.recalculation_count = 0

    @property
    def is_calculated(self) -> bool:
        return self._calculated

    def update(self) -> None:
        """Observer callback: drop cached results and forward the notice."""
        was_calculated = self._calculated
        self._calculated = False
        if was_calculated:
            logger.debug("%s invalidated", type(self).__name__)
        self.notify_observers()

    def invalidate(self) -> None:
        """Drop cached results without notifying observers."""
        self._calculated = False

    def recalculate(self) -> None:
        self.invalidate()
        self.calculate()

    def calculate(self) -> None:
        if self._calculated:
            return
        self.perform_calculations()
        self.recalculation_count += 1
        self._calculated = True

    def perform_calculations(self) -> None:  # pragma: no cover
        raise NotImplementedError
