"""Selection state shared by the charts.

The controller owns the one current :class:`Selection`. Charts read it, the UI
shell writes it through :meth:`SelectionController.update`, and subscribers are
notified after every effective change. A version counter lets a consumer that
computed a payload for an older selection recognise it as stale and drop it.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from core.filters import Selection, normalize_selection


logger = logging.getLogger(__name__)

Listener = Callable[[Selection, Selection], None]
T = TypeVar("T")

# Changing a key invalidates these dependent fields (valid countries depend on gender + style).
DEPENDENT_RESETS: Dict[str, Tuple[str, ...]] = {
    "gender": ("country",),
    "stroke_style": ("country",),
}


class SelectionController:
    def __init__(self, selection: Optional[Selection] = None) -> None:
        self._selection = selection or Selection()
        self._version = 0
        self._listeners: List[Listener] = []

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def version(self) -> int:
        return self._version

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(old, new)``; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes: object) -> Selection:
        """Apply ``changes``; dependent fields reset unless set in the same call."""
        known = {f.name for f in fields(Selection)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise TypeError(f"unknown selection field(s): {', '.join(unknown)}")

        current = asdict(self._selection)
        merged = {**current, **changes}
        defaults = asdict(Selection())
        for key, dependents in DEPENDENT_RESETS.items():
            if key in changes and changes[key] != current[key]:
                for dep in dependents:
                    if dep not in changes:
                        merged[dep] = defaults[dep]

        new = normalize_selection(merged)
        if new == self._selection:
            return new

        old = self._selection
        self._selection = new
        self._version += 1
        logger.debug("selection v%d: %s", self._version, new)
        for listener in list(self._listeners):
            listener(old, new)
        return new

    def ticket(self) -> int:
        return self._version

    def is_current(self, ticket: int) -> bool:
        return ticket == self._version

    def accept(self, ticket: int, payload: T) -> Optional[T]:
        """Return ``payload`` if it was computed for the current selection, else None."""
        if self.is_current(ticket):
            return payload
        logger.debug("discarding stale payload (ticket %d, current %d)", ticket, self._version)
        return None
