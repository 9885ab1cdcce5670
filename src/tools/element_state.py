"""
Element Tool State Store.

Client-only tool state (answer eliminations, highlights, ...) keyed per
interaction element. Keys are global element ids::

    <assessmentId>:<sectionId>:<itemId>:<elementId>

so the same element id in different items or sections never collides. The
colon is the field separator and is not escaped; ids containing ``:`` are not
supported.

This state is ephemeral and deliberately kept out of the attempt session.
Hosts persist it through ``set_on_state_change`` and rehydrate with
``load_state``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable

SEPARATOR = ":"

ElementStateSnapshot = dict[str, dict[str, Any]]
StateListener = Callable[[ElementStateSnapshot], None]


@dataclass(frozen=True)
class ElementIdComponents:
    assessment_id: str
    section_id: str
    item_id: str
    element_id: str


def get_global_element_id(
    assessment_id: str, section_id: str, item_id: str, element_id: str
) -> str:
    """
    >>> get_global_element_id("demo", "s1", "q1", "mc1")
    'demo:s1:q1:mc1'
    """
    return SEPARATOR.join((assessment_id, section_id, item_id, element_id))


def parse_global_element_id(global_element_id: str) -> ElementIdComponents | None:
    """Split a global element id; None unless it has exactly four parts."""
    parts = global_element_id.split(SEPARATOR)
    if len(parts) != 4:
        return None
    return ElementIdComponents(*parts)


class ElementToolStateStore:
    """
    ``{globalElementId: {toolId: state}}`` with scoped eviction.

    Every mutation notifies subscribers synchronously, in subscription order,
    then calls the persistence hook (if set) with a full snapshot.
    ``load_state`` notifies subscribers only; the data came from persistence.
    """

    def __init__(self):
        self._states: ElementStateSnapshot = {}
        self._listeners: list[StateListener] = []
        self._on_state_change: StateListener | None = None

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    def set_state(self, global_element_id: str, tool_id: str, state: Any) -> None:
        self._states.setdefault(global_element_id, {})[tool_id] = state
        self._changed()

    def get_state(self, global_element_id: str, tool_id: str) -> Any:
        return self._states.get(global_element_id, {}).get(tool_id)

    def get_element_state(self, global_element_id: str) -> dict[str, Any]:
        """All tool states for one element (a copy; empty if none)."""
        return dict(self._states.get(global_element_id, {}))

    def get_all_state(self) -> ElementStateSnapshot:
        """Snapshot of the whole store, safe to serialize or mutate."""
        return copy.deepcopy(self._states)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every mutation.

        Returns:
            A callable that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_on_state_change(self, hook: StateListener | None) -> None:
        """Persistence hook, called with the full snapshot after each mutation."""
        self._on_state_change = hook

    def _notify_listeners(self) -> None:
        # Copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(self.get_all_state())

    def _changed(self) -> None:
        self._notify_listeners()
        if self._on_state_change is not None:
            self._on_state_change(self.get_all_state())

    # ------------------------------------------------------------------
    # Rehydration and eviction
    # ------------------------------------------------------------------

    def load_state(self, snapshot: ElementStateSnapshot) -> None:
        """Replace the whole store (rehydration, not a merge)."""
        self._states = {key: dict(tools) for key, tools in snapshot.items()}
        self._notify_listeners()

    def clear_element(self, global_element_id: str) -> None:
        self._states.pop(global_element_id, None)
        self._changed()

    def clear_tool(self, tool_id: str) -> None:
        """Remove one tool's state from every element."""
        for key in list(self._states):
            tools = self._states[key]
            tools.pop(tool_id, None)
            if not tools:
                del self._states[key]
        self._changed()

    def clear_section(self, assessment_id: str, section_id: str) -> None:
        prefix = f"{assessment_id}{SEPARATOR}{section_id}{SEPARATOR}"
        for key in [key for key in self._states if key.startswith(prefix)]:
            del self._states[key]
        self._changed()

    def clear_all(self) -> None:
        self._states.clear()
        self._changed()
