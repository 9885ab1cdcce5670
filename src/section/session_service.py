"""
Section Session Service.

Bridges item-player session events and the canonical TestAttemptSession for
one section. Hosts keep a lighter "session state" projection
(``{currentItemIndex, visitedItemIdentifiers, itemSessions}``); ``resolve``
rebuilds the canonical session from it and ``to_session_state`` projects it
back.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from loguru import logger

from src.attempt.session import (
    AttemptIdentity,
    TestAttemptSession,
    create_new_test_attempt_session,
    set_current_position,
    to_item_sessions_record,
    upsert_item_session_from_pie_session_change,
    upsert_visited_item,
)
from src.section.item_session_contract import (
    DEFAULT_COMPONENT,
    METADATA_ONLY,
    ItemSessionContainer,
    merge_element_into_session,
    normalize_item_session_change,
    normalize_item_session_container,
)
from src.section.models import AssessmentSection


@dataclass
class ItemSessionChangedEvent:
    """Outbound event emitted after a session change was folded in."""

    item_id: str
    session: Any
    intent: str
    complete: bool | None = None
    component: str | None = None
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "itemId": self.item_id,
            "session": self.session,
            "intent": self.intent,
            "complete": self.complete,
            "component": self.component,
            "timestamp": self.timestamp,
        }


@dataclass
class SessionChangedResult:
    test_attempt_session: TestAttemptSession
    item_sessions: dict[str, Any]
    session_state: dict[str, Any]
    event: ItemSessionChangedEvent


def normalize_to_item_session(
    item_id: str,
    raw_session: Any,
    previous_item_session: Any = None,
    component: str | None = None,
) -> ItemSessionContainer | None:
    """
    Coerce a stored or reported session into an item session container.

    Whole item sessions are taken as-is; anything else is treated as one
    element's entry and merged into the previous item session.
    """
    if not isinstance(raw_session, dict):
        return None

    if isinstance(raw_session.get("data"), list):
        previous_id = (
            previous_item_session.get("id") if isinstance(previous_item_session, dict) else None
        )
        container = normalize_item_session_container(raw_session, previous_id or item_id)
        return ItemSessionContainer(id=container.id or item_id, data=container.data)

    entry_id = raw_session.get("id") if isinstance(raw_session.get("id"), str) else ""
    if not entry_id:
        entry_id = component or raw_session.get("component") or DEFAULT_COMPONENT
    return merge_element_into_session(
        item_id, previous_item_session, entry_id, {"id": entry_id, **raw_session}
    )


class SectionSessionService:
    """Folds item session events into the canonical attempt for a section."""

    # ------------------------------------------------------------------
    # Canonical session <-> host session state
    # ------------------------------------------------------------------

    def create_empty_attempt(
        self, assessment_id: str, section_id: str, section: AssessmentSection | None = None
    ) -> TestAttemptSession:
        identity = AttemptIdentity(
            identifier=f"tas_{assessment_id}_{section_id}",
            seed=f"{assessment_id}:{section_id}",
        )
        item_identifiers = section.item_identifiers() if section is not None else []
        return create_new_test_attempt_session(identity, assessment_id, item_identifiers)

    def resolve(
        self,
        assessment_id: str,
        section_id: str,
        section: AssessmentSection | None = None,
        session_state: dict[str, Any] | None = None,
    ) -> tuple[TestAttemptSession, dict[str, Any]]:
        """
        Build the canonical session for a section.

        Args:
            assessment_id: Assessment being delivered
            section_id: Section being delivered
            section: Section definition (realized item order)
            session_state: Host snapshot from ``to_session_state``, if resuming

        Returns:
            (test attempt session, item sessions record)
        """
        attempt = self.create_empty_attempt(assessment_id, section_id, section)
        if session_state:
            attempt = self._from_session_state(attempt, section_id, section, session_state)
        return attempt, to_item_sessions_record(attempt)

    def _from_session_state(
        self,
        attempt: TestAttemptSession,
        section_id: str,
        section: AssessmentSection | None,
        state: dict[str, Any],
    ) -> TestAttemptSession:
        index = state.get("currentItemIndex")
        attempt = set_current_position(
            attempt,
            current_item_index=index if isinstance(index, int) and index >= 0 else 0,
            current_section_identifier=(section.identifier if section else None) or section_id,
        )

        for visited in state.get("visitedItemIdentifiers") or []:
            if isinstance(visited, str) and visited:
                attempt = upsert_visited_item(attempt, visited)

        for item_id, entry in (state.get("itemSessions") or {}).items():
            # Entries are either ItemSession records ({session, isCompleted, ...}) or bare sessions
            is_record = isinstance(entry, dict) and "session" in entry
            raw = entry["session"] if is_record else entry
            normalized = normalize_to_item_session(item_id, raw)
            if normalized is None:
                continue
            pie_session_id = (entry.get("pieSessionId") if is_record else None) or normalized.id
            attempt = upsert_item_session_from_pie_session_change(
                attempt,
                item_identifier=item_id,
                pie_session_id=pie_session_id or item_id,
                is_completed=bool(entry.get("isCompleted")) if is_record else False,
                pie_session=normalized.to_dict(),
            )
        return attempt

    def to_session_state(self, session: TestAttemptSession) -> dict[str, Any]:
        index = session.navigation_state.current_item_index
        return {
            "currentItemIndex": index if index >= 0 else 0,
            "visitedItemIdentifiers": list(session.navigation_state.visited_item_identifiers),
            "itemSessions": {
                item_id: item_session.to_dict()
                for item_id, item_session in session.item_sessions.items()
            },
        }

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def apply_item_session_changed(
        self,
        item_id: str | None,
        session_detail: Any,
        test_attempt_session: TestAttemptSession,
        item_sessions: dict[str, Any],
    ) -> SessionChangedResult:
        """
        Fold one inbound session change into the attempt.

        Element payloads are merged by element id into the item's ``data``
        list, so a change to one interaction never drops another's response.
        A metadata-only change carrying ``complete=True`` marks an existing
        item session completed without touching its payload.

        Args:
            item_id: Item the event came from
            session_detail: ``{session, component?, complete?}``
            test_attempt_session: Current canonical session
            item_sessions: Current item sessions record (``to_item_sessions_record``)

        Returns:
            SessionChangedResult with the new session, record, host state and
            outbound event
        """
        previous = item_sessions.get(item_id) if item_id else None
        change = normalize_item_session_change(item_id, session_detail, previous)
        safe_item_id = change.item_id

        attempt = test_attempt_session
        if change.session is not None and safe_item_id:
            attempt = upsert_item_session_from_pie_session_change(
                attempt,
                item_identifier=safe_item_id,
                pie_session_id=change.session.id or safe_item_id,
                is_completed=change.complete,
                pie_session=change.session.to_dict(),
            )
        elif change.intent == METADATA_ONLY and change.complete and safe_item_id:
            existing = attempt.item_sessions.get(safe_item_id)
            if existing is not None:
                attempt = upsert_item_session_from_pie_session_change(
                    attempt,
                    item_identifier=safe_item_id,
                    pie_session_id=existing.pie_session_id or safe_item_id,
                    is_completed=True,
                )

        next_item_sessions = to_item_sessions_record(attempt)
        before = item_sessions.get(safe_item_id)
        after = next_item_sessions.get(safe_item_id)
        logger.debug(
            f"Session change for item '{safe_item_id}': intent={change.intent} "
            f"data {_data_length(before)} -> {_data_length(after)}, "
            f"attempt changed={attempt is not test_attempt_session}"
        )

        if after is not None:
            outbound_session = after
        elif change.session is not None:
            outbound_session = change.session.to_dict()
        else:
            outbound_session = {"id": safe_item_id, "data": []}

        event = ItemSessionChangedEvent(
            item_id=safe_item_id,
            session=outbound_session,
            intent=change.intent,
            complete=change.complete,
            component=change.component,
            timestamp=int(time.time() * 1000),
        )
        return SessionChangedResult(
            test_attempt_session=attempt,
            item_sessions=next_item_sessions,
            session_state=self.to_session_state(attempt),
            event=event,
        )


def _data_length(item_session: Any) -> int | None:
    if isinstance(item_session, dict) and isinstance(item_session.get("data"), list):
        return len(item_session["data"])
    return None
