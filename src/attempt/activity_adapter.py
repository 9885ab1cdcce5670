"""
Backend activity <-> attempt session mapping.

Hosts that keep attempts in a backend "activity session" (rather than in
client storage) use these helpers to hydrate a TestAttemptSession from the
backend records and to build the patch payloads sent back.
"""

from __future__ import annotations

from typing import Any, Mapping

from src.attempt.session import (
    TEST_ATTEMPT_SESSION_VERSION,
    ItemSession,
    NavigationState,
    Realization,
    TestAttemptSession,
    now_iso,
    to_item_sessions_record,
)

UNKNOWN_ASSESSMENT_ID = "unknown-assessment"


def _item_identifier(item_ref: Mapping[str, Any]) -> str | None:
    item = item_ref.get("item") or {}
    return item_ref.get("identifier") or item.get("identifier") or item.get("id") or None


def _item_identifiers(
    activity_definition: Mapping[str, Any],
    item_refs: list[Mapping[str, Any]] | None,
) -> list[str]:
    refs = item_refs or activity_definition.get("assessmentItemRefs") or []
    identifiers: dict[str, None] = {}
    for ref in refs:
        identifier = _item_identifier(ref)
        if identifier:
            identifiers.setdefault(identifier, None)
    return list(identifiers)


def _item_session_from_backend(item_identifier: str, raw: Mapping[str, Any]) -> ItemSession:
    pie_session_id = raw.get("id") if isinstance(raw.get("id"), str) else None

    attempt_count = raw.get("attemptCount")
    if not isinstance(attempt_count, int) or isinstance(attempt_count, bool) or attempt_count <= 0:
        attempt_count = 1 if pie_session_id else 0

    is_completed = raw.get("isCompleted")
    if not isinstance(is_completed, bool):
        is_completed = bool(raw.get("complete"))

    def _text(key: str) -> str | None:
        value = raw.get(key)
        return value if isinstance(value, str) else None

    return ItemSession(
        item_identifier=item_identifier,
        pie_session_id=pie_session_id,
        attempt_count=attempt_count,
        is_completed=is_completed,
        started_at=_text("startedAt"),
        updated_at=_text("updatedAt"),
        completed_at=_text("completedAt"),
        session=dict(raw),
    )


def map_activity_to_test_attempt_session(
    activity_definition: Mapping[str, Any] | None = None,
    activity_session: Mapping[str, Any] | None = None,
    item_refs: list[Mapping[str, Any]] | None = None,
    item_sessions_by_item_identifier: Mapping[str, Any] | None = None,
    assessment_id: str | None = None,
    test_attempt_session_identifier: str | None = None,
) -> TestAttemptSession:
    """
    Build an attempt session from backend activity records.

    Args:
        activity_definition: ``{id?, identifier?, assessmentId?, assessmentItemRefs?}``
        activity_session: Backend session (position, visited items, item sessions)
        item_refs: Overrides the definition's item refs
        item_sessions_by_item_identifier: Overrides matching backend item sessions
        assessment_id: Overrides the definition's assessment id
        test_attempt_session_identifier: Overrides the backend session id

    Returns:
        TestAttemptSession. Only items in the realized order get item sessions.
    """
    definition = activity_definition or {}
    backend = activity_session or {}

    resolved_assessment_id = (
        assessment_id
        or definition.get("assessmentId")
        or definition.get("identifier")
        or definition.get("id")
        or UNKNOWN_ASSESSMENT_ID
    )
    identifier = (
        test_attempt_session_identifier
        or backend.get("activitySessionId")
        or backend.get("id")
        or f"tas_{resolved_assessment_id}"
    )
    item_identifiers = _item_identifiers(definition, item_refs)

    backend_item_sessions = {
        **(backend.get("itemSessions") or {}),
        **(item_sessions_by_item_identifier or {}),
    }
    item_sessions = {
        item_id: _item_session_from_backend(item_id, backend_item_sessions[item_id])
        for item_id in item_identifiers
        if isinstance(backend_item_sessions.get(item_id), Mapping)
    }

    started_at = backend.get("startedAt") or now_iso()
    current_item_index = backend.get("currentItemIndex")

    return TestAttemptSession(
        version=TEST_ATTEMPT_SESSION_VERSION,
        test_attempt_session_identifier=identifier,
        assessment_id=resolved_assessment_id,
        started_at=started_at,
        updated_at=backend.get("updatedAt") or started_at,
        completed_at=backend.get("completedAt"),
        navigation_state=NavigationState(
            current_item_index=-1 if current_item_index is None else current_item_index,
            visited_item_identifiers=tuple(backend.get("visitedItemIdentifiers") or ()),
            current_section_identifier=backend.get("currentSectionIdentifier"),
        ),
        realization=Realization(seed=identifier, item_identifiers=tuple(item_identifiers)),
        item_sessions=item_sessions,
    )


def _activity_session_header(session: TestAttemptSession) -> dict[str, Any]:
    navigation = session.navigation_state
    header: dict[str, Any] = {
        "id": session.test_attempt_session_identifier,
        "currentItemIndex": navigation.current_item_index,
        "visitedItemIdentifiers": list(navigation.visited_item_identifiers),
    }
    if navigation.current_section_identifier is not None:
        header["currentSectionIdentifier"] = navigation.current_section_identifier
    return header


def build_activity_session_patch(session: TestAttemptSession) -> dict[str, Any]:
    """Full ``{"activitySession": {...}}`` patch, including every item session payload."""
    patch = _activity_session_header(session)
    patch["startedAt"] = session.started_at
    patch["updatedAt"] = session.updated_at
    if session.completed_at is not None:
        patch["completedAt"] = session.completed_at
    patch["itemSessions"] = to_item_sessions_record(session)
    return {"activitySession": patch}


def build_activity_session_item_update(
    session: TestAttemptSession, item_identifier: str
) -> dict[str, Any]:
    """Patch carrying navigation plus a single item's session payload."""
    patch = _activity_session_header(session)
    item_session = session.item_sessions.get(item_identifier)
    patch["itemSessions"] = (
        {item_identifier: item_session.session}
        if item_session is not None and item_session.session is not None
        else {}
    )
    return {"activitySession": patch}
