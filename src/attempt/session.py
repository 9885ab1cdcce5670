"""
Test attempt session.

The canonical record of one delivery attempt: navigation state, the realized
item order and one ItemSession per item. Sessions are immutable; every update
function returns a new session and leaves its input untouched.

Identity is deterministic: the same (assessment, assignment, subject) always
yields the same ``tas_v1_<hash>`` identifier, so a returning student lands on
the same stored attempt.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from src.core.errors import ToolkitError

TEST_ATTEMPT_SESSION_VERSION = 1
IDENTIFIER_PREFIX = "tas_v1_"

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193


class MissingIdentifierError(ToolkitError, ValueError):
    """Raised when an identifier is requested without an assessment id."""
    pass


def now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. ``2024-01-01T00:00:00.000Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def fnv1a32_hex(value: str) -> str:
    """
    32-bit FNV-1a over the UTF-16 code units of ``value``, as 8 hex digits.

    Matches identifiers minted by browser hosts. Not a security primitive:
    32 bits collide after tens of thousands of distinct inputs.

    >>> fnv1a32_hex("a")
    'e40c292c'
    """
    data = value.encode("utf-16-le", "surrogatepass")
    hash_ = _FNV_OFFSET_BASIS
    for i in range(0, len(data), 2):
        hash_ ^= data[i] | (data[i + 1] << 8)
        hash_ = (hash_ * _FNV_PRIME) & 0xFFFFFFFF
    return f"{hash_:08x}"


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class AttemptIdentity:
    identifier: str
    seed: str


def create_test_attempt_session_identifier(
    assessment_id: str | None,
    assignment_id: str | None,
    subject: str,
) -> AttemptIdentity:
    """
    Deterministic attempt identity.

    Args:
        assessment_id: Required
        assignment_id: Optional; None and "" are equivalent
        subject: User id, or the anonymous device id for guests

    Returns:
        AttemptIdentity with ``tas_v1_<hash>`` identifier and the hash as seed

    Raises:
        MissingIdentifierError: if assessment_id is empty
    """
    if not assessment_id:
        raise MissingIdentifierError(
            "assessment_id is required to create a test attempt session identifier"
        )
    source = f"v1|{assessment_id}|{assignment_id or ''}|{subject}"
    seed = fnv1a32_hex(source)
    return AttemptIdentity(identifier=f"{IDENTIFIER_PREFIX}{seed}", seed=seed)


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class NavigationState:
    current_item_index: int = -1
    visited_item_identifiers: tuple[str, ...] = ()
    current_section_identifier: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "currentItemIndex": self.current_item_index,
            "visitedItemIdentifiers": list(self.visited_item_identifiers),
        }
        if self.current_section_identifier is not None:
            data["currentSectionIdentifier"] = self.current_section_identifier
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NavigationState":
        return cls(
            current_item_index=data.get("currentItemIndex", -1),
            visited_item_identifiers=tuple(data.get("visitedItemIdentifiers") or ()),
            current_section_identifier=data.get("currentSectionIdentifier"),
        )


@dataclass(frozen=True)
class Realization:
    """Fixed item order for the attempt, plus the seed for future shuffling."""

    seed: str
    item_identifiers: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"seed": self.seed, "itemIdentifiers": list(self.item_identifiers)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Realization":
        return cls(seed=data["seed"], item_identifiers=tuple(data.get("itemIdentifiers") or ()))


@dataclass(frozen=True)
class ItemSession:
    """Per-item bookkeeping around the opaque item-player session payload."""

    item_identifier: str
    attempt_count: int = 0
    is_completed: bool = False
    pie_session_id: str | None = None
    started_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None
    session: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "itemIdentifier": self.item_identifier,
            "attemptCount": self.attempt_count,
            "isCompleted": self.is_completed,
        }
        optional = {
            "pieSessionId": self.pie_session_id,
            "startedAt": self.started_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
            "session": self.session,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemSession":
        return cls(
            item_identifier=data["itemIdentifier"],
            attempt_count=data.get("attemptCount", 0),
            is_completed=bool(data.get("isCompleted", False)),
            pie_session_id=data.get("pieSessionId"),
            started_at=data.get("startedAt"),
            updated_at=data.get("updatedAt"),
            completed_at=data.get("completedAt"),
            session=data.get("session"),
        )


@dataclass(frozen=True)
class TestAttemptSession:
    """Canonical attempt snapshot. Serializes to the camelCase host shape."""

    __test__ = False

    test_attempt_session_identifier: str
    assessment_id: str
    started_at: str
    updated_at: str
    realization: Realization
    navigation_state: NavigationState = field(default_factory=NavigationState)
    item_sessions: dict[str, ItemSession] = field(default_factory=dict)
    completed_at: str | None = None
    context_variables: dict[str, Any] | None = None
    version: int = TEST_ATTEMPT_SESSION_VERSION

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "testAttemptSessionIdentifier": self.test_attempt_session_identifier,
            "assessmentId": self.assessment_id,
            "startedAt": self.started_at,
            "updatedAt": self.updated_at,
            "navigationState": self.navigation_state.to_dict(),
            "realization": self.realization.to_dict(),
            "itemSessions": {
                item_id: item_session.to_dict()
                for item_id, item_session in self.item_sessions.items()
            },
        }
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        if self.context_variables is not None:
            data["contextVariables"] = self.context_variables
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestAttemptSession":
        """
        Raises:
            KeyError / TypeError on structurally invalid input
        """
        return cls(
            version=data["version"],
            test_attempt_session_identifier=data["testAttemptSessionIdentifier"],
            assessment_id=data["assessmentId"],
            started_at=data["startedAt"],
            updated_at=data["updatedAt"],
            completed_at=data.get("completedAt"),
            navigation_state=NavigationState.from_dict(data.get("navigationState") or {}),
            realization=Realization.from_dict(data["realization"]),
            item_sessions={
                item_id: ItemSession.from_dict(item_data)
                for item_id, item_data in (data.get("itemSessions") or {}).items()
            },
            context_variables=data.get("contextVariables"),
        )


# =============================================================================
# Pure updates
# =============================================================================


def create_new_test_attempt_session(
    identity: AttemptIdentity,
    assessment_id: str,
    item_identifiers: list[str] | tuple[str, ...] = (),
) -> TestAttemptSession:
    """Fresh attempt: nothing visited, position before the first item."""
    started_at = now_iso()
    return TestAttemptSession(
        test_attempt_session_identifier=identity.identifier,
        assessment_id=assessment_id,
        started_at=started_at,
        updated_at=started_at,
        realization=Realization(seed=identity.seed, item_identifiers=tuple(item_identifiers)),
    )


def upsert_visited_item(session: TestAttemptSession, item_identifier: str) -> TestAttemptSession:
    """Mark an item visited (first-visit order kept). Blank ids are ignored."""
    visited = session.navigation_state.visited_item_identifiers
    if not item_identifier or item_identifier in visited:
        return session
    navigation = replace(
        session.navigation_state, visited_item_identifiers=(*visited, item_identifier)
    )
    return replace(session, navigation_state=navigation)


def set_current_position(
    session: TestAttemptSession,
    current_item_index: int,
    current_section_identifier: str | None = None,
) -> TestAttemptSession:
    navigation = replace(
        session.navigation_state,
        current_item_index=current_item_index,
        current_section_identifier=current_section_identifier,
    )
    return replace(session, navigation_state=navigation)


def upsert_item_session_from_pie_session_change(
    session: TestAttemptSession,
    *,
    item_identifier: str,
    pie_session_id: str | None,
    is_completed: bool | None = None,
    pie_session: Any = None,
) -> TestAttemptSession:
    """
    Fold an item-player session change into the attempt.

    - attempt_count: 1 for a new item session; +1 whenever the inner session
      id differs from the stored one; otherwise unchanged
    - is_completed is sticky: once true it stays true
    - started_at is set once; completed_at is set on first completion
    - the raw payload replaces the stored one when given

    Changes without an item id or inner session id are ignored.
    """
    if not item_identifier or not pie_session_id:
        return session

    now = now_iso()
    existing = session.item_sessions.get(item_identifier)

    if existing is None:
        attempt_count = 1
    elif existing.pie_session_id != pie_session_id:
        attempt_count = existing.attempt_count + 1
    else:
        attempt_count = existing.attempt_count

    completed = bool(is_completed) or (existing is not None and existing.is_completed)
    completed_at = None
    if completed:
        completed_at = (existing.completed_at if existing else None) or now

    updated = ItemSession(
        item_identifier=item_identifier,
        pie_session_id=pie_session_id,
        attempt_count=attempt_count,
        is_completed=completed,
        started_at=(existing.started_at if existing else None) or now,
        updated_at=now,
        completed_at=completed_at,
        session=pie_session if pie_session is not None else (existing.session if existing else None),
    )
    return replace(session, item_sessions={**session.item_sessions, item_identifier: updated})


def to_item_sessions_record(session: TestAttemptSession) -> dict[str, Any]:
    """``{itemIdentifier: raw session payload}`` for items that have one."""
    return {
        item_id: item_session.session
        for item_id, item_session in session.item_sessions.items()
        if item_session.session is not None
    }
