"""
Item session contract.

Item players report session changes in several shapes: a whole item session
(``{id, data: [...]}``), a single element's session, or bare metadata such as
a completion flag. ``normalize_item_session_change`` classifies an inbound
change into one of three intents:

- ``replace-item-session``: the payload is a whole item session
- ``merge-element-session``: the payload is one element's entry; it is merged
  by element id into the item's ``data`` list
- ``metadata-only``: nothing to store (no payload, or only metadata keys)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

REPLACE_ITEM_SESSION = "replace-item-session"
MERGE_ELEMENT_SESSION = "merge-element-session"
METADATA_ONLY = "metadata-only"

ItemSessionUpdateIntent = Literal["replace-item-session", "merge-element-session", "metadata-only"]

METADATA_KEYS = frozenset({"complete", "component", "timestamp", "sourceRuntimeId"})
DEFAULT_COMPONENT = "response"


@dataclass
class ItemSessionContainer:
    id: str
    data: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "data": list(self.data)}


@dataclass
class NormalizedItemSessionChange:
    item_id: str
    session: ItemSessionContainer | None
    intent: ItemSessionUpdateIntent
    component: str | None = None
    complete: bool | None = None


def normalize_item_session_container(value: Any, fallback_session_id: str = "") -> ItemSessionContainer:
    """
    Coerce any session-ish value into ``{id, data}``.

    A dict with a list ``data`` keeps its id (or takes the fallback); a list
    becomes the data; any other dict becomes a single data entry.
    """
    if isinstance(value, dict):
        if isinstance(value.get("data"), list):
            session_id = value.get("id")
            return ItemSessionContainer(
                id=session_id if isinstance(session_id, str) else fallback_session_id,
                data=list(value["data"]),
            )
        return ItemSessionContainer(id=fallback_session_id, data=[value])
    if isinstance(value, list):
        return ItemSessionContainer(id=fallback_session_id, data=list(value))
    return ItemSessionContainer(id=fallback_session_id)


def _is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return isinstance(value, list) and not value


def has_response_value(value: Any) -> bool:
    """Whether a session holds any non-empty ``value`` entry, at any depth."""
    if value is None:
        return False
    if isinstance(value, list):
        return any(has_response_value(entry) for entry in value)
    if not isinstance(value, dict):
        return False
    for key, nested in value.items():
        if key == "value" and not _is_empty_value(nested):
            return True
        if has_response_value(nested):
            return True
    return False


def merge_element_into_session(
    item_id: str,
    previous_item_session: Any,
    entry_id: str,
    entry: dict[str, Any],
) -> ItemSessionContainer:
    """Upsert an element entry by id; existing keys not in the entry survive."""
    previous = normalize_item_session_container(previous_item_session, item_id)
    data = list(previous.data)

    for index, candidate in enumerate(data):
        if isinstance(candidate, dict) and candidate.get("id") == entry_id:
            data[index] = {**candidate, **entry}
            break
    else:
        data.append(entry)

    return ItemSessionContainer(id=previous.id or item_id, data=data)


def normalize_item_session_change(
    item_id: str | None,
    session_detail: Any,
    previous_item_session: Any = None,
) -> NormalizedItemSessionChange:
    """
    Classify an inbound session change.

    Args:
        item_id: Item the change belongs to (falls back to the payload id)
        session_detail: ``{session, component?, complete?}`` or a bare session
        previous_item_session: Stored item session, used for element merges

    Returns:
        NormalizedItemSessionChange
    """
    detail = session_detail if isinstance(session_detail, dict) else {}
    session = detail["session"] if "session" in detail else session_detail

    component = detail.get("component") if isinstance(detail.get("component"), str) else None
    complete = detail.get("complete") if isinstance(detail.get("complete"), bool) else None

    if item_id:
        safe_item_id = item_id
    elif isinstance(session, dict) and isinstance(session.get("id"), str):
        safe_item_id = session["id"]
    else:
        safe_item_id = ""

    # Whole sessions without their own id keep the stored session's id
    previous_id = (
        previous_item_session.get("id") if isinstance(previous_item_session, dict) else None
    )
    replace_fallback_id = previous_id if isinstance(previous_id, str) and previous_id else safe_item_id

    if not isinstance(session, dict) or not session:
        if isinstance(session, list):
            return NormalizedItemSessionChange(
                safe_item_id,
                normalize_item_session_container(session, replace_fallback_id),
                REPLACE_ITEM_SESSION,
                component,
                complete,
            )
        return NormalizedItemSessionChange(safe_item_id, None, METADATA_ONLY, component, complete)

    if isinstance(session.get("data"), list):
        return NormalizedItemSessionChange(
            safe_item_id,
            normalize_item_session_container(session, replace_fallback_id),
            REPLACE_ITEM_SESSION,
            component,
            complete,
        )

    if set(session) <= METADATA_KEYS:
        return NormalizedItemSessionChange(safe_item_id, None, METADATA_ONLY, component, complete)

    if component is None:
        component = session["component"] if isinstance(session.get("component"), str) else DEFAULT_COMPONENT
    entry_id = session["id"] if isinstance(session.get("id"), str) and session["id"] else component
    merged = merge_element_into_session(
        safe_item_id, previous_item_session, entry_id, {"id": entry_id, **session}
    )
    return NormalizedItemSessionChange(safe_item_id, merged, MERGE_ELEMENT_SESSION, component, complete)
