"""
Attempt Module - Canonical test attempt sessions.

Components:
- session: TestAttemptSession model, deterministic identity, pure updates
- storage: StorageLike protocol, MemoryStorage, TestAttemptSessionStore
- activity_adapter: Backend activity records <-> TestAttemptSession
"""

from src.attempt.session import (
    ItemSession,
    MissingIdentifierError,
    TestAttemptSession,
    create_new_test_attempt_session,
    create_test_attempt_session_identifier,
    set_current_position,
    to_item_sessions_record,
    upsert_item_session_from_pie_session_change,
    upsert_visited_item,
)
from src.attempt.storage import MemoryStorage, StorageLike, TestAttemptSessionStore

__all__ = [
    "TestAttemptSession",
    "ItemSession",
    "MissingIdentifierError",
    "create_test_attempt_session_identifier",
    "create_new_test_attempt_session",
    "upsert_visited_item",
    "set_current_position",
    "upsert_item_session_from_pie_session_change",
    "to_item_sessions_record",
    "StorageLike",
    "MemoryStorage",
    "TestAttemptSessionStore",
]
