"""
Attempt session persistence.

Sessions are stored as JSON strings in a key/value storage supplied by the
host (browser localStorage, a server-side cache, a dict in tests). Keys are
``<prefix>v1:<identifier>``.

A stored session that cannot be read back (bad JSON, wrong shape, another
version, another identifier) is treated as absent so the caller recreates the
attempt instead of resuming a corrupt or foreign one.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import replace
from typing import Protocol

from loguru import logger

from config import get_settings
from src.attempt.session import (
    TEST_ATTEMPT_SESSION_VERSION,
    AttemptIdentity,
    TestAttemptSession,
    create_new_test_attempt_session,
    create_test_attempt_session_identifier,
    now_iso,
)


class StorageLike(Protocol):
    """Minimal key/value interface (the browser Storage shape)."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process StorageLike backed by a dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)


def get_or_create_anonymous_device_id(storage: StorageLike, key: str | None = None) -> str:
    """Stable per-device subject for guests. Created once, then read back."""
    key = key or get_settings().anonymous_device_id_key
    existing = storage.get_item(key)
    if existing:
        return existing
    created = str(uuid.uuid4())
    storage.set_item(key, created)
    logger.debug(f"Created anonymous device id under '{key}'")
    return created


class TestAttemptSessionStore:
    """Save/load attempt sessions against a StorageLike."""

    __test__ = False

    def __init__(self, storage: StorageLike, prefix: str | None = None):
        self.storage = storage
        self.prefix = prefix if prefix is not None else get_settings().session_storage_prefix

    def storage_key(self, identifier: str) -> str:
        return f"{self.prefix}v{TEST_ATTEMPT_SESSION_VERSION}:{identifier}"

    def save(self, session: TestAttemptSession) -> TestAttemptSession:
        """
        Stamp ``updated_at`` and write the session.

        Returns:
            The stamped session (the input is not modified)
        """
        stamped = replace(session, updated_at=now_iso())
        self.storage.set_item(
            self.storage_key(stamped.test_attempt_session_identifier),
            json.dumps(stamped.to_dict()),
        )
        return stamped

    def load(self, identifier: str) -> TestAttemptSession | None:
        """Load a session; None if missing, unreadable, or stored for another version/id."""
        raw = self.storage.get_item(self.storage_key(identifier))
        if not raw:
            return None

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                logger.debug(f"Discarding non-object attempt session '{identifier}'")
                return None
            # JSON true would otherwise compare equal to version 1
            version = data.get("version")
            if type(version) is not int or version != TEST_ATTEMPT_SESSION_VERSION:
                logger.debug(
                    f"Discarding attempt session '{identifier}': version {data.get('version')!r}"
                )
                return None
            if data.get("testAttemptSessionIdentifier") != identifier:
                logger.debug(f"Discarding attempt session '{identifier}': identifier mismatch")
                return None
            return TestAttemptSession.from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.debug(f"Discarding unreadable attempt session '{identifier}': {e}")
            return None

    def delete(self, identifier: str) -> None:
        self.storage.remove_item(self.storage_key(identifier))

    def resolve_identity(
        self,
        assessment_id: str | None,
        assignment_id: str | None = None,
        user_id: str | None = None,
    ) -> AttemptIdentity:
        """
        Identity for a user, or for this device when no user id is given.

        Raises:
            MissingIdentifierError: if assessment_id is empty
        """
        subject = user_id or get_or_create_anonymous_device_id(self.storage)
        return create_test_attempt_session_identifier(assessment_id, assignment_id, subject)

    def load_or_create(
        self,
        assessment_id: str,
        item_identifiers: list[str] | tuple[str, ...] = (),
        assignment_id: str | None = None,
        user_id: str | None = None,
    ) -> TestAttemptSession:
        """Resume the stored attempt for this identity, or start a new one (not saved)."""
        identity = self.resolve_identity(assessment_id, assignment_id, user_id)
        existing = self.load(identity.identifier)
        if existing is not None:
            logger.debug(f"Resuming attempt session '{identity.identifier}'")
            return existing

        logger.debug(f"Starting attempt session '{identity.identifier}'")
        return create_new_test_attempt_session(identity, assessment_id, item_identifiers)
