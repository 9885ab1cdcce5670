"""
Unit tests for SectionSessionService.
"""

import pytest

from src.attempt.session import to_item_sessions_record
from src.section.item_session_contract import MERGE_ELEMENT_SESSION, METADATA_ONLY, REPLACE_ITEM_SESSION
from src.section.session_service import SectionSessionService, normalize_to_item_session


@pytest.fixture
def service():
    return SectionSessionService()


@pytest.fixture
def resolved(service, sample_section):
    return service.resolve("demo-assessment", "s1", sample_section)


class TestResolve:
    def test_empty_attempt(self, resolved):
        attempt, record = resolved

        assert attempt.test_attempt_session_identifier == "tas_demo-assessment_s1"
        assert attempt.realization.seed == "demo-assessment:s1"
        assert attempt.realization.item_identifiers == ("q1", "q2")
        assert record == {}

    def test_from_session_state(self, service, sample_section):
        state = {
            "currentItemIndex": 1,
            "visitedItemIdentifiers": ["q1", "q2", ""],
            "itemSessions": {
                "q1": {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]},
                "q2": {"id": "er1", "value": "hello"},
                "q3": "garbage",
            },
        }

        attempt, record = service.resolve("demo-assessment", "s1", sample_section, state)

        assert attempt.navigation_state.current_item_index == 1
        assert attempt.navigation_state.current_section_identifier == "s1"
        assert attempt.navigation_state.visited_item_identifiers == ("q1", "q2")
        assert record["q1"] == {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]}
        assert record["q2"] == {"id": "q2", "data": [{"id": "er1", "value": "hello"}]}
        assert "q3" not in record

    def test_state_round_trip(self, service, sample_section, resolved):
        attempt, record = resolved
        result = service.apply_item_session_changed(
            "q1", {"session": {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]}, "complete": True},
            attempt, record,
        )

        restored, restored_record = service.resolve(
            "demo-assessment", "s1", sample_section, result.session_state
        )

        assert restored_record == result.item_sessions
        assert restored.item_sessions["q1"].pie_session_id == "ps1"
        assert restored.item_sessions["q1"].is_completed is True

    def test_session_state_clamps_index(self, service, resolved):
        attempt, _ = resolved
        assert service.to_session_state(attempt)["currentItemIndex"] == 0


class TestApplyChange:
    def test_replace(self, service, resolved):
        attempt, record = resolved
        result = service.apply_item_session_changed(
            "q1", {"session": {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]}}, attempt, record
        )

        assert result.event.intent == REPLACE_ITEM_SESSION
        assert result.item_sessions["q1"]["id"] == "ps1"
        assert result.test_attempt_session.item_sessions["q1"].attempt_count == 1
        assert attempt.item_sessions == {}

    def test_replace_without_id_keeps_stored_session_id(self, service, resolved):
        """A whole session with no id is the same inner session, not a new attempt."""
        attempt, record = resolved
        first = service.apply_item_session_changed(
            "q1", {"session": {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]}}, attempt, record
        )

        second = service.apply_item_session_changed(
            "q1",
            {"session": {"data": [{"id": "mc1", "value": ["b"]}]}},
            first.test_attempt_session,
            first.item_sessions,
        )

        item_session = second.test_attempt_session.item_sessions["q1"]
        assert item_session.pie_session_id == "ps1"
        assert item_session.attempt_count == 1
        assert second.item_sessions["q1"] == {"id": "ps1", "data": [{"id": "mc1", "value": ["b"]}]}

    def test_replace_with_new_id_counts_attempt(self, service, resolved):
        attempt, record = resolved
        first = service.apply_item_session_changed(
            "q1", {"session": {"id": "ps1", "data": []}}, attempt, record
        )
        second = service.apply_item_session_changed(
            "q1", {"session": {"id": "ps2", "data": []}}, first.test_attempt_session, first.item_sessions
        )

        assert second.test_attempt_session.item_sessions["q1"].attempt_count == 2

    def test_element_merge_preserves_other_elements(self, service, resolved):
        attempt, record = resolved
        first = service.apply_item_session_changed(
            "q2", {"session": {"id": "mc1", "value": ["a"]}}, attempt, record
        )
        second = service.apply_item_session_changed(
            "q2",
            {"session": {"id": "er1", "value": "because"}},
            first.test_attempt_session,
            first.item_sessions,
        )

        assert second.event.intent == MERGE_ELEMENT_SESSION
        assert second.item_sessions["q2"]["data"] == [
            {"id": "mc1", "value": ["a"]},
            {"id": "er1", "value": "because"},
        ]
        assert second.item_sessions == to_item_sessions_record(second.test_attempt_session)

    def test_metadata_completion_marks_existing(self, service, resolved):
        attempt, record = resolved
        started = service.apply_item_session_changed(
            "q1", {"session": {"id": "ps1", "data": []}}, attempt, record
        )

        done = service.apply_item_session_changed(
            "q1", {"session": None, "complete": True}, started.test_attempt_session, started.item_sessions
        )

        assert done.event.intent == METADATA_ONLY
        assert done.test_attempt_session.item_sessions["q1"].is_completed is True
        assert done.item_sessions["q1"] == {"id": "ps1", "data": []}

    def test_metadata_for_unknown_item_is_noop(self, service, resolved):
        attempt, record = resolved
        result = service.apply_item_session_changed("q1", {"session": None, "complete": True}, attempt, record)

        assert result.test_attempt_session is attempt
        assert result.event.session == {"id": "q1", "data": []}

    def test_event_shape(self, service, resolved):
        attempt, record = resolved
        result = service.apply_item_session_changed(
            "q1", {"session": {"id": "mc1", "value": ["b"]}, "component": "mc1", "complete": False}, attempt, record
        )
        event = result.event.to_dict()

        assert event["itemId"] == "q1"
        assert event["component"] == "mc1"
        assert event["complete"] is False
        assert event["session"] == {"id": "q1", "data": [{"id": "mc1", "value": ["b"]}]}
        assert event["timestamp"] > 0


class TestNormalizeToItemSession:
    def test_whole_session_keeps_previous_id(self):
        result = normalize_to_item_session("q1", {"data": []}, {"id": "ps1", "data": []})
        assert result.id == "ps1"

    def test_non_dict(self):
        assert normalize_to_item_session("q1", ["x"]) is None
