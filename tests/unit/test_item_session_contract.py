"""
Unit tests for item session change classification.
"""

import pytest

from src.section.item_session_contract import (
    MERGE_ELEMENT_SESSION,
    METADATA_ONLY,
    REPLACE_ITEM_SESSION,
    ItemSessionContainer,
    has_response_value,
    merge_element_into_session,
    normalize_item_session_change,
    normalize_item_session_container,
)


class TestContainer:
    def test_whole_session_keeps_id(self):
        container = normalize_item_session_container({"id": "ps1", "data": [{"id": "mc1"}]}, "q1")
        assert container == ItemSessionContainer("ps1", [{"id": "mc1"}])

    def test_missing_id_takes_fallback(self):
        assert normalize_item_session_container({"data": []}, "q1").id == "q1"

    def test_list_becomes_data(self):
        assert normalize_item_session_container([{"id": "mc1"}], "q1").data == [{"id": "mc1"}]

    def test_element_dict_becomes_single_entry(self):
        assert normalize_item_session_container({"id": "mc1", "value": ["a"]}, "q1").data == [
            {"id": "mc1", "value": ["a"]}
        ]

    def test_other_values_are_empty(self):
        assert normalize_item_session_container(None, "q1").to_dict() == {"id": "q1", "data": []}


class TestHasResponseValue:
    @pytest.mark.parametrize(
        "session",
        [
            {"value": ["a"]},
            {"data": [{"id": "mc1", "value": "text"}]},
            {"data": [{"id": "mc1", "value": 0}]},
            [{"nested": {"value": False}}],
        ],
    )
    def test_with_value(self, session):
        assert has_response_value(session)

    @pytest.mark.parametrize(
        "session",
        [
            None,
            {},
            {"value": None},
            {"value": "   "},
            {"value": []},
            {"data": [{"id": "mc1"}]},
            {"data": [{"id": "mc1", "value": ""}, {"id": "er1", "value": []}]},
            "value",
        ],
    )
    def test_without_value(self, session):
        assert not has_response_value(session)


class TestMergeElement:
    def test_upsert_keeps_other_entries(self):
        previous = {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}, {"id": "er1", "value": "old"}]}

        merged = merge_element_into_session("q1", previous, "er1", {"id": "er1", "value": "new"})

        assert merged.id == "ps1"
        assert merged.data == [{"id": "mc1", "value": ["a"]}, {"id": "er1", "value": "new"}]

    def test_existing_keys_survive(self):
        previous = {"id": "ps1", "data": [{"id": "mc1", "value": ["a"], "shuffled": True}]}
        merged = merge_element_into_session("q1", previous, "mc1", {"id": "mc1", "value": ["b"]})
        assert merged.data == [{"id": "mc1", "value": ["b"], "shuffled": True}]

    def test_appends_new_entry(self):
        merged = merge_element_into_session("q1", None, "mc1", {"id": "mc1", "value": ["a"]})
        assert merged.to_dict() == {"id": "q1", "data": [{"id": "mc1", "value": ["a"]}]}


class TestNormalizeChange:
    def test_whole_session_replaces(self):
        change = normalize_item_session_change(
            "q1", {"session": {"id": "ps1", "data": [{"id": "mc1"}]}, "complete": True}
        )

        assert change.intent == REPLACE_ITEM_SESSION
        assert change.session.id == "ps1"
        assert change.complete is True

    def test_bare_whole_session(self):
        change = normalize_item_session_change("q1", {"id": "ps1", "data": []})
        assert change.intent == REPLACE_ITEM_SESSION

    def test_list_session_replaces(self):
        change = normalize_item_session_change("q1", {"session": [{"id": "mc1"}]})
        assert change.intent == REPLACE_ITEM_SESSION
        assert change.session.to_dict() == {"id": "q1", "data": [{"id": "mc1"}]}

    def test_whole_session_without_id_keeps_previous_id(self):
        previous = {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]}
        change = normalize_item_session_change("q1", {"session": {"data": [{"id": "mc1", "value": ["b"]}]}}, previous)

        assert change.intent == REPLACE_ITEM_SESSION
        assert change.session.to_dict() == {"id": "ps1", "data": [{"id": "mc1", "value": ["b"]}]}

    def test_list_session_keeps_previous_id(self):
        change = normalize_item_session_change("q1", {"session": [{"id": "mc1"}]}, {"id": "ps1", "data": []})
        assert change.session.id == "ps1"

    def test_payload_id_beats_previous_id(self):
        change = normalize_item_session_change("q1", {"session": {"id": "ps2", "data": []}}, {"id": "ps1", "data": []})
        assert change.session.id == "ps2"

    def test_element_session_merges(self):
        previous = {"id": "ps1", "data": [{"id": "mc1", "value": ["a"]}]}
        change = normalize_item_session_change(
            "q1", {"session": {"id": "er1", "value": "hello"}, "component": "er1"}, previous
        )

        assert change.intent == MERGE_ELEMENT_SESSION
        assert change.component == "er1"
        assert change.session.data == [{"id": "mc1", "value": ["a"]}, {"id": "er1", "value": "hello"}]

    def test_element_without_id_uses_component(self):
        change = normalize_item_session_change("q1", {"session": {"value": "x"}})

        assert change.component == "response"
        assert change.session.data == [{"id": "response", "value": "x"}]

    @pytest.mark.parametrize(
        "detail",
        [
            {"session": None, "complete": True},
            {"session": {}},
            {"session": {"complete": True, "component": "mc1"}},
            "not a session",
        ],
    )
    def test_metadata_only(self, detail):
        change = normalize_item_session_change("q1", detail)
        assert change.intent == METADATA_ONLY
        assert change.session is None

    def test_item_id_falls_back_to_payload_id(self):
        change = normalize_item_session_change(None, {"session": {"id": "ps1", "data": []}})
        assert change.item_id == "ps1"

    def test_non_bool_complete_ignored(self):
        change = normalize_item_session_change("q1", {"session": None, "complete": "yes"})
        assert change.complete is None
