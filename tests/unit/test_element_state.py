"""
Unit tests for ElementToolStateStore and global element ids.
"""

from unittest.mock import Mock

import pytest

from src.tools.element_state import (
    ElementIdComponents,
    ElementToolStateStore,
    get_global_element_id,
    parse_global_element_id,
)


@pytest.fixture
def store():
    store = ElementToolStateStore()
    store.set_state("a:s1:q1:mc1", "answerEliminator", {"eliminated": ["b"]})
    store.set_state("a:s1:q1:mc1", "highlighter", {"ranges": [[0, 4]]})
    store.set_state("a:s1:q2:mc1", "answerEliminator", {"eliminated": []})
    store.set_state("a:s2:q3:mc1", "answerEliminator", {"eliminated": ["c"]})
    return store


class TestGlobalIds:
    def test_compose(self):
        assert get_global_element_id("a", "s", "i", "e") == "a:s:i:e"

    def test_parse_inverts(self):
        parsed = parse_global_element_id(get_global_element_id("a", "s", "i", "e"))
        assert parsed == ElementIdComponents("a", "s", "i", "e")

    @pytest.mark.parametrize("value", ["a:s:i", "a:s:i:e:x", ""])
    def test_parse_malformed(self, value):
        assert parse_global_element_id(value) is None


class TestReadWrite:
    def test_get_state(self, store):
        assert store.get_state("a:s1:q1:mc1", "answerEliminator") == {"eliminated": ["b"]}
        assert store.get_state("a:s1:q1:mc1", "calculator") is None
        assert store.get_state("missing", "answerEliminator") is None

    def test_same_element_id_in_different_items_is_isolated(self, store):
        assert store.get_state("a:s1:q2:mc1", "answerEliminator") == {"eliminated": []}

    def test_element_state(self, store):
        assert set(store.get_element_state("a:s1:q1:mc1")) == {"answerEliminator", "highlighter"}
        assert store.get_element_state("missing") == {}

    def test_all_state_is_a_snapshot(self, store):
        snapshot = store.get_all_state()
        snapshot["a:s1:q1:mc1"]["answerEliminator"]["eliminated"].append("z")

        assert store.get_state("a:s1:q1:mc1", "answerEliminator") == {"eliminated": ["b"]}


class TestEviction:
    def test_clear_element(self, store):
        store.clear_element("a:s1:q1:mc1")
        assert store.get_element_state("a:s1:q1:mc1") == {}
        assert store.get_state("a:s1:q2:mc1", "answerEliminator") is not None

    def test_clear_tool(self, store):
        store.clear_tool("answerEliminator")
        assert store.get_all_state() == {"a:s1:q1:mc1": {"highlighter": {"ranges": [[0, 4]]}}}

    def test_clear_section(self, store):
        store.clear_section("a", "s1")
        assert list(store.get_all_state()) == ["a:s2:q3:mc1"]

    def test_clear_section_uses_full_prefix(self):
        store = ElementToolStateStore()
        store.set_state("a:s1:q1:e", "t", 1)
        store.set_state("a:s10:q1:e", "t", 2)

        store.clear_section("a", "s1")
        assert list(store.get_all_state()) == ["a:s10:q1:e"]

    def test_clear_all(self, store):
        store.clear_all()
        assert store.get_all_state() == {}


class TestNotifications:
    def test_listeners_fire_in_subscription_order(self):
        store = ElementToolStateStore()
        calls = []
        store.subscribe(lambda state: calls.append(("first", state)))
        store.subscribe(lambda state: calls.append(("second", state)))

        store.set_state("a:s:i:e", "t", 1)

        assert [name for name, _ in calls] == ["first", "second"]
        assert calls[0][1] == {"a:s:i:e": {"t": 1}}

    def test_unsubscribe(self):
        store = ElementToolStateStore()
        listener = Mock()
        unsubscribe = store.subscribe(listener)

        store.set_state("a:s:i:e", "t", 1)
        unsubscribe()
        unsubscribe()
        store.clear_all()

        assert listener.call_count == 1

    def test_every_mutation_notifies(self):
        store = ElementToolStateStore()
        listener = Mock()
        store.subscribe(listener)

        store.set_state("a:s:i:e", "t", 1)
        store.clear_tool("t")
        store.clear_element("a:s:i:e")
        store.clear_section("a", "s")
        store.clear_all()

        assert listener.call_count == 5

    def test_persistence_hook_receives_snapshot(self):
        store = ElementToolStateStore()
        hook = Mock()
        store.set_on_state_change(hook)

        store.set_state("a:s:i:e", "t", {"on": True})

        hook.assert_called_once_with({"a:s:i:e": {"t": {"on": True}}})

    def test_load_state_replaces_and_skips_hook(self, store):
        hook = Mock()
        listener = Mock()
        store.set_on_state_change(hook)
        store.subscribe(listener)

        store.load_state({"b:s:i:e": {"t": 1}})

        assert store.get_all_state() == {"b:s:i:e": {"t": 1}}
        listener.assert_called_once_with({"b:s:i:e": {"t": 1}})
        hook.assert_not_called()
