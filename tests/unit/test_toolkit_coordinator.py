"""
Unit tests for ToolkitCoordinator.
"""

import pytest

from config import Settings
from src.attempt.session import MissingIdentifierError
from src.attempt.storage import MemoryStorage
from src.section.models import AssessmentEntity, AssessmentItemRef, ItemEntity
from src.tools.context import ElementToolContext, ItemToolContext
from src.tools.registry import ToolRegistry
from src.tools.registrations import CalculatorTool
from src.toolkit.coordinator import ToolkitCoordinator


def make_coordinator(**kwargs):
    """Coordinator for the demo assessment, with settings that skip the .env file."""
    kwargs.setdefault("settings", Settings(_env_file=None))
    return ToolkitCoordinator("demo-assessment", **kwargs)


@pytest.fixture
def coordinator():
    return make_coordinator()


@pytest.fixture
def math_contexts(sample_math_item):
    assessment = AssessmentEntity(id="demo-assessment")
    item = ItemEntity.model_validate(sample_math_item)
    item_ref = AssessmentItemRef(identifier="q1", item=item)
    return (
        ItemToolContext(assessment=assessment, item_ref=item_ref, item=item),
        ElementToolContext(assessment=assessment, item_ref=item_ref, item=item, element_id="mc1"),
    )


class TestConstruction:
    @pytest.mark.parametrize("assessment_id", ["", None])
    def test_requires_assessment_id(self, assessment_id):
        with pytest.raises(MissingIdentifierError):
            ToolkitCoordinator(assessment_id)

    def test_bundle_exposes_owned_services(self, coordinator):
        bundle = coordinator.get_service_bundle()

        assert bundle.tool_registry is coordinator.tool_registry
        assert bundle.element_tool_state_store is coordinator.element_tool_state_store
        assert bundle.attempt_store is coordinator.attempt_store
        assert len(bundle.tool_registry) == 11

    def test_coordinators_do_not_share_state(self):
        first = make_coordinator()
        second = make_coordinator()

        first.element_tool_state_store.set_state("a:s:i:e", "calculator", {"open": True})
        first.tool_registry.unregister("ruler")

        assert second.element_tool_state_store.get_all_state() == {}
        assert second.tool_registry.has("ruler")

    def test_custom_registry(self):
        registry = ToolRegistry()
        registry.register(CalculatorTool())

        coordinator = make_coordinator(tool_registry=registry)
        assert coordinator.tool_registry.get_all_tool_ids() == ["calculator"]

    def test_custom_storage(self):
        storage = MemoryStorage()
        coordinator = make_coordinator(storage=storage)

        attempt = coordinator.attempt_store.load_or_create("demo-assessment", ["q1"], user_id="u1")
        coordinator.attempt_store.save(attempt)

        assert len(storage) == 1


class TestToolSettings:
    def test_enabled_by_default(self, coordinator):
        assert coordinator.is_tool_enabled("calculator")
        assert coordinator.get_tool_config("calculator") is None

    def test_explicitly_disabled(self):
        coordinator = make_coordinator(tools={"calculator": {"enabled": False}})
        assert not coordinator.is_tool_enabled("calculator")

    def test_update_tool_config_merges(self):
        coordinator = make_coordinator(tools={"calculator": {"type": "basic"}})

        merged = coordinator.update_tool_config("calculator", {"enabled": False})

        assert merged == {"type": "basic", "enabled": False}
        assert not coordinator.is_tool_enabled("calculator")

    def test_tool_config_is_a_copy(self):
        coordinator = make_coordinator(tools={"calculator": {"type": "basic"}})
        coordinator.get_tool_config("calculator")["type"] = "graphing"
        assert coordinator.get_tool_config("calculator") == {"type": "basic"}


class TestVisibility:
    def test_allowed_tools_apply_policy_and_enabled(self):
        coordinator = make_coordinator(
            tools={"ruler": {"enabled": False}},
            tools_config={"policy": {"blocked": ["graph"]}},
        )
        allowed = coordinator.allowed_tools("element")

        assert "ruler" not in allowed
        assert "graph" not in allowed
        assert allowed[0] == "calculator"

    def test_settings_policy_is_the_default(self):
        coordinator = make_coordinator(
            settings=Settings(_env_file=None, blocked_tools="highlighter")
        )
        assert "highlighter" not in coordinator.allowed_tools("item")

    def test_visible_element_tools(self, coordinator, math_contexts):
        _, element_context = math_contexts
        visible = [tool.tool_id for tool in coordinator.visible_tools(element_context)]

        assert "calculator" in visible
        assert "answerEliminator" in visible
        assert "periodicTable" not in visible
        assert "textToSpeech" not in visible

    def test_disabled_tool_not_visible(self, math_contexts):
        coordinator = make_coordinator(tools={"calculator": {"enabled": False}})
        _, element_context = math_contexts

        assert "calculator" not in [t.tool_id for t in coordinator.visible_tools(element_context)]

    def test_explicit_allow_list(self, coordinator, math_contexts):
        item_context, _ = math_contexts
        assert [t.tool_id for t in coordinator.visible_tools(item_context, ["calculator"])] == ["calculator"]
        assert coordinator.visible_tools(item_context, []) == []

    def test_resolve_tool_configs(self, coordinator):
        resolved = coordinator.resolve_tool_configs(
            roster_config={"calculator": "0"}, student_profile={"accommodations": ["tts"]}
        )
        assert list(resolved) == ["tts"]


class TestIds:
    def test_element_id(self, coordinator):
        assert coordinator.get_element_id("s1", "q1", "mc1") == "demo-assessment:s1:q1:mc1"

    def test_tool_instance_id(self, coordinator):
        assert coordinator.create_tool_instance_id("calculator", "item", "q1") == "calculator:item:q1"
        assert (
            coordinator.create_tool_instance_id("textToSpeech", "element", "mc1", role="inline")
            == "textToSpeech:element:mc1:inline"
        )
