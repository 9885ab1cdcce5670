"""
Toolkit Coordinator.

Composition root for one assessment delivery. Creates and owns the tool
registry, scope levels, config resolver, element tool state, normalized tools
config and the section/attempt services, and hands them to the rendering
layer as one service bundle.

Nothing here is a module-level singleton: two coordinators never share state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from loguru import logger

from config import Settings, get_settings
from src.attempt.session import MissingIdentifierError
from src.attempt.storage import MemoryStorage, StorageLike, TestAttemptSessionStore
from src.section.content_service import SectionContentService
from src.section.session_service import SectionSessionService
from src.tools.config_normalizer import CanonicalToolsConfig, normalize_tools_config
from src.tools.config_resolver import ResolvedToolConfig, StudentProfile, ToolConfigResolver
from src.tools.context import ToolContext
from src.tools.element_state import ElementToolStateStore, get_global_element_id
from src.tools.registrations import create_default_tool_registry
from src.tools.registry import ToolRegistration, ToolRegistry
from src.tools.scoped_id import ScopedToolIds, ToolInstanceRole, ToolScopeLevels


@dataclass(frozen=True)
class ToolkitServiceBundle:
    """Everything a rendering collaborator needs, in one handle."""

    tool_registry: ToolRegistry
    scope_levels: ToolScopeLevels
    scoped_tool_ids: ScopedToolIds
    config_resolver: ToolConfigResolver
    element_tool_state_store: ElementToolStateStore
    tools_config: CanonicalToolsConfig
    content_service: SectionContentService
    session_service: SectionSessionService
    attempt_store: TestAttemptSessionStore


class ToolkitCoordinator:
    """
    Wires the toolkit services for one assessment.

    Args:
        assessment_id: Required; scopes element state and attempt identity
        tools: Per-tool settings, ``{toolId: {"enabled": bool, ...}}``
        tools_config: Placement/policy/providers (see ``normalize_tools_config``).
            Defaults to the policy from settings.
        tool_registry: Custom registry (default: all built-in tools)
        storage: Attempt session storage (default: in-memory)
        settings: Settings override (default: ``get_settings()``)

    Raises:
        MissingIdentifierError: if assessment_id is empty
    """

    def __init__(
        self,
        assessment_id: str,
        tools: Mapping[str, Mapping[str, Any]] | None = None,
        tools_config: CanonicalToolsConfig | Mapping[str, Any] | None = None,
        tool_registry: ToolRegistry | None = None,
        storage: StorageLike | None = None,
        settings: Settings | None = None,
    ):
        if not assessment_id:
            raise MissingIdentifierError("ToolkitCoordinator requires an assessment_id")

        self.assessment_id = assessment_id
        self.settings = settings or get_settings()
        self.tools: dict[str, dict[str, Any]] = {
            tool_id: dict(config) for tool_id, config in (tools or {}).items()
        }

        self.tool_registry = tool_registry if tool_registry is not None else create_default_tool_registry()
        self.scope_levels = ToolScopeLevels()
        self.scoped_tool_ids = ScopedToolIds(self.scope_levels)
        self.config_resolver = ToolConfigResolver()
        self.element_tool_state_store = ElementToolStateStore()
        self.tools_config = normalize_tools_config(
            tools_config if tools_config is not None else self.settings.get_tools_config()
        )
        self.content_service = SectionContentService(self.settings.default_content_view)
        self.session_service = SectionSessionService()
        self.attempt_store = TestAttemptSessionStore(
            storage if storage is not None else MemoryStorage(),
            prefix=self.settings.session_storage_prefix,
        )

        logger.debug(
            f"Toolkit coordinator ready for '{assessment_id}' "
            f"with {len(self.tool_registry)} tools"
        )

    def get_service_bundle(self) -> ToolkitServiceBundle:
        return ToolkitServiceBundle(
            tool_registry=self.tool_registry,
            scope_levels=self.scope_levels,
            scoped_tool_ids=self.scoped_tool_ids,
            config_resolver=self.config_resolver,
            element_tool_state_store=self.element_tool_state_store,
            tools_config=self.tools_config,
            content_service=self.content_service,
            session_service=self.session_service,
            attempt_store=self.attempt_store,
        )

    # ------------------------------------------------------------------
    # Per-tool settings
    # ------------------------------------------------------------------

    def is_tool_enabled(self, tool_id: str) -> bool:
        """Tools are enabled unless their settings say ``enabled: False``."""
        return self.tools.get(tool_id, {}).get("enabled") is not False

    def get_tool_config(self, tool_id: str) -> dict[str, Any] | None:
        config = self.tools.get(tool_id)
        return dict(config) if config is not None else None

    def update_tool_config(self, tool_id: str, updates: Mapping[str, Any]) -> dict[str, Any]:
        """Shallow-merge updates into a tool's settings and return the result."""
        merged = {**self.tools.get(tool_id, {}), **updates}
        self.tools[tool_id] = merged
        logger.debug(f"Updated config for tool '{tool_id}': {sorted(updates)}")
        return dict(merged)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def allowed_tools(self, level: str) -> list[str]:
        """Placement for a level after policy and per-tool ``enabled`` flags."""
        return [
            tool_id
            for tool_id in self.tools_config.placement_for(level)
            if self.is_tool_enabled(tool_id)
        ]

    def visible_tools(
        self, context: ToolContext, allowed_tool_ids: Iterable[str] | None = None
    ) -> list[ToolRegistration]:
        """
        Tools to show in a context.

        Args:
            context: Where the toolbar is
            allowed_tool_ids: Explicit allow list; defaults to ``allowed_tools(context.level)``
        """
        if allowed_tool_ids is None:
            allowed_tool_ids = self.allowed_tools(context.level)
        return self.tool_registry.filter_visible_in_context(allowed_tool_ids, context)

    def resolve_tool_configs(
        self,
        item_config: Mapping[str, Mapping[str, Any]] | None = None,
        roster_config: Mapping[str, str] | None = None,
        student_profile: StudentProfile | None = None,
    ) -> dict[str, ResolvedToolConfig]:
        return self.config_resolver.resolve_all(
            item_config=item_config,
            roster_config=roster_config,
            student_profile=student_profile,
        )

    # ------------------------------------------------------------------
    # Ids
    # ------------------------------------------------------------------

    def get_element_id(self, section_id: str, item_id: str, element_id: str) -> str:
        """Global element id within this assessment."""
        return get_global_element_id(self.assessment_id, section_id, item_id, element_id)

    def create_tool_instance_id(
        self,
        tool_id: str,
        scope_level: str,
        scope_id: str,
        role: ToolInstanceRole = "overlay",
    ) -> str:
        return self.scoped_tool_ids.create(tool_id, scope_level, scope_id, role)
