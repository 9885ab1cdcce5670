"""
Tool Registry.

Central registry for assessment tools. Holds tool registrations, indexes them
by accessibility-profile (PNP) support id, and decides which tools are visible
in a given context.

Visibility is two-pass:
1. The orchestrator (toolbar, placement config, policy) names the candidate
   tools. Tools it does not name are never visible.
2. Each named tool that supports the context level decides for itself via
   ``is_visible_in_context``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterable

from loguru import logger

from src.core.errors import ToolkitError
from src.tools.context import ToolContext


class DuplicateRegistrationError(ToolkitError):
    """Raised when a tool id is registered twice."""
    pass


class UnknownToolError(ToolkitError):
    """Raised when an operation names a tool that is not registered."""
    pass


# =============================================================================
# Buttons and instances
# =============================================================================


@dataclass
class ToolButtonOptions:
    """Host-supplied options for a toolbar button."""

    disabled: bool = False
    class_name: str | None = None
    on_click: Callable[[], None] | None = None
    aria_label: str | None = None
    icon: str | None = None
    tooltip: str | None = None


@dataclass
class ToolButtonDefinition:
    """Everything a toolbar needs to render one tool button."""

    tool_id: str
    label: str
    icon: str
    disabled: bool
    aria_label: str
    on_click: Callable[[], None]
    tooltip: str | None = None
    class_name: str | None = None


@dataclass
class ToolInstanceOptions:
    initial_state: Any = None
    on_close: Callable[[], None] | None = None
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolInstance:
    """
    Description of a tool instance for the rendering layer.

    The toolkit does not touch the DOM; the host turns this into a component
    (tag name plus properties).
    """

    tool_id: str
    tag_name: str
    level: str
    properties: dict[str, Any] = field(default_factory=dict)
    initial_state: Any = None
    on_close: Callable[[], None] | None = None


def _noop() -> None:
    return None


# =============================================================================
# Registration interface
# =============================================================================


class ToolRegistration(ABC):
    """
    One assessment tool.

    Concrete tools declare their identity as class attributes and implement
    ``is_visible_in_context``. Button and instance creation have defaults that
    tools refine through ``aria_label`` / ``instance_properties``.
    """

    tool_id: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str] = ""
    icon: ClassVar[str] = ""
    tag_name: ClassVar[str] = ""
    supported_levels: ClassVar[frozenset[str]] = frozenset()
    pnp_support_ids: ClassVar[frozenset[str]] = frozenset()

    @abstractmethod
    def is_visible_in_context(self, context: ToolContext) -> bool:
        """Pass 2: is this tool relevant here? Only called for allowed tools."""
        ...

    def supports_level(self, level: str) -> bool:
        return level in self.supported_levels

    def resolve_icon(self, context: ToolContext) -> str:
        return self.icon

    def aria_label(self, context: ToolContext) -> str:
        return f"Open {self.name.lower()}"

    def create_button(
        self, context: ToolContext, options: ToolButtonOptions
    ) -> ToolButtonDefinition:
        return ToolButtonDefinition(
            tool_id=self.tool_id,
            label=self.name,
            icon=options.icon or self.resolve_icon(context),
            disabled=options.disabled,
            aria_label=options.aria_label or self.aria_label(context),
            tooltip=options.tooltip or self.name,
            on_click=options.on_click or _noop,
            class_name=options.class_name,
        )

    def instance_properties(
        self, context: ToolContext, options: ToolInstanceOptions
    ) -> dict[str, Any]:
        return {"visible": True, **options.config}

    def create_tool_instance(
        self, context: ToolContext, options: ToolInstanceOptions
    ) -> ToolInstance:
        return ToolInstance(
            tool_id=self.tool_id,
            tag_name=self.tag_name or f"pie-tool-{self.tool_id}",
            level=context.level,
            properties=self.instance_properties(context, options),
            initial_state=options.initial_state,
            on_close=options.on_close,
        )

    def metadata(self) -> dict[str, Any]:
        """Export shape consumed by accessibility-profile mapping tools."""
        return {
            "toolId": self.tool_id,
            "name": self.name,
            "description": self.description,
            "pnpSupportIds": sorted(self.pnp_support_ids),
            "supportedLevels": sorted(self.supported_levels),
        }


# =============================================================================
# Registry
# =============================================================================


class ToolRegistry:
    """
    Tool registrations keyed by tool id, with a PNP support index.

    One registry is created per toolkit coordinator and passed to whoever
    needs it; there is no module-level instance.
    """

    def __init__(self):
        self._tools: dict[str, ToolRegistration] = {}
        self._pnp_index: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, registration: ToolRegistration) -> None:
        """
        Register a tool.

        Raises:
            DuplicateRegistrationError: if the tool id is already registered
        """
        tool_id = registration.tool_id
        if tool_id in self._tools:
            raise DuplicateRegistrationError(f"Tool '{tool_id}' is already registered")

        self._tools[tool_id] = registration
        self._index_pnp(registration)
        logger.debug(f"Registered tool '{tool_id}'")

    def override(self, registration: ToolRegistration) -> None:
        """
        Replace an existing registration and re-index its PNP support ids.

        Raises:
            UnknownToolError: if the tool id is not registered
        """
        tool_id = registration.tool_id
        previous = self._tools.get(tool_id)
        if previous is None:
            raise UnknownToolError(f"Cannot override non-existent tool '{tool_id}'")

        self._unindex_pnp(previous)
        self._tools[tool_id] = registration
        self._index_pnp(registration)
        logger.debug(f"Overrode tool '{tool_id}'")

    def unregister(self, tool_id: str) -> None:
        """Remove a tool. Unknown ids are ignored."""
        registration = self._tools.pop(tool_id, None)
        if registration is not None:
            self._unindex_pnp(registration)

    def clear(self) -> None:
        self._tools.clear()
        self._pnp_index.clear()

    def _index_pnp(self, registration: ToolRegistration) -> None:
        for pnp_id in registration.pnp_support_ids:
            self._pnp_index.setdefault(pnp_id, set()).add(registration.tool_id)

    def _unindex_pnp(self, registration: ToolRegistration) -> None:
        for pnp_id in registration.pnp_support_ids:
            bucket = self._pnp_index.get(pnp_id)
            if bucket is None:
                continue
            bucket.discard(registration.tool_id)
            if not bucket:
                del self._pnp_index[pnp_id]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, tool_id: str) -> ToolRegistration | None:
        return self._tools.get(tool_id)

    def has(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def require(self, tool_id: str) -> ToolRegistration:
        registration = self._tools.get(tool_id)
        if registration is None:
            raise UnknownToolError(f"Tool '{tool_id}' is not registered")
        return registration

    def get_all_tool_ids(self) -> list[str]:
        return list(self._tools)

    def get_all_tools(self) -> list[ToolRegistration]:
        return list(self._tools.values())

    def get_tools_by_pnp_support(self, pnp_support_id: str) -> set[str]:
        """Tool ids declaring support for a PNP id (a copy; safe to mutate)."""
        return set(self._pnp_index.get(pnp_support_id, ()))

    def get_tools_by_level(self, level: str) -> list[ToolRegistration]:
        return [tool for tool in self._tools.values() if tool.supports_level(level)]

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def filter_visible_in_context(
        self, allowed_tool_ids: Iterable[str], context: ToolContext
    ) -> list[ToolRegistration]:
        """
        Pass 2 of the visibility model.

        Args:
            allowed_tool_ids: Tools the orchestrator allows here (pass 1). An
                empty list always yields an empty result.
            context: Where the tools would appear

        Returns:
            Visible registrations, in the order they were allowed
        """
        visible: list[ToolRegistration] = []
        seen: set[str] = set()

        for tool_id in allowed_tool_ids:
            if tool_id in seen:
                continue
            seen.add(tool_id)

            tool = self._tools.get(tool_id)
            if tool is None:
                logger.warning(f"Tool '{tool_id}' is allowed but not registered")
                continue

            if not tool.supports_level(context.level):
                continue

            try:
                if tool.is_visible_in_context(context):
                    visible.append(tool)
            except Exception as e:
                logger.error(f"Error evaluating visibility for tool '{tool_id}': {e}")

        return visible

    def create_buttons(
        self,
        allowed_tool_ids: Iterable[str],
        context: ToolContext,
        button_options: Callable[[str], ToolButtonOptions] | None = None,
    ) -> list[ToolButtonDefinition]:
        """Button definitions for every tool visible in the context."""
        buttons = []
        for tool in self.filter_visible_in_context(allowed_tool_ids, context):
            options = button_options(tool.tool_id) if button_options else ToolButtonOptions()
            buttons.append(tool.create_button(context, options))
        return buttons

    def render_for_toolbar(
        self,
        tool_id: str,
        context: ToolContext,
        options: ToolButtonOptions | None = None,
    ) -> ToolButtonDefinition:
        """
        Raises:
            UnknownToolError: if the tool is not registered
        """
        return self.require(tool_id).create_button(context, options or ToolButtonOptions())

    def create_tool_instance(
        self,
        tool_id: str,
        context: ToolContext,
        options: ToolInstanceOptions | None = None,
    ) -> ToolInstance:
        """
        Raises:
            UnknownToolError: if the tool is not registered
        """
        return self.require(tool_id).create_tool_instance(
            context, options or ToolInstanceOptions()
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def get_tool_metadata(self) -> list[dict[str, Any]]:
        """``{toolId, name, description, pnpSupportIds, supportedLevels}`` per tool."""
        return [tool.metadata() for tool in self._tools.values()]

    def generate_pnp_supports_from_tools(self, enabled_tool_ids: Iterable[str]) -> list[str]:
        """PNP support ids covered by the given tools (sorted, unique)."""
        supports: set[str] = set()
        for tool_id in enabled_tool_ids:
            tool = self._tools.get(tool_id)
            if tool is not None:
                supports.update(tool.pnp_support_ids)
        return sorted(supports)
