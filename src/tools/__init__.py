"""
Tools Module - Tool registry, visibility and configuration.

Components:
- context: Tool levels, per-level ToolContext variants, content heuristics
- registry: ToolRegistration interface and ToolRegistry
- registrations: Built-in tools (calculator, text-to-speech, ...)
- scoped_id: ``tool:level:scope`` tool instance ids
- config_normalizer: Tool lists, aliases and per-level placement
- config_resolver: Item > roster > student config resolution
- element_state: Per-element ephemeral tool state

Visibility Model:
The orchestrator names the allowed tools (placement + policy); the registry
keeps those that support the level and report themselves relevant.
"""

from src.tools.config_normalizer import (
    CanonicalToolsConfig,
    normalize_tools_config,
    parse_tool_list,
    resolve_tools_for_level,
)
from src.tools.config_resolver import ResolvedToolConfig, StudentAccommodations, ToolConfigResolver
from src.tools.context import TOOL_LEVELS, ToolContext
from src.tools.element_state import (
    ElementToolStateStore,
    get_global_element_id,
    parse_global_element_id,
)
from src.tools.registrations import DEFAULT_TOOL_REGISTRATIONS, create_default_tool_registry
from src.tools.registry import (
    DuplicateRegistrationError,
    ToolRegistration,
    ToolRegistry,
    UnknownToolError,
)
from src.tools.scoped_id import ParsedToolInstanceId, ScopedToolIds, ToolScopeLevels

__all__ = [
    "TOOL_LEVELS",
    "ToolContext",
    "ToolRegistration",
    "ToolRegistry",
    "DuplicateRegistrationError",
    "UnknownToolError",
    "DEFAULT_TOOL_REGISTRATIONS",
    "create_default_tool_registry",
    "ToolScopeLevels",
    "ScopedToolIds",
    "ParsedToolInstanceId",
    "CanonicalToolsConfig",
    "normalize_tools_config",
    "parse_tool_list",
    "resolve_tools_for_level",
    "ToolConfigResolver",
    "ResolvedToolConfig",
    "StudentAccommodations",
    "ElementToolStateStore",
    "get_global_element_id",
    "parse_global_element_id",
]
