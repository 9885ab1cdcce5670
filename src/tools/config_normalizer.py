"""
Tools config normalization.

Turns loose host input (comma lists, aliases, partial placement maps) into a
CanonicalToolsConfig where every placement level has a defined, deduplicated
tool list with the allow/block policy already applied.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field

from src.tools.config_defaults import DEFAULT_TOOL_ALIAS_MAP, DEFAULT_TOOL_PLACEMENT


class ToolPolicyConfig(BaseModel):
    """Assessment-wide allow/block lists. An empty allow list allows everything placed."""

    model_config = ConfigDict(extra="ignore")

    allowed: list[str] = Field(default_factory=list)
    blocked: list[str] = Field(default_factory=list)


class CanonicalToolsConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    policy: ToolPolicyConfig = Field(default_factory=ToolPolicyConfig)
    placement: dict[str, list[str]] = Field(default_factory=dict)
    providers: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def placement_for(self, level: str) -> list[str]:
        """Tools placed at a level after allow-then-block."""
        return resolve_tools_for_level(self, level)


# =============================================================================
# Tool lists
# =============================================================================


def normalize_tool_alias(tool_id: str) -> str:
    """Trim and map shorthand names (``tts`` -> ``textToSpeech``)."""
    trimmed = tool_id.strip()
    if not trimmed:
        return ""
    return DEFAULT_TOOL_ALIAS_MAP.get(trimmed, trimmed)


def normalize_tool_list(tool_ids: Iterable[str] | None) -> list[str]:
    """Aliases mapped, blanks dropped, duplicates removed (first occurrence kept)."""
    if not tool_ids:
        return []
    normalized: dict[str, None] = {}
    for raw in tool_ids:
        tool_id = normalize_tool_alias(raw)
        if tool_id:
            normalized.setdefault(tool_id, None)
    return list(normalized)


def parse_tool_list(value: str | None) -> list[str]:
    """
    Parse a comma separated tool list.

    >>> parse_tool_list("calculator, tts, tts, graph")
    ['calculator', 'textToSpeech', 'graph']
    """
    if not value:
        return []
    return normalize_tool_list(value.split(","))


def _apply_policy(tool_ids: list[str], policy: ToolPolicyConfig) -> list[str]:
    allowed = normalize_tool_list(policy.allowed)
    blocked = set(normalize_tool_list(policy.blocked))
    if allowed:
        tool_ids = [tool_id for tool_id in tool_ids if tool_id in allowed]
    return [tool_id for tool_id in tool_ids if tool_id not in blocked]


# =============================================================================
# Config
# =============================================================================


def normalize_tools_config(
    raw: CanonicalToolsConfig | Mapping[str, Any] | None = None,
) -> CanonicalToolsConfig:
    """
    Normalize a host tools config.

    Every level of the default placement table ends up defined: levels that
    are missing or empty in the input take the defaults. The allow/block
    policy is then applied to each level independently. Levels the input adds
    beyond the defaults are kept. Providers pass through untouched.

    Args:
        raw: Partial config (dict or model). None means "all defaults".

    Returns:
        A new CanonicalToolsConfig
    """
    if raw is None:
        raw = {}
    if isinstance(raw, CanonicalToolsConfig):
        raw = raw.model_dump()

    policy_input = raw.get("policy") or {}
    policy = ToolPolicyConfig(
        allowed=normalize_tool_list(policy_input.get("allowed")),
        blocked=normalize_tool_list(policy_input.get("blocked")),
    )

    placement_input: Mapping[str, Any] = raw.get("placement") or {}
    placement: dict[str, list[str]] = {}
    for level, defaults in DEFAULT_TOOL_PLACEMENT.items():
        tools = normalize_tool_list(placement_input.get(level))
        placement[level] = _apply_policy(tools or list(defaults), policy)
    for level, tools in placement_input.items():
        if level not in placement:
            placement[level] = _apply_policy(normalize_tool_list(tools), policy)

    return CanonicalToolsConfig(
        policy=policy,
        placement=placement,
        providers=dict(raw.get("providers") or {}),
    )


def resolve_tools_for_level(config: CanonicalToolsConfig, level: str) -> list[str]:
    """
    Tools for a placement level, allow-then-block filtered.

    Unknown levels resolve to an empty list.
    """
    placement = normalize_tool_list(config.placement.get(level))
    return _apply_policy(placement, config.policy)
