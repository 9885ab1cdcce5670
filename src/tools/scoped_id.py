"""
Scoped tool instance ids.

A tool instance is identified by ``<toolId>:<scopeLevel>:<scopeId>``, e.g.
``calculator:item:q1``. Older hosts emitted a fourth segment, the literal
``inline``, for tools rendered inline; those ids are still accepted and map
to the same tool/level/scope triple.

Scope levels are an open set: hosts may register their own levels next to
the built-in ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Literal

from src.tools.context import TOOL_LEVELS

DEFAULT_TOOL_SCOPE_LEVELS: tuple[str, ...] = TOOL_LEVELS

SEPARATOR = ":"
INLINE_SUFFIX = "inline"

ToolInstanceRole = Literal["overlay", "inline"]


@dataclass(frozen=True)
class ParsedToolInstanceId:
    base_tool_id: str
    scope_level: str
    scope_id: str
    role: ToolInstanceRole = "overlay"


class ToolScopeLevels:
    """Known scope levels. Built-ins are always present; more can be added."""

    def __init__(self, levels: Iterable[str] = DEFAULT_TOOL_SCOPE_LEVELS):
        # dict keeps registration order
        self._levels: dict[str, None] = {}
        for level in levels:
            self.register(level)

    def register(self, scope_level: str) -> str:
        """
        Add a scope level.

        Returns:
            The normalized (trimmed) level

        Raises:
            ValueError: if the level is blank or contains the id separator
        """
        normalized = scope_level.strip()
        if not normalized:
            raise ValueError("Tool scope level must be a non-empty string")
        if SEPARATOR in normalized:
            raise ValueError(f"Tool scope level may not contain '{SEPARATOR}': {normalized!r}")
        self._levels.setdefault(normalized, None)
        return normalized

    def is_registered(self, scope_level: str) -> bool:
        return scope_level in self._levels

    def __contains__(self, scope_level: object) -> bool:
        return scope_level in self._levels

    def __iter__(self) -> Iterator[str]:
        return iter(self._levels)

    def all(self) -> list[str]:
        return list(self._levels)


class ScopedToolIds:
    """Builds and parses scoped tool instance ids against a set of scope levels."""

    def __init__(self, levels: ToolScopeLevels | None = None):
        self.levels = levels or ToolScopeLevels()

    def create(
        self,
        base_tool_id: str,
        scope_level: str,
        scope_id: str,
        role: ToolInstanceRole = "overlay",
    ) -> str:
        """
        Build ``tool:level:scope`` (``tool:level:scope:inline`` for the legacy inline role).

        Raises:
            ValueError: on blank tool/scope ids or an unregistered scope level
        """
        base = base_tool_id.strip()
        scope = scope_id.strip()
        if not base or not scope:
            raise ValueError("Tool instance ids require non-empty tool and scope ids")
        if not self.levels.is_registered(scope_level):
            raise ValueError(
                f"Unknown tool scope level '{scope_level}'. "
                "Register custom levels with ToolScopeLevels.register()."
            )

        parts = [base, scope_level, scope]
        if role == "inline":
            parts.append(INLINE_SUFFIX)
        return SEPARATOR.join(parts)

    def parse(self, tool_instance_id: str) -> ParsedToolInstanceId | None:
        """
        Parse a scoped id. Two accepted shapes:

        - canonical: ``tool:level:scope``
        - legacy:    ``tool:level:scope:inline``

        Anything else (other segment counts, unknown level, blank parts, a
        fourth segment other than ``inline``) returns None.
        """
        parts = tool_instance_id.split(SEPARATOR)
        if len(parts) == 3:
            return self._parse_canonical(parts)
        if len(parts) == 4:
            return self._parse_legacy(parts)
        return None

    def _parse_canonical(self, parts: list[str]) -> ParsedToolInstanceId | None:
        base, level, scope = parts
        if not base or not scope or not self.levels.is_registered(level):
            return None
        return ParsedToolInstanceId(base, level, scope, "overlay")

    def _parse_legacy(self, parts: list[str]) -> ParsedToolInstanceId | None:
        *head, suffix = parts
        if suffix != INLINE_SUFFIX:
            return None
        parsed = self._parse_canonical(head)
        if parsed is None:
            return None
        return ParsedToolInstanceId(
            parsed.base_tool_id, parsed.scope_level, parsed.scope_id, "inline"
        )

    def to_overlay(self, tool_instance_id: str) -> str:
        """Canonical overlay form of an id; unparseable ids are returned unchanged."""
        parsed = self.parse(tool_instance_id)
        if parsed is None:
            return tool_instance_id
        return self.create(parsed.base_tool_id, parsed.scope_level, parsed.scope_id)
