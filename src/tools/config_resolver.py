"""
Tool Config Resolver.

Three-tier hierarchy for tool configuration:

    Item requirements > Roster allowances > Student accommodations

Item configuration wins unconditionally, even over a roster block: when an
item needs a scientific calculator the student gets one. A roster "0" blocks
a tool regardless of accommodations; "1" allows it. Student accommodations
(IEP/504) enable a tool when nothing above decides.

Missing configuration never raises; an unconfigured tool resolves to None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping, Union

ToolAllowance = Literal["0", "1"]
ToolConfigSource = Literal["item", "roster", "student"]

BLOCKED: ToolAllowance = "0"
ALLOWED: ToolAllowance = "1"

ItemToolConfig = Mapping[str, Mapping[str, Any]]
RosterToolConfig = Mapping[str, str]


@dataclass
class StudentAccommodations:
    """Student accommodation profile, e.g. ``["tts", "calculator", "extended-time"]``."""

    accommodations: list[str] = field(default_factory=list)

    @classmethod
    def coerce(
        cls, profile: Union["StudentAccommodations", Mapping[str, Any], None]
    ) -> "StudentAccommodations | None":
        if profile is None or isinstance(profile, StudentAccommodations):
            return profile
        return cls(accommodations=list(profile.get("accommodations") or []))


StudentProfile = Union[StudentAccommodations, Mapping[str, Any]]


@dataclass
class ResolvedToolConfig:
    enabled: bool
    source: ToolConfigSource
    required: bool = False
    type: str | None = None
    settings: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Dict form; unset ``type``/``settings`` are omitted."""
        data: dict[str, Any] = {
            "enabled": self.enabled,
            "required": self.required,
            "source": self.source,
        }
        if self.type is not None:
            data["type"] = self.type
        if self.settings is not None:
            data["settings"] = self.settings
        return data


@dataclass
class ValidationResult:
    valid: bool
    missing_tools: list[str] = field(default_factory=list)


class ToolConfigResolver:
    """Stateless resolver; one instance can serve every item."""

    def resolve_tool(
        self,
        tool_id: str,
        item_config: ItemToolConfig | None = None,
        roster_config: RosterToolConfig | None = None,
        student_profile: StudentProfile | None = None,
    ) -> ResolvedToolConfig | None:
        """
        Resolve one tool. First match wins:

        1. item config for the tool -> enabled, source "item"
        2. roster "0" -> None (blocked); roster "1" -> enabled, source "roster"
        3. tool in student accommodations -> enabled, source "student"
        4. otherwise None

        Args:
            tool_id: Tool identifier
            item_config: ``{toolId: {type?, required?, settings?}}``
            roster_config: ``{toolId: "0" | "1"}``
            student_profile: StudentAccommodations or ``{"accommodations": [...]}``

        Returns:
            ResolvedToolConfig, or None if the tool is not available
        """
        item_tool = (item_config or {}).get(tool_id)
        if item_tool is not None:
            return ResolvedToolConfig(
                enabled=True,
                type=item_tool.get("type"),
                required=bool(item_tool.get("required", False)),
                settings=item_tool.get("settings"),
                source="item",
            )

        allowance = (roster_config or {}).get(tool_id)
        if allowance == BLOCKED:
            return None
        if allowance == ALLOWED:
            return ResolvedToolConfig(enabled=True, required=False, source="roster")

        profile = StudentAccommodations.coerce(student_profile)
        if profile is not None and tool_id in profile.accommodations:
            return ResolvedToolConfig(enabled=True, required=False, source="student")

        return None

    def resolve_all(
        self,
        item_config: ItemToolConfig | None = None,
        roster_config: RosterToolConfig | None = None,
        student_profile: StudentProfile | None = None,
    ) -> dict[str, ResolvedToolConfig]:
        """Resolve every tool named by any tier. Unavailable tools are omitted."""
        profile = StudentAccommodations.coerce(student_profile)

        tool_ids: dict[str, None] = {}
        for source in (
            item_config or {},
            roster_config or {},
            profile.accommodations if profile else (),
        ):
            for tool_id in source:
                tool_ids.setdefault(tool_id, None)

        resolved: dict[str, ResolvedToolConfig] = {}
        for tool_id in tool_ids:
            config = self.resolve_tool(tool_id, item_config, roster_config, profile)
            if config is not None:
                resolved[tool_id] = config
        return resolved

    # ------------------------------------------------------------------
    # Convenience queries
    # ------------------------------------------------------------------

    def is_tool_enabled(self, tool_id: str, **sources: Any) -> bool:
        config = self.resolve_tool(tool_id, **sources)
        return config.enabled if config else False

    def is_tool_required(self, tool_id: str, **sources: Any) -> bool:
        config = self.resolve_tool(tool_id, **sources)
        return config.required if config else False

    def get_tool_type(self, tool_id: str, **sources: Any) -> str | None:
        config = self.resolve_tool(tool_id, **sources)
        return config.type if config else None

    def get_tool_settings(self, tool_id: str, **sources: Any) -> Any:
        config = self.resolve_tool(tool_id, **sources)
        return config.settings if config else None

    def get_enabled_tools(self, **sources: Any) -> list[str]:
        return [tool_id for tool_id, config in self.resolve_all(**sources).items() if config.enabled]

    def get_required_tools(self, **sources: Any) -> list[str]:
        return [tool_id for tool_id, config in self.resolve_all(**sources).items() if config.required]

    def validate(self, available_tools: Iterable[str], **sources: Any) -> ValidationResult:
        """Check every required tool is among the available ones."""
        available = set(available_tools)
        missing = [tool_id for tool_id in self.get_required_tools(**sources) if tool_id not in available]
        return ValidationResult(valid=not missing, missing_tools=missing)

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    @staticmethod
    def merge_roster_configs(*configs: RosterToolConfig) -> dict[str, str]:
        """Merge roster configs; a block in any config wins over allows."""
        merged: dict[str, str] = {}
        for config in configs:
            for tool_id, allowance in config.items():
                if allowance == BLOCKED:
                    merged[tool_id] = BLOCKED
                elif tool_id not in merged:
                    merged[tool_id] = allowance
        return merged

    @staticmethod
    def merge_student_profiles(*profiles: StudentProfile) -> StudentAccommodations:
        """Union of all accommodations, first-seen order."""
        merged: dict[str, None] = {}
        for profile in profiles:
            coerced = StudentAccommodations.coerce(profile)
            for accommodation in coerced.accommodations if coerced else ():
                merged.setdefault(accommodation, None)
        return StudentAccommodations(accommodations=list(merged))
