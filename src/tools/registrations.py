"""
Built-in tool registrations.

Each tool declares the levels it can appear at, the PNP support ids that
enable it (QTI 3.0 access features plus common variants), and a content-based
relevance check.
"""

from __future__ import annotations

from typing import Any, Iterable

from src.tools.context import (
    ASSESSMENT,
    ELEMENT,
    ITEM,
    PASSAGE,
    RUBRIC,
    SECTION,
    ToolContext,
    has_choice_interaction,
    has_math_content,
    has_readable_text,
    has_science_content,
)
from src.tools.registry import ToolInstanceOptions, ToolRegistration, ToolRegistry


class CalculatorTool(ToolRegistration):
    """Basic, scientific and graphing calculator."""

    tool_id = "calculator"
    name = "Calculator"
    description = "Multi-type calculator (basic, scientific, graphing)"
    icon = "calculator"
    tag_name = "pie-tool-calculator"
    supported_levels = frozenset({SECTION, ITEM, PASSAGE, RUBRIC, ELEMENT})
    pnp_support_ids = frozenset({
        "calculator",
        "graphingCalculator",
        "basicCalculator",
        "scientificCalculator",
    })

    DEFAULT_TYPE = "scientific"
    AVAILABLE_TYPES = ("basic", "scientific", "graphing")

    def is_visible_in_context(self, context: ToolContext) -> bool:
        # Students may need a calculator for any problem in a section or item
        if context.level in (SECTION, ITEM):
            return True
        return has_math_content(context)

    def aria_label(self, context: ToolContext) -> str:
        return "Open calculator - Press to activate calculator tool"

    def instance_properties(
        self, context: ToolContext, options: ToolInstanceOptions
    ) -> dict[str, Any]:
        config = options.config
        return {
            "visible": True,
            "calculatorType": config.get("calculatorType") or self.DEFAULT_TYPE,
            "availableTypes": list(config.get("availableTypes") or self.AVAILABLE_TYPES),
        }


class TextToSpeechTool(ToolRegistration):
    tool_id = "textToSpeech"
    name = "Read Aloud"
    description = "Reads content aloud with word highlighting"
    icon = "volume-up"
    tag_name = "pie-tool-tts-inline"
    supported_levels = frozenset({SECTION, ITEM, PASSAGE, RUBRIC})
    pnp_support_ids = frozenset({"textToSpeech", "readAloud", "tts", "speechOutput"})

    def is_visible_in_context(self, context: ToolContext) -> bool:
        if context.level == SECTION:
            return True
        return has_readable_text(context)


class AnswerEliminatorTool(ToolRegistration):
    tool_id = "answerEliminator"
    name = "Answer Eliminator"
    description = "Strike through answer choices to rule them out"
    icon = "strikethrough"
    tag_name = "pie-tool-answer-eliminator"
    supported_levels = frozenset({ELEMENT})
    pnp_support_ids = frozenset({
        "answerMasking",
        "answerEliminator",
        "strikethrough",
        "choiceMasking",
    })

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_choice_interaction(context)

    def instance_properties(
        self, context: ToolContext, options: ToolInstanceOptions
    ) -> dict[str, Any]:
        return {
            "visible": True,
            "strategy": options.config.get("strategy", "strikethrough"),
            "elementId": getattr(context, "element_id", None),
        }


class HighlighterTool(ToolRegistration):
    tool_id = "highlighter"
    name = "Highlighter"
    description = "Highlight text"
    icon = "highlighter"
    supported_levels = frozenset({PASSAGE, RUBRIC, ITEM, ELEMENT})
    pnp_support_ids = frozenset({"highlighter", "textHighlight", "annotation"})

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_readable_text(context)


class AnnotationToolbarTool(ToolRegistration):
    tool_id = "annotationToolbar"
    name = "Highlight & Annotate"
    description = "Highlight text and add notes"
    icon = "pencil"
    tag_name = "pie-tool-annotation-toolbar"
    supported_levels = frozenset({PASSAGE, RUBRIC, ITEM, ELEMENT})
    pnp_support_ids = frozenset({
        "highlighting",
        "annotations",
        "highlighter",
        "textHighlight",
        "annotation",
    })

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_readable_text(context)


class LineReaderTool(ToolRegistration):
    tool_id = "lineReader"
    name = "Line Reader"
    description = "Reading mask that follows the current line"
    icon = "line-reader"
    tag_name = "pie-tool-line-reader"
    supported_levels = frozenset({PASSAGE, RUBRIC, ITEM})
    pnp_support_ids = frozenset({
        "readingMask",
        "readingGuide",
        "readingRuler",
        "lineReader",
        "trackingGuide",
    })

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_readable_text(context)


class ColorSchemeTool(ToolRegistration):
    tool_id = "colorScheme"
    name = "Color Scheme"
    description = "High contrast and custom color schemes"
    icon = "palette"
    tag_name = "pie-tool-color-scheme"
    supported_levels = frozenset({ASSESSMENT, SECTION})
    pnp_support_ids = frozenset({
        "highContrastDisplay",
        "colorContrast",
        "invertColors",
        "colorScheme",
        "highContrast",
        "customColors",
    })

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return True


class RulerTool(ToolRegistration):
    tool_id = "ruler"
    name = "Ruler"
    description = "On-screen ruler for measurement items"
    icon = "ruler"
    supported_levels = frozenset({ITEM, ELEMENT})
    pnp_support_ids = frozenset({"ruler", "measurement"})

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_math_content(context)


class ProtractorTool(ToolRegistration):
    tool_id = "protractor"
    name = "Protractor"
    description = "On-screen protractor for angle measurement"
    icon = "protractor"
    supported_levels = frozenset({ITEM, ELEMENT})
    pnp_support_ids = frozenset({"protractor", "angleMeasurement"})

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_math_content(context)


class GraphTool(ToolRegistration):
    tool_id = "graph"
    name = "Graph"
    description = "Coordinate plane graphing tool"
    icon = "graph"
    supported_levels = frozenset({ITEM, ELEMENT})
    pnp_support_ids = frozenset({
        "graph",
        "graphingCalculator",
        "coordinatePlane",
        "graphingTool",
    })

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_math_content(context)


class PeriodicTableTool(ToolRegistration):
    tool_id = "periodicTable"
    name = "Periodic Table"
    description = "Periodic table of the elements"
    icon = "atom"
    tag_name = "pie-tool-periodic-table"
    supported_levels = frozenset({ITEM, ELEMENT})
    pnp_support_ids = frozenset({"periodicTable", "chemistryReference", "elementReference"})

    def is_visible_in_context(self, context: ToolContext) -> bool:
        return has_science_content(context)


DEFAULT_TOOL_REGISTRATIONS: tuple[type[ToolRegistration], ...] = (
    CalculatorTool,
    TextToSpeechTool,
    AnswerEliminatorTool,
    HighlighterTool,
    AnnotationToolbarTool,
    LineReaderTool,
    ColorSchemeTool,
    RulerTool,
    ProtractorTool,
    GraphTool,
    PeriodicTableTool,
)


def create_default_tool_registry(tool_ids: Iterable[str] | None = None) -> ToolRegistry:
    """
    Build a registry holding the built-in tools.

    Args:
        tool_ids: Restrict to these built-ins (default: all of them)

    Returns:
        A new ToolRegistry
    """
    wanted = set(tool_ids) if tool_ids is not None else None
    registry = ToolRegistry()
    for registration_cls in DEFAULT_TOOL_REGISTRATIONS:
        if wanted is None or registration_cls.tool_id in wanted:
            registry.register(registration_cls())
    return registry
