"""
Tool Context Types.

A ToolContext tells a tool where it is being evaluated. Each structural level
has its own context class carrying the entities relevant at that level; the
class-level ``level`` tag is what the registry dispatches on.

Also provides the content heuristics built-in tools use to decide whether
they are relevant (math, readable text, choice interactions, science).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Union

from src.section.models import (
    AssessmentEntity,
    AssessmentItemRef,
    AssessmentSection,
    ItemEntity,
    PassageEntity,
    RubricBlock,
)

# =============================================================================
# Levels
# =============================================================================

ASSESSMENT = "assessment"
SECTION = "section"
ITEM = "item"
PASSAGE = "passage"
RUBRIC = "rubric"
ELEMENT = "element"

TOOL_LEVELS: tuple[str, ...] = (ASSESSMENT, SECTION, ITEM, PASSAGE, RUBRIC, ELEMENT)


# =============================================================================
# Context variants
# =============================================================================


@dataclass(frozen=True)
class AssessmentToolContext:
    """Assessment-wide tools (e.g. color scheme)."""

    level: ClassVar[str] = ASSESSMENT

    assessment: AssessmentEntity


@dataclass(frozen=True)
class SectionToolContext:
    """Section toolbar tools."""

    level: ClassVar[str] = SECTION

    assessment: AssessmentEntity
    section: AssessmentSection


@dataclass(frozen=True)
class ItemToolContext:
    """Item (question) toolbar tools."""

    level: ClassVar[str] = ITEM

    assessment: AssessmentEntity
    item_ref: AssessmentItemRef
    item: ItemEntity
    section: AssessmentSection | None = None
    passage: PassageEntity | None = None


@dataclass(frozen=True)
class PassageToolContext:
    """Passage header tools. The passage may come from an item or a stimulus block."""

    level: ClassVar[str] = PASSAGE

    assessment: AssessmentEntity
    passage: PassageEntity
    section: AssessmentSection | None = None
    item_ref: AssessmentItemRef | None = None
    items: tuple[ItemEntity, ...] = ()
    rubric_block: RubricBlock | None = None


@dataclass(frozen=True)
class RubricToolContext:
    """Rubric block tools (instructions, rubrics, embedded stimulus)."""

    level: ClassVar[str] = RUBRIC

    assessment: AssessmentEntity
    rubric_block: RubricBlock
    section: AssessmentSection
    passage: PassageEntity | None = None


@dataclass(frozen=True)
class ElementToolContext:
    """Tools inline with one interaction element of an item."""

    level: ClassVar[str] = ELEMENT

    assessment: AssessmentEntity
    item_ref: AssessmentItemRef
    item: ItemEntity
    element_id: str
    section: AssessmentSection | None = None
    passage: PassageEntity | None = None


ToolContext = Union[
    AssessmentToolContext,
    SectionToolContext,
    ItemToolContext,
    PassageToolContext,
    RubricToolContext,
    ElementToolContext,
]


# =============================================================================
# Content heuristics
# =============================================================================

_TAG_RE = re.compile(r"<[^>]*>")

_MATH_INDICATORS = [
    re.compile(r"<math[>\s]", re.IGNORECASE),  # MathML
    re.compile(r"\\\[([^\]]+)\\\]"),  # LaTeX display math
    re.compile(r"\$\$[^$]+\$\$"),
    re.compile(r"\\\("),  # LaTeX inline math
    re.compile(r"[+\-*/=<>≤≥∑∫√π]"),
    re.compile(r"\d+\s*[+\-*/=]\s*\d+"),
]

_SCIENCE_INDICATORS = [
    re.compile(r"chemistry|chemical|element|atom|molecule|compound", re.IGNORECASE),
    re.compile(r"periodic\s+table", re.IGNORECASE),
    re.compile(r"H₂O|CO₂|NaCl|O₂|N₂", re.IGNORECASE),
    re.compile(r"biology|organism|cell|DNA|RNA|protein", re.IGNORECASE),
    re.compile(r"physics|force|energy|velocity|acceleration", re.IGNORECASE),
]

CHOICE_INTERACTION_TYPES = frozenset({
    "pie-multiple-choice",
    "pie-inline-choice",
    "pie-select-text",
    "multiple-choice",
    "inline-choice",
    "select-text",
})

# Minimum characters before text is worth reading aloud / highlighting
READABLE_TEXT_MIN_CHARS = 10


def _strip_html(value: str) -> str:
    return _TAG_RE.sub(" ", value).strip()


def _models_of(config: dict[str, Any] | None) -> list[Any]:
    """Item models may be a list or a dict keyed by element id."""
    if not config:
        return []
    models = config.get("models")
    if isinstance(models, list):
        return models
    if isinstance(models, dict):
        return list(models.values())
    return []


# Model keys that identify an element rather than carry its content
_NON_CONTENT_KEYS = frozenset({"id", "element"})


def _model_text(model: dict[str, Any]) -> Iterable[str]:
    for key, value in model.items():
        if key in _NON_CONTENT_KEYS:
            continue
        if isinstance(value, str):
            yield _strip_html(value)
        elif isinstance(value, list):
            for entry in value:
                if isinstance(entry, dict):
                    for nested in entry.values():
                        if isinstance(nested, str):
                            yield _strip_html(nested)


def _find_model(config: dict[str, Any] | None, element_id: str) -> dict[str, Any] | None:
    for model in _models_of(config):
        if isinstance(model, dict) and model.get("id") == element_id:
            return model
    return None


def extract_text_content(context: ToolContext) -> str:
    """Plain text a tool can inspect for the given context."""
    chunks: list[str] = []

    if isinstance(context, ElementToolContext):
        config = context.item.config
        if not config:
            return ""
        markup = (config.get("elements") or {}).get(context.element_id)
        if isinstance(markup, str):
            chunks.append(_strip_html(markup))
        model = _find_model(config, context.element_id)
        if model:
            chunks.extend(_model_text(model))

    elif isinstance(context, ItemToolContext):
        config = context.item.config
        if not config:
            return ""
        if isinstance(config.get("markup"), str):
            chunks.append(_strip_html(config["markup"]))
        for markup in (config.get("elements") or {}).values():
            if isinstance(markup, str):
                chunks.append(_strip_html(markup))
        for model in _models_of(config):
            if isinstance(model, dict):
                chunks.extend(_model_text(model))

    elif isinstance(context, PassageToolContext):
        config = context.passage.config or {}
        return _strip_html(config.get("markup") or "")

    elif isinstance(context, RubricToolContext):
        passage = context.rubric_block.passage
        if passage is not None and passage.config:
            return _strip_html(passage.config.get("markup") or "")
        return _strip_html(context.rubric_block.content or "")

    return " ".join(chunk for chunk in chunks if chunk).strip()


def has_math_content(context: ToolContext) -> bool:
    """Heuristic: MathML, LaTeX, math symbols or simple arithmetic."""
    text = extract_text_content(context)
    return any(pattern.search(text) for pattern in _MATH_INDICATORS)


def has_science_content(context: ToolContext) -> bool:
    """Heuristic: chemistry, biology or physics vocabulary."""
    text = extract_text_content(context)
    return any(pattern.search(text) for pattern in _SCIENCE_INDICATORS)


def has_readable_text(context: ToolContext) -> bool:
    return len(extract_text_content(context)) >= READABLE_TEXT_MIN_CHARS


def has_choice_interaction(context: ToolContext) -> bool:
    """Whether the element (or any element of the item) is a choice interaction."""
    if isinstance(context, ElementToolContext):
        model = _find_model(context.item.config, context.element_id)
        if not model:
            return False
        return model.get("element", "") in CHOICE_INTERACTION_TYPES

    if isinstance(context, ItemToolContext):
        for model in _models_of(context.item.config):
            if not isinstance(model, dict):
                continue
            if model.get("element", "") in CHOICE_INTERACTION_TYPES:
                return True
            # Configs without canonical element names still expose choices
            if isinstance(model.get("choices"), list) and model["choices"]:
                return True

    return False
