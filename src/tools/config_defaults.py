"""Default tool aliases and per-level tool placement."""

from __future__ import annotations

from types import MappingProxyType

# Shorthand names accepted in tool lists
DEFAULT_TOOL_ALIAS_MAP = MappingProxyType({
    "tts": "textToSpeech",
})

DEFAULT_TOOL_PLACEMENT = MappingProxyType({
    "assessment": ("colorScheme",),
    "section": ("colorScheme", "textToSpeech"),
    "item": ("textToSpeech", "highlighter", "annotationToolbar", "graph", "periodicTable"),
    "passage": ("textToSpeech", "highlighter", "annotationToolbar", "lineReader"),
    "rubric": ("textToSpeech", "highlighter", "annotationToolbar", "lineReader"),
    "element": (
        "calculator",
        "answerEliminator",
        "textToSpeech",
        "ruler",
        "protractor",
        "highlighter",
        "annotationToolbar",
        "graph",
        "periodicTable",
    ),
})
