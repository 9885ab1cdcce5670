"""
Content entities consumed by the toolkit.

Assessments, sections, item references, items, passages and rubric blocks
arrive from the host as plain JSON objects. They are validated into pydantic
models that keep unknown keys around, so hosts can carry extra metadata
through the toolkit untouched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# QTI rubric block classes the toolkit cares about
STIMULUS_CLASS = "stimulus"
INSTRUCTIONS_CLASS = "instructions"

# Default rubric view for test takers
CANDIDATE_VIEW = "candidate"


class ContentEntity(BaseModel):
    """Base for all content entities: camelCase aliases, extra keys preserved."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PassageEntity(ContentEntity):
    """A reading passage (stimulus) shared by one or more items."""

    id: str | None = None
    name: str | None = None
    config: dict[str, Any] | None = None


class ItemEntity(ContentEntity):
    """An item with its element configuration (markup, elements, models)."""

    id: str | None = None
    name: str | None = None
    config: dict[str, Any] | None = None
    # Either an embedded passage or a bare passage id
    passage: PassageEntity | str | None = None

    @property
    def linked_passage(self) -> PassageEntity | None:
        """Embedded passage, if the item carries one (bare ids are ignored)."""
        if isinstance(self.passage, PassageEntity):
            return self.passage
        return None


class RubricBlock(ContentEntity):
    """QTI rubric block: instructions, rubric text or an embedded stimulus."""

    identifier: str | None = None
    view: str = CANDIDATE_VIEW
    class_: str | None = Field(default=None, alias="class")
    content: str | None = None
    passage: PassageEntity | None = None

    @property
    def is_stimulus(self) -> bool:
        return self.class_ == STIMULUS_CLASS


class AssessmentItemRef(ContentEntity):
    """Reference from a section to an item."""

    identifier: str | None = None
    item: ItemEntity | None = None
    settings: dict[str, Any] | None = None

    @property
    def resolved_identifier(self) -> str | None:
        """Identifier used for session bookkeeping: ref id, then item id, then item name."""
        if self.identifier:
            return self.identifier
        if self.item is not None:
            return self.item.id or self.item.name
        return None


class AssessmentSection(ContentEntity):
    """A section: ordered item references plus rubric blocks."""

    identifier: str | None = None
    title: str | None = None
    assessment_item_refs: list[AssessmentItemRef] = Field(
        default_factory=list, alias="assessmentItemRefs"
    )
    rubric_blocks: list[RubricBlock] = Field(default_factory=list, alias="rubricBlocks")

    def item_identifiers(self) -> list[str]:
        """Declared item order, without blanks or duplicates."""
        seen: dict[str, None] = {}
        for ref in self.assessment_item_refs:
            identifier = ref.resolved_identifier
            if identifier:
                seen.setdefault(identifier, None)
        return list(seen)


class AssessmentEntity(ContentEntity):
    """Top-level assessment definition."""

    id: str | None = None
    identifier: str | None = None
    name: str | None = None
    sections: list[AssessmentSection] = Field(default_factory=list)
    settings: dict[str, Any] | None = None

    @property
    def assessment_id(self) -> str | None:
        return self.id or self.identifier

    def item_identifiers(self) -> list[str]:
        """Declared item order across all sections, first occurrence wins."""
        seen: dict[str, None] = {}
        for section in self.sections:
            for identifier in section.item_identifiers():
                seen.setdefault(identifier, None)
        return list(seen)
