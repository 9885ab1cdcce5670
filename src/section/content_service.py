"""
Section Content Service.

Turns a section definition into the ordered stream of things a section
player mounts: passages first, then items, then the remaining rubric blocks.

Passages come from two places, stimulus rubric blocks and passages embedded
in items. Several items commonly share one passage, so passages are
deduplicated by id; the first occurrence wins, and stimulus blocks are read
before items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from config import get_settings
from src.section.models import (
    INSTRUCTIONS_CLASS,
    AssessmentSection,
    ItemEntity,
    PassageEntity,
    RubricBlock,
)

RenderableFlavor = Literal["passage", "item", "rubric"]


@dataclass(frozen=True)
class Renderable:
    flavor: RenderableFlavor
    entity: Union[PassageEntity, ItemEntity, RubricBlock]

    @property
    def entity_id(self) -> str | None:
        if isinstance(self.entity, RubricBlock):
            return self.entity.identifier
        return self.entity.id


@dataclass
class SectionContentModel:
    """Grouped view of a section's content for one rubric view."""

    passages: list[PassageEntity] = field(default_factory=list)
    items: list[ItemEntity] = field(default_factory=list)
    rubric_blocks: list[RubricBlock] = field(default_factory=list)
    instructions: list[RubricBlock] = field(default_factory=list)
    adapter_item_refs: list[dict[str, Any]] = field(default_factory=list)

    def renderables(self) -> list[Renderable]:
        return [
            *(Renderable("passage", passage) for passage in self.passages),
            *(Renderable("item", item) for item in self.items),
            *(Renderable("rubric", block) for block in self.rubric_blocks),
        ]


class SectionContentService:
    """Stateless; safe to share across sections."""

    def __init__(self, default_view: str | None = None):
        self.default_view = default_view or get_settings().default_content_view

    def build_model(
        self, section: AssessmentSection | None, view: str | None = None
    ) -> SectionContentModel:
        """
        Group a section's content.

        Args:
            section: Section definition (None yields an empty model)
            view: Rubric block view to include (default from settings)

        Returns:
            SectionContentModel. ``rubric_blocks`` holds the view's blocks that
            are not rendered as passages.
        """
        if section is None:
            return SectionContentModel()

        view = view or self.default_view
        in_view = [block for block in section.rubric_blocks if block.view == view]

        passages: dict[str, PassageEntity] = {}
        rubric_blocks: list[RubricBlock] = []
        for block in in_view:
            # A stimulus block without a passage still renders, as a rubric block
            if block.is_stimulus and block.passage is not None and block.passage.id:
                passages.setdefault(block.passage.id, block.passage)
            else:
                rubric_blocks.append(block)

        items: list[ItemEntity] = []
        for ref in section.assessment_item_refs:
            if ref.item is None:
                continue
            items.append(ref.item)
            passage = ref.item.linked_passage
            if passage is not None and passage.id:
                passages.setdefault(passage.id, passage)

        adapter_item_refs = [
            {
                "identifier": ref.resolved_identifier or "",
                "item": {
                    "id": ref.item.id if ref.item else None,
                    "identifier": ref.identifier or (ref.item.id if ref.item else None),
                },
            }
            for ref in section.assessment_item_refs
        ]

        return SectionContentModel(
            passages=list(passages.values()),
            items=items,
            rubric_blocks=rubric_blocks,
            instructions=[block for block in in_view if block.class_ == INSTRUCTIONS_CLASS],
            adapter_item_refs=adapter_item_refs,
        )

    def build(self, section: AssessmentSection | None, view: str | None = None) -> list[Renderable]:
        """Ordered renderables: passages, then items, then remaining rubric blocks."""
        return self.build_model(section, view).renderables()
