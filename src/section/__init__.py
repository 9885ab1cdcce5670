"""
Section Module - Section content and session merging.

Components:
- models: Content entities (assessment, section, item, passage, rubric block)
- item_session_contract: Inbound session change classification and merging
- content_service: Ordered, deduplicated renderables for a section
- session_service: Folds session events into the canonical attempt
"""

from src.section.content_service import Renderable, SectionContentModel, SectionContentService
from src.section.models import (
    AssessmentEntity,
    AssessmentItemRef,
    AssessmentSection,
    ItemEntity,
    PassageEntity,
    RubricBlock,
)
from src.section.session_service import SectionSessionService, SessionChangedResult

__all__ = [
    "AssessmentEntity",
    "AssessmentSection",
    "AssessmentItemRef",
    "ItemEntity",
    "PassageEntity",
    "RubricBlock",
    "Renderable",
    "SectionContentModel",
    "SectionContentService",
    "SectionSessionService",
    "SessionChangedResult",
]
