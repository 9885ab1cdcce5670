"""
Unit tests for SectionContentService.
"""

import pytest

from src.section.content_service import SectionContentService
from src.section.models import AssessmentSection


@pytest.fixture
def service():
    return SectionContentService(default_view="candidate")


def _summary(renderables):
    return [(r.flavor, r.entity_id) for r in renderables]


class TestBuild:
    def test_order_and_passage_dedup(self, service, sample_section):
        """Shared passage renders once, before items, then remaining rubric blocks."""
        assert _summary(service.build(sample_section)) == [
            ("passage", "p1"),
            ("item", "q1"),
            ("item", "q2"),
            ("rubric", "rb-instr"),
        ]

    def test_view_filter(self, service, sample_section):
        assert _summary(service.build(sample_section, view="scorer")) == [
            ("passage", "p1"),
            ("item", "q1"),
            ("item", "q2"),
            ("rubric", "rb-scorer"),
        ]

    def test_empty_section(self, service):
        assert service.build(None) == []
        assert service.build(AssessmentSection()) == []

    def test_default_view_from_settings(self, clean_settings, sample_section):
        clean_settings.setenv("TOOLKIT_DEFAULT_CONTENT_VIEW", "scorer")
        renderables = SectionContentService().build(sample_section)
        assert ("rubric", "rb-scorer") in _summary(renderables)

    def test_stimulus_passage_wins_over_item_copy(self, service, sample_section_data):
        sample_section_data["assessmentItemRefs"][1]["item"]["passage"] = {"id": "p1", "name": "Item copy"}
        section = AssessmentSection.model_validate(sample_section_data)

        passages = service.build_model(section).passages
        assert [p.name for p in passages] == ["River Passage"]

    def test_stimulus_without_passage_renders_as_rubric(self, service):
        section = AssessmentSection.model_validate(
            {"rubricBlocks": [{"identifier": "rb-empty", "class": "stimulus", "content": "Look closely"}]}
        )
        assert _summary(service.build(section)) == [("rubric", "rb-empty")]

    def test_item_with_bare_passage_id(self, service):
        section = AssessmentSection.model_validate(
            {"assessmentItemRefs": [{"identifier": "q1", "item": {"id": "q1", "passage": "p9"}}]}
        )
        assert _summary(service.build(section)) == [("item", "q1")]

    def test_passages_without_ids(self, service):
        section = AssessmentSection.model_validate(
            {
                "rubricBlocks": [
                    {"identifier": "rb-stim", "class": "stimulus", "passage": {"config": {"markup": "<p>Text</p>"}}}
                ],
                "assessmentItemRefs": [
                    {"identifier": "q1", "item": {"id": "q1", "passage": {"name": "Untitled"}}}
                ],
            }
        )

        model = service.build_model(section)
        assert model.passages == []
        assert _summary(service.build(section)) == [("item", "q1"), ("rubric", "rb-stim")]

    def test_item_without_id_uses_name_for_identifier(self):
        section = AssessmentSection.model_validate(
            {"assessmentItemRefs": [{"item": {"name": "untitled-item"}}]}
        )
        assert section.item_identifiers() == ["untitled-item"]

    def test_refs_without_items_skipped(self, service):
        section = AssessmentSection.model_validate({"assessmentItemRefs": [{"identifier": "q1"}]})
        assert service.build(section) == []


class TestModel:
    def test_instructions(self, service, sample_section):
        model = service.build_model(sample_section)
        assert [block.identifier for block in model.instructions] == ["rb-instr"]

    def test_adapter_item_refs(self, service, sample_section):
        refs = service.build_model(sample_section).adapter_item_refs
        assert refs == [
            {"identifier": "q1", "item": {"id": "q1", "identifier": "q1"}},
            {"identifier": "q2", "item": {"id": "q2", "identifier": "q2"}},
        ]

    def test_extra_keys_preserved(self, service, sample_section_data):
        sample_section_data["assessmentItemRefs"][0]["item"]["searchMetaData"] = {"grade": 4}
        section = AssessmentSection.model_validate(sample_section_data)

        item = service.build_model(section).items[0]
        assert item.model_extra["searchMetaData"] == {"grade": 4}
