"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests across services")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clean_settings(monkeypatch):
    """Drop cached settings so TOOLKIT_* env changes take effect."""
    from config import get_settings

    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def sample_passage():
    """A reading passage shared by a stimulus block and an item."""
    return {
        "id": "p1",
        "name": "River Passage",
        "config": {"markup": "<p>The river wound slowly through the quiet valley at dawn.</p>"},
    }


@pytest.fixture
def sample_math_item():
    """An arithmetic multiple choice item."""
    return {
        "id": "q1",
        "name": "Addition",
        "config": {
            "markup": "<p>What is 2 + 3?</p>",
            "models": [
                {
                    "id": "mc1",
                    "element": "pie-multiple-choice",
                    "prompt": "What is 2 + 3?",
                    "choices": [
                        {"value": "a", "label": "5"},
                        {"value": "b", "label": "6"},
                    ],
                }
            ],
        },
    }


@pytest.fixture
def sample_reading_item(sample_passage):
    """A constructed response item linked to the sample passage."""
    return {
        "id": "q2",
        "name": "Narrator",
        "passage": sample_passage,
        "config": {
            "markup": "<p>Which word best describes the narrator?</p>",
            "models": [
                {
                    "id": "er1",
                    "element": "pie-extended-text-entry",
                    "prompt": "Explain your answer",
                }
            ],
        },
    }


@pytest.fixture
def sample_section_data(sample_passage, sample_math_item, sample_reading_item):
    """Section with a stimulus block, instructions, a scorer-only block and two items."""
    return {
        "identifier": "s1",
        "title": "Section One",
        "rubricBlocks": [
            {"identifier": "rb-stim", "view": "candidate", "class": "stimulus", "passage": sample_passage},
            {
                "identifier": "rb-instr",
                "view": "candidate",
                "class": "instructions",
                "content": "<p>Read the passage and answer the questions.</p>",
            },
            {"identifier": "rb-scorer", "view": "scorer", "class": "rubric", "content": "Scoring notes"},
        ],
        "assessmentItemRefs": [
            {"identifier": "q1", "item": sample_math_item},
            {"identifier": "q2", "item": sample_reading_item},
        ],
    }


@pytest.fixture
def sample_section(sample_section_data):
    """Validated AssessmentSection."""
    from src.section.models import AssessmentSection

    return AssessmentSection.model_validate(sample_section_data)


@pytest.fixture
def sample_assessment(sample_section_data):
    """Validated AssessmentEntity with one section."""
    from src.section.models import AssessmentEntity

    return AssessmentEntity.model_validate(
        {"id": "demo-assessment", "name": "Demo", "sections": [sample_section_data]}
    )
