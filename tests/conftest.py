"""
Pytest configuration and shared fixtures for the screenplay classifier test suite.

This module provides fixtures for document memory, classifiers, sample
screenplay text and mocked LLM replies used by the review layer tests.
"""

import json
import logging
from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

from screenplay_classifier.line_types import LineType, ClassificationResult, Candidate, Confidence
from screenplay_classifier.classification.document_memory import DocumentMemory
from screenplay_classifier.classifier import ScreenplayClassifier

# Configure test logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "llm: marks tests that exercise the LLM review layer"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test location."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)

        if "orchestrator" in str(item.fspath) or "review" in item.name:
            item.add_marker(pytest.mark.llm)


# ============================================================================
# Classifier Fixtures
# ============================================================================

@pytest.fixture
def memory():
    """A fresh, empty document memory."""
    return DocumentMemory()


@pytest.fixture
def classifier(memory):
    """A classifier bound to the ``memory`` fixture."""
    return ScreenplayClassifier(memory=memory)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_screenplay() -> str:
    """A short two-scene screenplay covering every structural construct."""
    return "\n".join([
        "بسم الله الرحمن الرحيم",
        "",
        "مشهد 1 - داخلي - ليل - منزل أحمد",
        "يدخل أحمد إلى الغرفة ببطء.",
        "",
        "أحمد:",
        "(بصوت منخفض)",
        "أين كنت طوال الليل؟",
        "",
        "سارة: كنت عند أمي.",
        "",
        "قطع",
        "",
        "مشهد 2",
        "خارجي - نهار",
        "شارع",
        "تسير سارة وحدها في الشارع.",
    ])


@pytest.fixture
def doubtful_results() -> List[ClassificationResult]:
    """Classification results where only the middle line is doubtful."""
    return [
        ClassificationResult(text="أحمد:", type=LineType.CHARACTER),
        ClassificationResult(
            text="ياسين",
            type=LineType.ACTION,
            confidence=Confidence.LOW,
            doubt_score=80,
            needs_review=True,
            top_candidates=[
                Candidate(LineType.ACTION, 35, Confidence.LOW),
                Candidate(LineType.CHARACTER, 30, Confidence.LOW),
            ],
        ),
        ClassificationResult(text="", type=LineType.BLANK),
        ClassificationResult(text="يجلس على الكرسي.", type=LineType.ACTION, doubt_score=5),
    ]


# ============================================================================
# LLM Mock Fixtures
# ============================================================================

def make_review_reply(suggestions: List[Dict[str, Any]]) -> str:
    return json.dumps(suggestions, ensure_ascii=False)


@pytest.fixture
def mock_ollama_response():
    """Factory for a mocked ``requests.post`` reply from Ollama."""
    def build(suggestions: List[Dict[str, Any]], status_code: int = 200) -> Mock:
        response = Mock()
        response.status_code = status_code
        response.json.return_value = {"response": make_review_reply(suggestions)}
        response.raise_for_status.return_value = None
        return response
    return build
