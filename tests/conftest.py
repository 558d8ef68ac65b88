"""
Test configuration and fixtures for GutSafe.

Provides:
- Engine components built from the packaged rule tables
- A learning service with a controllable clock and cache
- TestClient with the learning service dependency overridden per test
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from gutsafe.api.dependencies import get_learning_service
from gutsafe.main import app
from gutsafe.services.alternative_suggester import AlternativeSuggester
from gutsafe.services.ingredient_classifier import IngredientClassifier
from gutsafe.services.insight_cache import InsightCache
from gutsafe.services.learning_service import LearningService
from gutsafe.services.pattern_analyzer import PatternAnalyzer
from gutsafe.services.recommendation_engine import RecommendationEngine
from gutsafe.services.scan_service import ScanAggregator, ScanService
from gutsafe.services.trigger_rules import TriggerRuleSet
from tests.factories import NOW
from tests.fixtures.clock import FakeMonotonic, FakeWallClock


# =============================================================================
# pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "security: marks tests as security tests (deselect with '-m not security')",
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m not slow')"
    )


# =============================================================================
# Engine Components
# =============================================================================


@pytest.fixture(scope="session")
def rule_set() -> TriggerRuleSet:
    return TriggerRuleSet.load()


@pytest.fixture(scope="session")
def suggester() -> AlternativeSuggester:
    return AlternativeSuggester.load()


@pytest.fixture
def classifier(rule_set, suggester) -> IngredientClassifier:
    return IngredientClassifier(rule_set, suggester)


@pytest.fixture
def aggregator(suggester) -> ScanAggregator:
    return ScanAggregator(suggester)


@pytest.fixture
def scan_service(classifier, aggregator) -> ScanService:
    return ScanService(classifier, aggregator)


@pytest.fixture
def analyzer(rule_set) -> PatternAnalyzer:
    return PatternAnalyzer(rule_set)


@pytest.fixture
def engine(suggester) -> RecommendationEngine:
    return RecommendationEngine(suggester)


# =============================================================================
# Learning Service & Clocks
# =============================================================================


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock(NOW)


@pytest.fixture
def insight_cache(monotonic) -> InsightCache:
    return InsightCache(ttl_seconds=3600, clock=monotonic)


@pytest.fixture
def learning_service(analyzer, engine, insight_cache, wall_clock) -> LearningService:
    return LearningService(analyzer, engine, cache=insight_cache, clock=wall_clock)


# =============================================================================
# API Client
# =============================================================================


@pytest.fixture
def client(learning_service) -> Generator[TestClient, None, None]:
    """
    TestClient with a per-test learning service.

    The override keeps cached insights and the clock isolated between tests.
    """
    app.dependency_overrides[get_learning_service] = lambda: learning_service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
