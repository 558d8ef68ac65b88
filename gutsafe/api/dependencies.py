"""FastAPI dependencies providing the shared engine components."""
from functools import lru_cache

from gutsafe.services.alternative_suggester import AlternativeSuggester
from gutsafe.services.ingredient_classifier import IngredientClassifier
from gutsafe.services.learning_service import LearningService
from gutsafe.services.pattern_analyzer import PatternAnalyzer
from gutsafe.services.recommendation_engine import RecommendationEngine
from gutsafe.services.scan_service import ScanAggregator, ScanService
from gutsafe.services.trigger_rules import TriggerRuleSet


@lru_cache
def get_rule_set() -> TriggerRuleSet:
    return TriggerRuleSet.load()


@lru_cache
def get_suggester() -> AlternativeSuggester:
    return AlternativeSuggester.load()


@lru_cache
def get_scan_service() -> ScanService:
    suggester = get_suggester()
    return ScanService(
        IngredientClassifier(get_rule_set(), suggester),
        ScanAggregator(suggester),
    )


@lru_cache
def get_learning_service() -> LearningService:
    """Process-wide learning service; its insight cache is shared by all requests."""
    return LearningService(
        PatternAnalyzer(get_rule_set()),
        RecommendationEngine(get_suggester()),
    )
