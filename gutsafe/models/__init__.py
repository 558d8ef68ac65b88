"""
Validated records for the GutSafe engine.

Everything crossing the engine boundary (API, CLI, library callers) is one of
these models, so malformed input is rejected before any analysis runs.
"""

from gutsafe.models.gut_profile import (
    Condition,
    Severity,
    ConditionSettings,
    ProfilePreferences,
    GutProfile,
    default_profile,
)
from gutsafe.models.food_item import FoodItem
from gutsafe.models.scan import (
    ScanSafety,
    UserFeedback,
    IngredientVerdict,
    ConditionWarning,
    ScanAnalysis,
    ScanRecord,
)
from gutsafe.models.symptom_log import SymptomType, SymptomLocation, Symptom, SymptomLog
from gutsafe.models.insights import (
    PatternType,
    RecommendationType,
    Priority,
    PatternEvidence,
    PatternInsight,
    RecommendationEvidence,
    AdaptiveRecommendation,
    DataQuality,
    LearningInsights,
    LearningMetrics,
    LearningProgress,
)
from gutsafe.models.symptom_report import (
    TrendDirection,
    ReportPeriod,
    SymptomTrend,
    TriggerCount,
    SymptomReport,
)

__all__ = [
    "Condition",
    "Severity",
    "ConditionSettings",
    "ProfilePreferences",
    "GutProfile",
    "default_profile",
    "FoodItem",
    "ScanSafety",
    "UserFeedback",
    "IngredientVerdict",
    "ConditionWarning",
    "ScanAnalysis",
    "ScanRecord",
    "SymptomType",
    "SymptomLocation",
    "Symptom",
    "SymptomLog",
    "PatternType",
    "RecommendationType",
    "Priority",
    "PatternEvidence",
    "PatternInsight",
    "RecommendationEvidence",
    "AdaptiveRecommendation",
    "DataQuality",
    "LearningInsights",
    "LearningMetrics",
    "LearningProgress",
    "TrendDirection",
    "ReportPeriod",
    "SymptomTrend",
    "TriggerCount",
    "SymptomReport",
]
