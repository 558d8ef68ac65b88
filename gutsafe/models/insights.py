import enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from gutsafe.models.gut_profile import Condition
from gutsafe.models.types import Timestamp, utcnow


class PatternType(str, enum.Enum):
    FOOD_TRIGGER = "food_trigger"
    SYMPTOM_PATTERN = "symptom_pattern"
    CONDITION_CORRELATION = "condition_correlation"
    TIMING_PATTERN = "timing_pattern"


class RecommendationType(str, enum.Enum):
    TRIGGER_ADDITION = "trigger_addition"
    SEVERITY_ADJUSTMENT = "severity_adjustment"
    CONDITION_TOGGLE = "condition_toggle"
    PROFILE_UPDATE = "profile_update"


class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 0, "medium": 1, "low": 2}[self.value]


# --- Patterns ---


class PatternEvidence(BaseModel):
    frequency: float = Field(ge=0, le=1)
    severity: float = Field(ge=0, le=10)
    consistency: float = Field(ge=0, le=1)


class PatternInsight(BaseModel):
    type: PatternType
    subject: str  # ingredient, symptom type, condition or time slot
    confidence: float = Field(ge=0, le=1)
    description: str
    evidence: PatternEvidence
    recommendations: list[str] = Field(default_factory=list)
    affected_conditions: list[Condition] = Field(default_factory=list)
    data_points: int = Field(default=0, ge=0)
    time_span_days: float = Field(default=0.0, ge=0)


# --- Recommendations ---


class RecommendationEvidence(BaseModel):
    data_points: int = Field(ge=0)
    time_span_days: float = Field(ge=0)
    consistency: float = Field(ge=0, le=1)


class AdaptiveRecommendation(BaseModel):
    type: RecommendationType
    priority: Priority
    confidence: float = Field(ge=0, le=1)
    description: str
    condition: Optional[Condition] = None
    subject: str = ""
    current_value: Any = None
    suggested_value: Any = None
    reasoning: list[str] = Field(default_factory=list)
    evidence: RecommendationEvidence


# --- Aggregates ---


class DataQuality(BaseModel):
    completeness: float = Field(ge=0, le=1)
    consistency: float = Field(ge=0, le=1)
    recency: float = Field(ge=0, le=1)


class LearningInsights(BaseModel):
    patterns: list[PatternInsight] = Field(default_factory=list)
    recommendations: list[AdaptiveRecommendation] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=1)
    data_quality: DataQuality
    last_updated: Timestamp = Field(default_factory=utcnow)


class LearningMetrics(BaseModel):
    total_data_points: int
    learning_accuracy: float = Field(ge=0, le=1)
    prediction_accuracy: float = Field(ge=0, le=1)
    user_satisfaction: float = Field(ge=0, le=1)
    adaptation_rate: float = Field(ge=0, le=1)
    last_evaluation: Timestamp = Field(default_factory=utcnow)


class LearningProgress(BaseModel):
    data_points: int
    patterns_discovered: int
    recommendations_generated: int
    accuracy: float = Field(ge=0, le=1)
    last_update: Timestamp = Field(default_factory=utcnow)
