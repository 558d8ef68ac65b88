import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from gutsafe.models.food_item import FoodItem
from gutsafe.models.gut_profile import Condition, Severity
from gutsafe.models.types import Timestamp, utcnow


class ScanSafety(str, enum.Enum):
    SAFE = "safe"
    CAUTION = "caution"
    AVOID = "avoid"


class UserFeedback(str, enum.Enum):
    """User judgement of a past scan verdict."""
    ACCURATE = "accurate"
    INACCURATE = "inaccurate"


class IngredientVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    ingredient: str
    is_problematic: bool = False
    conditions: list[Condition] = Field(default_factory=list)
    severity: Severity = Severity.MILD
    # severity of each flagged condition; severity above is their maximum
    condition_severities: dict[Condition, Severity] = Field(default_factory=dict)
    reason: str = ""
    alternatives: list[str] = Field(default_factory=list)


class ConditionWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    ingredient: str
    condition: Condition
    severity: Severity


class ScanAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_safety: ScanSafety
    flagged_ingredients: list[IngredientVerdict] = Field(default_factory=list)
    condition_warnings: list[ConditionWarning] = Field(default_factory=list)
    safe_alternatives: list[str] = Field(default_factory=list)
    explanation: str
    confidence: float = Field(ge=0, le=1)
    data_source: str = "Unknown"
    last_updated: Timestamp = Field(default_factory=utcnow)


class ScanRecord(BaseModel):
    id: str
    food_item: FoodItem
    analysis: ScanAnalysis
    timestamp: Timestamp
    user_feedback: Optional[UserFeedback] = None
