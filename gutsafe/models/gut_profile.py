import enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from gutsafe.models.types import Timestamp, utcnow


class Condition(str, enum.Enum):
    """Chronic digestive conditions a profile can track."""
    IBS_FODMAP = "ibs-fodmap"
    GLUTEN = "gluten"
    LACTOSE = "lactose"
    REFLUX = "reflux"
    HISTAMINE = "histamine"
    ALLERGIES = "allergies"
    ADDITIVES = "additives"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ")


class Severity(str, enum.Enum):
    """How strongly a condition reacts. Totally ordered mild < moderate < severe."""
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    def next(self) -> "Severity":
        """One step up the scale, capped at severe."""
        order = list(Severity)
        return order[min(self.rank + 1, len(order) - 1)]

    @classmethod
    def max_of(cls, severities) -> "Severity":
        """Highest severity in an iterable; mild for an empty one."""
        return max(severities, key=lambda s: s.rank, default=cls.MILD)


_SEVERITY_RANK = {Severity.MILD: 0, Severity.MODERATE: 1, Severity.SEVERE: 2}


class ConditionSettings(BaseModel):
    enabled: bool = False
    severity: Severity = Severity.MILD
    known_triggers: set[str] = Field(default_factory=set)

    @field_validator("known_triggers")
    @classmethod
    def normalize_triggers(cls, triggers: set[str]) -> set[str]:
        # Blank triggers would match every ingredient
        return {t.strip().lower() for t in triggers if t and t.strip()}


class ProfilePreferences(BaseModel):
    dietary_restrictions: list[str] = Field(default_factory=list)
    preferred_alternatives: list[str] = Field(default_factory=list)


class GutProfile(BaseModel):
    """A user's condition configuration. Every Condition is always present."""

    id: str
    conditions: dict[Condition, ConditionSettings] = Field(default_factory=dict)
    preferences: ProfilePreferences = Field(default_factory=ProfilePreferences)
    created_at: Timestamp = Field(default_factory=utcnow)
    updated_at: Timestamp = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def fill_missing_conditions(self) -> "GutProfile":
        for condition in Condition:
            if condition not in self.conditions:
                self.conditions[condition] = ConditionSettings()
        return self

    def enabled_conditions(self) -> list[Condition]:
        return [c for c in Condition if self.conditions[c].enabled]

    def user_triggers(self) -> dict[Condition, set[str]]:
        """Known triggers of the enabled conditions only."""
        return {c: set(self.conditions[c].known_triggers) for c in self.enabled_conditions()}

    @property
    def version_key(self) -> tuple[str, str]:
        return (self.id, self.updated_at.isoformat())


def default_profile(profile_id: str, now: Optional[Timestamp] = None) -> GutProfile:
    """All conditions disabled at mild severity with no known triggers."""
    now = now or utcnow()
    return GutProfile(id=profile_id, created_at=now, updated_at=now)
