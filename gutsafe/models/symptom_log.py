import enum
from typing import Optional

from pydantic import BaseModel, Field

from gutsafe.models.types import Timestamp


class SymptomType(str, enum.Enum):
    BLOATING = "bloating"
    CRAMPING = "cramping"
    DIARRHEA = "diarrhea"
    CONSTIPATION = "constipation"
    GAS = "gas"
    NAUSEA = "nausea"
    REFLUX = "reflux"
    HEARTBURN = "heartburn"
    FATIGUE = "fatigue"
    HEADACHE = "headache"
    SKIN_IRRITATION = "skin_irritation"
    OTHER = "other"


class SymptomLocation(str, enum.Enum):
    UPPER_ABDOMEN = "upper_abdomen"
    LOWER_ABDOMEN = "lower_abdomen"
    FULL_ABDOMEN = "full_abdomen"
    CHEST = "chest"
    GENERAL = "general"


class Symptom(BaseModel):
    type: SymptomType
    severity: int = Field(ge=1, le=10)
    duration_minutes: int = Field(default=0, ge=0)
    timestamp: Timestamp
    location: Optional[SymptomLocation] = None
    potential_triggers: list[str] = Field(default_factory=list)
    description: Optional[str] = None


class SymptomLog(BaseModel):
    """One diary entry: the symptoms felt and the foods eaten around that time."""

    id: str
    symptoms: list[Symptom] = Field(default_factory=list)
    food_items: list[str] = Field(default_factory=list)
    timestamp: Timestamp
    mood: Optional[str] = None
    stress_level: Optional[int] = Field(default=None, ge=1, le=10)
    weather: Optional[str] = None
    notes: Optional[str] = None

    @property
    def mean_severity(self) -> float:
        if not self.symptoms:
            return 0.0
        return sum(s.severity for s in self.symptoms) / len(self.symptoms)
