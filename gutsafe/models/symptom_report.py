import enum

from pydantic import BaseModel, Field

from gutsafe.models.symptom_log import SymptomType
from gutsafe.models.types import Timestamp, utcnow


class TrendDirection(str, enum.Enum):
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


class ReportPeriod(str, enum.Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"

    @property
    def days(self) -> int:
        return {"week": 7, "month": 30, "quarter": 90}[self.value]


class SymptomTrend(BaseModel):
    symptom: SymptomType
    direction: TrendDirection
    change_percentage: float
    weeks_observed: int


class TriggerCount(BaseModel):
    trigger: str
    count: int


class SymptomReport(BaseModel):
    period: ReportPeriod
    total_logs: int
    symptom_frequency: dict[SymptomType, int] = Field(default_factory=dict)
    average_severity: float = Field(ge=0, le=10)
    top_triggers: list[TriggerCount] = Field(default_factory=list)
    trends: list[SymptomTrend] = Field(default_factory=list)
    generated_at: Timestamp = Field(default_factory=utcnow)
