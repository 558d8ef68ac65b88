"""
Request bodies for the HTTP surface.

Each schema bundles the records one endpoint needs. Responses are the engine's
own models from gutsafe.models.
"""

from pydantic import BaseModel, Field

from gutsafe.models import (
    AdaptiveRecommendation,
    FoodItem,
    GutProfile,
    ReportPeriod,
    ScanRecord,
    SymptomLog,
)


# --- Scans ---


class ScanRequest(BaseModel):
    food_item: FoodItem
    profile: GutProfile


# --- Insights ---


class HistoryRequest(BaseModel):
    scan_records: list[ScanRecord] = Field(default_factory=list)
    symptom_logs: list[SymptomLog] = Field(default_factory=list)


class InsightsRequest(HistoryRequest):
    profile: GutProfile


# --- Profile ---


class ApplyRecommendationRequest(BaseModel):
    profile: GutProfile
    recommendation: AdaptiveRecommendation
    reset: bool = False


# --- Symptoms ---


class SymptomReportRequest(BaseModel):
    symptom_logs: list[SymptomLog] = Field(default_factory=list)
    period: ReportPeriod = ReportPeriod.MONTH
