"""Learning insight endpoints: patterns, recommendations, metrics and tips."""
from fastapi import APIRouter, Depends

from gutsafe.api.dependencies import get_learning_service
from gutsafe.api.schemas import HistoryRequest, InsightsRequest
from gutsafe.models import LearningInsights, LearningMetrics, LearningProgress
from gutsafe.services.learning_service import LearningService


router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("", response_model=LearningInsights)
async def get_insights(
    request: InsightsRequest,
    service: LearningService = Depends(get_learning_service),
):
    """
    Detect patterns and recommendations for the profile's history.

    Cached per profile version for an hour.
    """
    return service.get_or_compute(request.profile, request.scan_records, request.symptom_logs)


@router.post("/metrics", response_model=LearningMetrics)
async def get_metrics(
    request: HistoryRequest,
    service: LearningService = Depends(get_learning_service),
):
    return service.calculate_metrics(request.scan_records, request.symptom_logs)


@router.post("/progress", response_model=LearningProgress)
async def get_progress(
    request: InsightsRequest,
    service: LearningService = Depends(get_learning_service),
):
    return service.learning_progress(request.profile, request.scan_records, request.symptom_logs)


@router.post("/personalized", response_model=list[str])
async def get_personalized_recommendations(
    request: InsightsRequest,
    service: LearningService = Depends(get_learning_service),
):
    """Plain-language dietary tips for the profile."""
    return service.personalized_recommendations(
        request.profile, request.scan_records, request.symptom_logs
    )
