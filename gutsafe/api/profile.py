"""Profile adaptation endpoint."""
from fastapi import APIRouter, Depends

from gutsafe.api.dependencies import get_learning_service
from gutsafe.api.schemas import ApplyRecommendationRequest
from gutsafe.models import GutProfile
from gutsafe.services.learning_service import LearningService


router = APIRouter(prefix="/profile", tags=["profile"])


@router.post("/apply-recommendation", response_model=GutProfile)
async def apply_recommendation(
    request: ApplyRecommendationRequest,
    service: LearningService = Depends(get_learning_service),
):
    """
    Apply an accepted recommendation and return the updated profile.

    The caller persists the returned profile.
    """
    return service.apply_recommendation(
        request.recommendation, request.profile, reset=request.reset
    )
