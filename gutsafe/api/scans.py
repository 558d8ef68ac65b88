"""Scan analysis endpoint."""
from fastapi import APIRouter, Depends

from gutsafe.api.dependencies import get_scan_service
from gutsafe.api.schemas import ScanRequest
from gutsafe.models import ScanAnalysis
from gutsafe.services.scan_service import ScanService


router = APIRouter(prefix="/scans", tags=["scans"])


@router.post("/analyze", response_model=ScanAnalysis)
async def analyze_scan(
    request: ScanRequest,
    service: ScanService = Depends(get_scan_service),
):
    """Analyze a food item's ingredients against the profile's enabled conditions."""
    return service.analyze(request.food_item, request.profile)
