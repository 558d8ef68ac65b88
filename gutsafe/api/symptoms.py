"""Symptom diary endpoints."""
from fastapi import APIRouter

from gutsafe.api.schemas import SymptomReportRequest
from gutsafe.models import SymptomReport
from gutsafe.services.symptom_service import symptom_service


router = APIRouter(prefix="/symptoms", tags=["symptoms"])


@router.get("/types")
async def get_symptom_types():
    return {"types": symptom_service.get_common_symptom_types()}


@router.post("/report", response_model=SymptomReport)
async def get_symptom_report(request: SymptomReportRequest):
    """Frequency, trigger and trend summary for the requested period."""
    return symptom_service.build_report(request.symptom_logs, request.period)
