# backend/cybershield/api/v1/routes_analyze.py

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from cybershield.api.deps import get_correlator
from cybershield.core.config import settings
from cybershield.core.errors import InvalidInput
from cybershield.schemas.analysis import (
    DeepfakeSubmission,
    PhishingAnalyzeRequest,
    PhishingSubmission,
)
from cybershield.schemas.records import DeepfakeAnalysis, PhishingAnalysis
from cybershield.services.correlation.correlation_engine import Correlator

router = APIRouter(tags=["analysis"])


@router.post(
    "/analyze/email",
    response_model=PhishingSubmission,
    summary="Score an e-mail for phishing",
)
async def analyze_email(
    payload: PhishingAnalyzeRequest,
    correlator: Correlator = Depends(get_correlator),
) -> PhishingSubmission:
    """
    Score the content, store the analysis and, for high-risk mail,
    raise a threat + alert and push it to live viewers.
    """
    return await correlator.submit_phishing_analysis(payload.content)


@router.post(
    "/analyze/deepfake",
    response_model=DeepfakeSubmission,
    summary="Check an uploaded image/video for deepfake artifacts",
)
async def analyze_deepfake(
    file: UploadFile = File(...),
    correlator: Correlator = Depends(get_correlator),
) -> DeepfakeSubmission:
    data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise InvalidInput(f"File exceeds {settings.MAX_UPLOAD_BYTES} bytes")

    return await correlator.analyze_media(
        data,
        file.filename or "",
        file.content_type or "",
    )


@router.get("/analysis/phishing", response_model=List[PhishingAnalysis])
def list_phishing_analyses(
    limit: int = 50,
    correlator: Correlator = Depends(get_correlator),
) -> List[PhishingAnalysis]:
    return correlator.list_phishing_analyses(limit=limit)


@router.get("/analysis/deepfake", response_model=List[DeepfakeAnalysis])
def list_deepfake_analyses(
    limit: int = 50,
    correlator: Correlator = Depends(get_correlator),
) -> List[DeepfakeAnalysis]:
    return correlator.list_deepfake_analyses(limit=limit)
