# backend/cybershield/schemas/analysis.py
from typing import List, Optional

from pydantic import BaseModel, Field

from cybershield.schemas.records import (
    Alert,
    DeepfakeAnalysis,
    PhishingAnalysis,
    Threat,
)


class PhishingAnalyzeRequest(BaseModel):
    content: str = Field(..., description="Raw e-mail body / headers to score.")


class PhishingDetectionResult(BaseModel):
    """What the phishing classifier hands back to the correlator."""
    score: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=100)
    suspicious_links: int = Field(0, ge=0)
    indicators: List[str] = Field(default_factory=list)


class DeepfakeDetectionResult(BaseModel):
    """What the deepfake detector hands back to the correlator."""
    is_deepfake: bool
    confidence: float = Field(..., ge=0, le=1)
    processing_time_ms: float = Field(0.0, ge=0)
    anomalies: List[str] = Field(default_factory=list)


class MediaFileMeta(BaseModel):
    file_name: str
    file_type: str
    file_size: int = Field(..., ge=0)


class PhishingSubmission(BaseModel):
    analysis: PhishingAnalysis
    escalated: bool
    threat: Optional[Threat] = None
    alert: Optional[Alert] = None


class DeepfakeSubmission(BaseModel):
    analysis: DeepfakeAnalysis
    escalated: bool
    threat: Optional[Threat] = None
    alert: Optional[Alert] = None
