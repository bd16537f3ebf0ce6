# backend/cybershield/schemas/records.py
from typing import Any, ClassVar, Dict, List, Optional, Tuple
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from cybershield.schemas.geolocation import GeoLocation


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class HoneypotService(str, Enum):
    SSH = "ssh"
    HTTP = "http"
    FTP = "ftp"


class ThreatType(str, Enum):
    PHISHING = "phishing"
    DEEPFAKE = "deepfake"
    HONEYPOT = "honeypot"


class ThreatStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class AlertCategory(str, Enum):
    EMAIL = "email"
    MEDIA = "media"
    HONEYPOT = "honeypot"
    SYSTEM = "system"


class StoredRecord(BaseModel):
    """
    Base for everything kept in the EventStore.

    `id` and the field named by TIMESTAMP_FIELD are assigned by the store
    on insertion and never change afterwards.
    Fields listed in ONE_WAY_FIELDS may be set but never cleared again.
    """

    TIMESTAMP_FIELD: ClassVar[str] = "created_at"
    ONE_WAY_FIELDS: ClassVar[Tuple[str, ...]] = ()

    id: int = 0


class PhishingAnalysis(StoredRecord):
    TIMESTAMP_FIELD: ClassVar[str] = "analyzed_at"

    content: str
    score: float = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0, le=100)
    suspicious_links: int = 0
    indicators: List[str] = Field(default_factory=list)
    analyzed_at: Optional[datetime] = None


class DeepfakeAnalysis(StoredRecord):
    TIMESTAMP_FIELD: ClassVar[str] = "analyzed_at"

    file_name: str
    file_type: str
    file_size: int = Field(..., ge=0)
    is_deepfake: bool
    confidence: float = Field(..., ge=0, le=1)
    processing_time_ms: float = 0.0
    anomalies: List[str] = Field(default_factory=list)
    analyzed_at: Optional[datetime] = None


class HoneypotLog(StoredRecord):
    TIMESTAMP_FIELD: ClassVar[str] = "detected_at"

    service: HoneypotService
    source_ip: str
    attack_type: str
    severity: Severity
    port: int
    payload: Optional[str] = None
    location: Optional[GeoLocation] = None
    detected_at: Optional[datetime] = None


class Threat(StoredRecord):
    TIMESTAMP_FIELD: ClassVar[str] = "detected_at"

    type: ThreatType
    severity: Severity
    source: str
    description: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    status: ThreatStatus = ThreatStatus.ACTIVE
    detected_at: Optional[datetime] = None


class Alert(StoredRecord):
    TIMESTAMP_FIELD: ClassVar[str] = "created_at"
    ONE_WAY_FIELDS: ClassVar[Tuple[str, ...]] = ("is_read",)

    title: str
    description: str
    severity: Severity
    category: AlertCategory
    is_read: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class SystemStats(BaseModel):
    """Singleton aggregate. Counters only ever grow."""
    active_threats: int = 0
    phishing_blocked: int = 0
    deepfakes_detected: int = 0
    honeypot_hits: int = 0
    updated_at: Optional[datetime] = None


STATS_COUNTERS = ("active_threats", "phishing_blocked", "deepfakes_detected", "honeypot_hits")
