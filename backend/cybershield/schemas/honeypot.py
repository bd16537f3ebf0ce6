# backend/cybershield/schemas/honeypot.py
from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field, IPvAnyAddress

from cybershield.schemas.records import Alert, HoneypotLog, HoneypotService, Severity


class HoneypotAttack(BaseModel):
    """
    A single hit reported by a honeypot (real caller or the simulator).
    Location is not part of the input; the correlator looks it up.
    """
    service: HoneypotService
    source_ip: IPvAnyAddress
    attack_type: str = Field(..., min_length=1)
    severity: Severity
    port: int = Field(..., ge=1, le=65535)
    payload: Optional[str] = None


class HoneypotSubmission(BaseModel):
    log: HoneypotLog
    alert_created: bool
    alert: Optional[Alert] = None
    email_sent: Optional[bool] = None  # None when no e-mail was due


class HoneypotStats(BaseModel):
    ssh: int = 0
    http: int = 0
    ftp: int = 0


class AttackMapPoint(BaseModel):
    id: str
    coordinates: List[float]  # [lon, lat]
    country: str
    city: str
    ip: str
    attack_type: str
    severity: Severity
    timestamp: datetime
    last_seen: datetime
    count: int


class CountryCount(BaseModel):
    country: str
    count: int


class AttackTypeCount(BaseModel):
    type: str
    count: int


class SSHStatistics(BaseModel):
    total_attacks: int
    attacks_24h: int
    attacks_7d: int
    unique_ips: int
    unique_countries: int
    top_countries: List[CountryCount]
    top_attack_types: List[AttackTypeCount]
