# backend/cybershield/api/v1/routes_honeypot.py

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from cybershield.api.deps import get_correlator
from cybershield.schemas.honeypot import (
    AttackMapPoint,
    HoneypotAttack,
    HoneypotStats,
    HoneypotSubmission,
    SSHStatistics,
)
from cybershield.schemas.records import HoneypotLog, HoneypotService
from cybershield.services.correlation.correlation_engine import Correlator
from cybershield.services.honeypot.ssh_analytics import (
    build_attack_map,
    compute_ssh_statistics,
)

router = APIRouter(prefix="/honeypot", tags=["honeypot"])

SSH_ATTACKS_LIMIT = 500
SSH_ANALYTICS_LIMIT = 1000


@router.post(
    "/attacks",
    response_model=HoneypotSubmission,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Report a honeypot hit",
)
async def submit_attack(
    payload: HoneypotAttack,
    correlator: Correlator = Depends(get_correlator),
) -> HoneypotSubmission:
    return await correlator.submit_honeypot_attack(payload)


@router.get("/logs", response_model=List[HoneypotLog])
def list_logs(
    limit: int = 100,
    service: Optional[HoneypotService] = None,
    correlator: Correlator = Depends(get_correlator),
) -> List[HoneypotLog]:
    return correlator.get_honeypot_logs(limit=limit, service=service)


@router.get("/stats", response_model=HoneypotStats)
def honeypot_stats(correlator: Correlator = Depends(get_correlator)) -> HoneypotStats:
    return correlator.get_honeypot_stats()


@router.get("/ssh/attacks", response_model=List[HoneypotLog])
def ssh_attacks(correlator: Correlator = Depends(get_correlator)) -> List[HoneypotLog]:
    return correlator.get_honeypot_logs(limit=SSH_ATTACKS_LIMIT, service=HoneypotService.SSH)


@router.get("/ssh/map-data", response_model=List[AttackMapPoint])
def ssh_map_data(correlator: Correlator = Depends(get_correlator)) -> List[AttackMapPoint]:
    logs = correlator.get_honeypot_logs(limit=SSH_ANALYTICS_LIMIT, service=HoneypotService.SSH)
    return build_attack_map(logs)


@router.get("/ssh/statistics", response_model=SSHStatistics)
def ssh_statistics(correlator: Correlator = Depends(get_correlator)) -> SSHStatistics:
    logs = correlator.get_honeypot_logs(limit=SSH_ANALYTICS_LIMIT, service=HoneypotService.SSH)
    return compute_ssh_statistics(logs)
