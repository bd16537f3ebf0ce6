# backend/cybershield/api/v1/routes_alerts.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from cybershield.api.deps import get_correlator
from cybershield.schemas.alerts import AlertCounts, MarkReadResponse
from cybershield.schemas.records import Alert, SystemStats, Threat, ThreatType
from cybershield.services.correlation.correlation_engine import Correlator

router = APIRouter(tags=["alerts"])


@router.get("/stats", response_model=SystemStats, tags=["stats"])
def get_stats(correlator: Correlator = Depends(get_correlator)) -> SystemStats:
    return correlator.get_stats()


@router.get("/alerts", response_model=List[Alert])
def list_alerts(
    limit: int = 50,
    unread_only: bool = False,
    correlator: Correlator = Depends(get_correlator),
) -> List[Alert]:
    return correlator.get_alerts(limit=limit, unread_only=unread_only)


@router.get("/alerts/counts", response_model=AlertCounts)
def alert_counts(correlator: Correlator = Depends(get_correlator)) -> AlertCounts:
    """Unread alerts per severity (drives the header badge)."""
    return correlator.get_alert_counts()


@router.patch("/alerts/read-all", response_model=MarkReadResponse)
def mark_all_alerts_read(
    correlator: Correlator = Depends(get_correlator),
) -> MarkReadResponse:
    return MarkReadResponse(updated=correlator.mark_all_alerts_read())


@router.patch("/alerts/{alert_id}/read", response_model=Alert)
def mark_alert_read(
    alert_id: int,
    correlator: Correlator = Depends(get_correlator),
) -> Alert:
    # NotFound -> 404 via the app-level error handler
    return correlator.mark_alert_read(alert_id)


@router.get("/threats", response_model=List[Threat], tags=["threats"])
def list_threats(
    limit: int = 50,
    offset: int = 0,
    type: Optional[ThreatType] = None,
    correlator: Correlator = Depends(get_correlator),
) -> List[Threat]:
    return correlator.list_threats(limit=limit, offset=offset, threat_type=type)
