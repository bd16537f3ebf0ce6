# backend/cybershield/services/honeypot/ssh_analytics.py
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from cybershield.schemas.honeypot import (
    AttackMapPoint,
    AttackTypeCount,
    CountryCount,
    SSHStatistics,
)
from cybershield.schemas.records import HoneypotLog

TOP_COUNTRIES = 10
TOP_ATTACK_TYPES = 5


def build_attack_map(logs: List[HoneypotLog]) -> List[AttackMapPoint]:
    """
    Group logs that carry coordinates by "lat,lon".
    The first log seen for a point (newest, given list order) sets the
    displayed ip / type / severity; count and last_seen accumulate.
    """
    points: Dict[str, AttackMapPoint] = {}

    for log in logs:
        loc = log.location
        if loc is None or loc.lat is None or loc.lon is None:
            continue

        key = f"{loc.lat},{loc.lon}"
        existing = points.get(key)
        if existing is not None:
            existing.count += 1
            existing.last_seen = max(existing.last_seen, log.detected_at)
            existing.timestamp = min(existing.timestamp, log.detected_at)
            continue

        points[key] = AttackMapPoint(
            id=f"attack-{key}",
            coordinates=[loc.lon, loc.lat],
            country=loc.country or "Unknown",
            city=loc.city or "Unknown",
            ip=log.source_ip,
            attack_type=log.attack_type,
            severity=log.severity,
            timestamp=log.detected_at,
            last_seen=log.detected_at,
            count=1,
        )

    return list(points.values())


def compute_ssh_statistics(
    logs: List[HoneypotLog], now: Optional[datetime] = None
) -> SSHStatistics:
    now = now or datetime.utcnow()
    last_24h = now - timedelta(hours=24)
    last_7d = now - timedelta(days=7)

    countries = Counter(
        (log.location.country if log.location else None) or "Unknown" for log in logs
    )
    attack_types = Counter(log.attack_type for log in logs)

    return SSHStatistics(
        total_attacks=len(logs),
        attacks_24h=sum(1 for log in logs if log.detected_at >= last_24h),
        attacks_7d=sum(1 for log in logs if log.detected_at >= last_7d),
        unique_ips=len({log.source_ip for log in logs}),
        unique_countries=len(
            {log.location.country for log in logs if log.location and log.location.country}
        ),
        top_countries=[
            CountryCount(country=c, count=n) for c, n in countries.most_common(TOP_COUNTRIES)
        ],
        top_attack_types=[
            AttackTypeCount(type=t, count=n) for t, n in attack_types.most_common(TOP_ATTACK_TYPES)
        ],
    )
