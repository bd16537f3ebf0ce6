# backend/cybershield/services/geolocation/geolocation_service.py
from ipaddress import ip_address
from typing import Any, Dict, Optional
import logging

import httpx

from cybershield.core.config import settings
from cybershield.schemas.geolocation import GeoLocation
from cybershield.services.geolocation.retry import async_retry

logger = logging.getLogger(__name__)

IP_API_FIELDS = (
    "status,message,country,countryCode,region,regionName,city,zip,"
    "lat,lon,timezone,isp,org,as,query"
)


class GeolocationService:
    """
    ip-api.com lookup with an in-process cache.

    locate() never raises: disabled lookups, private/reserved addresses and
    any failure all come back as None so the caller can attach "no location".
    Only successful answers are cached.
    """

    def __init__(
        self,
        api_url: str = settings.GEOLOCATION_API_URL,
        timeout: float = settings.GEOLOCATION_TIMEOUT_SECONDS,
        enabled: bool = settings.GEOLOCATION_ENABLED,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._enabled = enabled
        self._transport = transport
        self._cache: Dict[str, GeoLocation] = {}

    def get_cached(self, ip: str) -> Optional[GeoLocation]:
        return self._cache.get(ip)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def locate(self, ip: str) -> Optional[GeoLocation]:
        if not self._enabled:
            return None

        cached = self._cache.get(ip)
        if cached is not None:
            return cached

        try:
            ip_obj = ip_address(ip)
        except ValueError:
            logger.warning("Not geolocating invalid IP %r", ip)
            return None
        if not ip_obj.is_global:
            return None

        try:
            data = await async_retry(lambda: self._fetch(ip))
        except Exception as e:
            logger.warning("Geolocation lookup for %s failed: %s: %s", ip, type(e).__name__, e)
            return None

        if data.get("status") == "fail":
            logger.warning("Geolocation failed for IP %s: %s", ip, data.get("message"))
            return None

        location = GeoLocation(
            ip=data.get("query") or ip,
            country=data.get("country") or "Unknown",
            country_code=data.get("countryCode") or "XX",
            region=data.get("region") or "",
            region_name=data.get("regionName") or "",
            city=data.get("city") or "Unknown",
            zip=data.get("zip") or "",
            lat=data.get("lat"),
            lon=data.get("lon"),
            timezone=data.get("timezone") or "",
            isp=data.get("isp") or "Unknown ISP",
            org=data.get("org") or "Unknown Organization",
            asn=data.get("as") or "Unknown AS",
        )
        self._cache[ip] = location
        return location

    async def _fetch(self, ip: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.get(f"{self._api_url}/{ip}", params={"fields": IP_API_FIELDS})
            resp.raise_for_status()
            return resp.json()


geolocation_service = GeolocationService()
