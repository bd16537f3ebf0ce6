from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoLocation(BaseModel):
    """Normalized ip-api.com answer attached to honeypot logs."""

    model_config = ConfigDict(populate_by_name=True)

    ip: str
    country: str = "Unknown"
    country_code: str = "XX"
    region: str = ""
    region_name: str = ""
    city: str = "Unknown"
    zip: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    timezone: str = ""
    isp: str = "Unknown ISP"
    org: str = "Unknown Organization"
    asn: str = Field("Unknown AS", alias="as")
