"""Deterministic stand-ins for the correlator's collaborators."""
import asyncio
import json
import time
from typing import Dict, List, Optional

from cybershield.schemas.analysis import DeepfakeDetectionResult, PhishingDetectionResult
from cybershield.schemas.geolocation import GeoLocation
from cybershield.schemas.notifications import Notification
from cybershield.services.alerting.email_alert_service import EmailAlertData


class FixedPhishingClassifier:
    def __init__(self, score: float = 0, confidence: float = 80, indicators=None) -> None:
        self.score = score
        self.confidence = confidence
        self.indicators = indicators or []
        self.calls: List[str] = []

    def analyze(self, content: str) -> PhishingDetectionResult:
        self.calls.append(content)
        return PhishingDetectionResult(
            score=self.score,
            confidence=self.confidence,
            suspicious_links=1 if self.score else 0,
            indicators=list(self.indicators),
        )


class BrokenPhishingClassifier:
    def analyze(self, content: str) -> PhishingDetectionResult:
        raise RuntimeError("model offline")


class FixedMediaClassifier:
    def __init__(self, is_deepfake: bool = False, confidence: float = 0.5) -> None:
        self.result = DeepfakeDetectionResult(
            is_deepfake=is_deepfake,
            confidence=confidence,
            processing_time_ms=12.5,
            anomalies=["Face swap artifacts detected"] if is_deepfake else [],
        )
        self.calls: List[tuple] = []

    async def analyze(self, file_bytes: bytes, file_name: str, file_type: str) -> DeepfakeDetectionResult:
        self.calls.append((len(file_bytes), file_name, file_type))
        return self.result


class StubGeolocator:
    def __init__(self, locations: Optional[Dict[str, GeoLocation]] = None, fail: bool = False) -> None:
        self.locations = locations or {}
        self.fail = fail
        self.calls: List[str] = []

    async def locate(self, ip: str) -> Optional[GeoLocation]:
        self.calls.append(ip)
        if self.fail:
            raise ConnectionError("geo api down")
        return self.locations.get(ip)


class StubEmailSender:
    def __init__(self, result: bool = True, fail: bool = False) -> None:
        self.result = result
        self.fail = fail
        self.sent: List[EmailAlertData] = []

    def send_attack_alert(self, data: EmailAlertData) -> bool:
        if self.fail:
            raise RuntimeError("smtp relay refused")
        self.sent.append(data)
        return self.result


class SlowEmailSender:
    """Blocks like a provider that never answers in time."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.started: List[EmailAlertData] = []

    def send_attack_alert(self, data: EmailAlertData) -> bool:
        self.started.append(data)
        time.sleep(self.delay)
        return True


class RecordingSink:
    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def publish(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def of_type(self, kind: str) -> List[Notification]:
        return [n for n in self.notifications if n.type == kind]


class ExplodingSink:
    def publish(self, notification: Notification) -> None:
        raise RuntimeError("sink exploded")


class FakeTransport:
    """Collects what a subscriber writes; can be told to fail like a dead socket."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: List[dict] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("transport closed")
        self.sent.append(json.loads(data))


class StuckTransport:
    """Never finishes a send."""

    def __init__(self) -> None:
        self._never = asyncio.Event()

    async def send_text(self, data: str) -> None:
        await self._never.wait()


def geo(ip: str, country: str = "Germany", city: str = "Berlin", lat: float = 52.52, lon: float = 13.405) -> GeoLocation:
    return GeoLocation(ip=ip, country=country, country_code="DE", city=city, lat=lat, lon=lon)
