# backend/cybershield/services/correlation/correlation_engine.py
import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from cybershield.core.config import settings
from cybershield.core.errors import (
    CyberShieldError,
    ExternalCollaboratorFailure,
    InvalidInput,
)
from cybershield.schemas.alerts import AlertCounts
from cybershield.schemas.analysis import (
    DeepfakeDetectionResult,
    DeepfakeSubmission,
    MediaFileMeta,
    PhishingDetectionResult,
    PhishingSubmission,
)
from cybershield.schemas.geolocation import GeoLocation
from cybershield.schemas.honeypot import HoneypotAttack, HoneypotStats, HoneypotSubmission
from cybershield.schemas.notifications import Notification
from cybershield.schemas.records import (
    Alert,
    AlertCategory,
    DeepfakeAnalysis,
    HoneypotLog,
    HoneypotService,
    PhishingAnalysis,
    Severity,
    SystemStats,
    Threat,
    ThreatType,
)
from cybershield.services.alerting.email_alert_service import (
    EmailAlertData,
    email_alert_service,
)
from cybershield.services.classifiers.deepfake_detector import (
    deepfake_detector,
    is_supported_media,
)
from cybershield.services.classifiers.phishing_detector import phishing_detector
from cybershield.services.correlation.severity_policy import (
    deepfake_decision,
    honeypot_decision,
    phishing_decision,
)
from cybershield.services.events.event_store_service import EventStore, event_store
from cybershield.services.geolocation.geolocation_service import geolocation_service
from cybershield.services.notifications.notifier import NotificationSink, notifier

logger = logging.getLogger(__name__)

ATTEMPTS_RE = re.compile(r"\d+")


# -------------------------------------------------------------------------
# Collaborators
# -------------------------------------------------------------------------
class PhishingClassifier(Protocol):
    def analyze(self, content: str) -> PhishingDetectionResult:
        ...


class MediaClassifier(Protocol):
    async def analyze(
        self, file_bytes: bytes, file_name: str, file_type: str
    ) -> DeepfakeDetectionResult:
        ...


class Geolocator(Protocol):
    async def locate(self, ip: str) -> Optional[GeoLocation]:
        ...


class AttackAlertSender(Protocol):
    def send_attack_alert(self, data: EmailAlertData) -> bool:
        ...


class Correlator:
    """
    Turns raw detections into stored records, threats, alerts, counters and
    live notifications.

    Every submission runs in the same order:
      1. store the raw record
      2. ask the severity policy whether to escalate
      3. create Threat/Alert + bump SystemStats (same critical section as 1)
      4. external notification (e-mail), best-effort
      5. hand the notification to every sink

    So by the time a viewer receives a broadcast, the stats already reflect it.
    """

    def __init__(
        self,
        store: EventStore,
        sinks: Sequence[NotificationSink] = (),
        phishing_classifier: PhishingClassifier = phishing_detector,
        media_classifier: MediaClassifier = deepfake_detector,
        geolocator: Optional[Geolocator] = None,
        email_sender: Optional[AttackAlertSender] = None,
        email_timeout: float = settings.EMAIL_ALERT_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._sinks = list(sinks)
        self._phishing = phishing_classifier
        self._media = media_classifier
        self._geolocator = geolocator
        self._email = email_sender
        self._email_timeout = email_timeout

    @property
    def store(self) -> EventStore:
        return self._store

    # -------------------------------------------------------------------------
    # Phishing
    # -------------------------------------------------------------------------
    async def submit_phishing_analysis(self, content: str) -> PhishingSubmission:
        if not isinstance(content, str) or not content.strip():
            raise InvalidInput("Email content is required")

        try:
            result = PhishingDetectionResult.model_validate(
                self._phishing.analyze(content), from_attributes=True
            )
        except CyberShieldError:
            raise
        except Exception as exc:
            raise ExternalCollaboratorFailure(
                "phishing classifier", f"{type(exc).__name__}: {exc}"
            ) from exc

        threat: Optional[Threat] = None
        alert: Optional[Alert] = None

        with self._store.atomic():
            analysis = self._store.store_record(
                PhishingAnalysis(
                    content=content,
                    score=result.score,
                    confidence=result.confidence,
                    suspicious_links=result.suspicious_links,
                    indicators=result.indicators,
                )
            )
            decision = phishing_decision(analysis.score)
            if decision.escalate:
                threat, alert = self._create_threat_and_alert(
                    analysis_kind=PhishingAnalysis,
                    analysis_id=analysis.id,
                    threat_type=ThreatType.PHISHING,
                    severity=decision.severity,
                    source="email_analysis",
                    threat_description=(
                        f"High-risk phishing email detected with {analysis.score:g}% confidence"
                    ),
                    threat_extra={"indicators": list(analysis.indicators)},
                    alert_title="High-Risk Phishing Email Detected",
                    alert_description=(
                        f"Suspicious email content with {analysis.score:g}% phishing probability"
                    ),
                    category=AlertCategory.EMAIL,
                )
                self._store.increment_stats(phishing_blocked=1, active_threats=1)

        if alert is not None:
            logger.info(
                "Phishing analysis %s escalated: threat %s / alert %s (%s)",
                analysis.id, threat.id, alert.id, alert.severity.value,
            )
            self._emit_new_alert(alert, threat)

        return PhishingSubmission(
            analysis=analysis,
            escalated=alert is not None,
            threat=threat,
            alert=alert,
        )

    # -------------------------------------------------------------------------
    # Deepfake
    # -------------------------------------------------------------------------
    async def analyze_media(
        self, file_bytes: bytes, file_name: str, file_type: str
    ) -> DeepfakeSubmission:
        """Run the media classifier on an upload, then submit its verdict."""
        if not file_bytes:
            raise InvalidInput("File is required")
        if not file_name:
            raise InvalidInput("File name is required")
        if not file_type or not is_supported_media(file_type):
            raise InvalidInput(f"Unsupported file type {file_type!r}")

        try:
            result = await self._media.analyze(file_bytes, file_name, file_type)
        except CyberShieldError:
            raise
        except Exception as exc:
            raise ExternalCollaboratorFailure(
                "deepfake detector", f"{type(exc).__name__}: {exc}"
            ) from exc

        meta = MediaFileMeta(file_name=file_name, file_type=file_type, file_size=len(file_bytes))
        return await self.submit_deepfake_analysis(meta, result)

    async def submit_deepfake_analysis(
        self,
        file_meta: MediaFileMeta,
        result: DeepfakeDetectionResult,
    ) -> DeepfakeSubmission:
        try:
            result = DeepfakeDetectionResult.model_validate(result, from_attributes=True)
        except ValidationError as exc:
            raise ExternalCollaboratorFailure("deepfake detector", str(exc)) from exc

        threat: Optional[Threat] = None
        alert: Optional[Alert] = None

        with self._store.atomic():
            analysis = self._store.store_record(
                DeepfakeAnalysis(
                    file_name=file_meta.file_name,
                    file_type=file_meta.file_type,
                    file_size=file_meta.file_size,
                    is_deepfake=result.is_deepfake,
                    confidence=result.confidence,
                    processing_time_ms=result.processing_time_ms,
                    anomalies=result.anomalies,
                )
            )
            decision = deepfake_decision(analysis.is_deepfake, analysis.confidence)
            if decision.escalate:
                threat, alert = self._create_threat_and_alert(
                    analysis_kind=DeepfakeAnalysis,
                    analysis_id=analysis.id,
                    threat_type=ThreatType.DEEPFAKE,
                    severity=decision.severity,
                    source="media_analysis",
                    threat_description=(
                        f"Deepfake content detected with {analysis.confidence:.0%} confidence"
                    ),
                    threat_extra={"anomalies": list(analysis.anomalies)},
                    alert_title="Deepfake Content Detected",
                    alert_description=(
                        f"AI-generated media detected with {analysis.confidence:.0%} confidence level"
                    ),
                    category=AlertCategory.MEDIA,
                )
                self._store.increment_stats(deepfakes_detected=1, active_threats=1)

        if alert is not None:
            logger.info(
                "Deepfake analysis %s (%s) escalated: threat %s / alert %s (%s)",
                analysis.id, analysis.file_name, threat.id, alert.id, alert.severity.value,
            )
            self._emit_new_alert(alert, threat)

        return DeepfakeSubmission(
            analysis=analysis,
            escalated=alert is not None,
            threat=threat,
            alert=alert,
        )

    # -------------------------------------------------------------------------
    # Honeypot
    # -------------------------------------------------------------------------
    async def submit_honeypot_attack(
        self, attack: Union[HoneypotAttack, Dict[str, Any]]
    ) -> HoneypotSubmission:
        if not isinstance(attack, HoneypotAttack):
            try:
                attack = HoneypotAttack.model_validate(attack)
            except ValidationError as exc:
                raise InvalidInput(f"Invalid honeypot attack: {exc}") from exc

        source_ip = str(attack.source_ip)
        # outside the critical section; may be slow or fail
        location = await self._locate(source_ip)

        alert: Optional[Alert] = None
        with self._store.atomic():
            log = self._store.store_record(
                HoneypotLog(
                    service=attack.service,
                    source_ip=source_ip,
                    attack_type=attack.attack_type,
                    severity=attack.severity,
                    port=attack.port,
                    payload=attack.payload,
                    location=location,
                )
            )
            self._store.increment_stats(honeypot_hits=1)

            decision = honeypot_decision(log.service, log.severity)
            if decision.escalate:
                self._store.ensure_exists(HoneypotLog, log.id)
                alert = self._store.store_record(
                    Alert(
                        title=f"{log.service.value.upper()} Honeypot Attack",
                        description=f"{log.attack_type} from IP {log.source_ip}",
                        severity=decision.severity,
                        category=AlertCategory.HONEYPOT,
                        metadata={
                            "honeypot_log_id": log.id,
                            "service": log.service.value,
                            "source_ip": log.source_ip,
                            "attack_type": log.attack_type,
                        },
                    )
                )

        email_sent: Optional[bool] = None
        if alert is not None:
            logger.info(
                "Honeypot hit %s (%s from %s) raised alert %s",
                log.id, log.attack_type, log.source_ip, alert.id,
            )
            email_sent = await self._send_attack_email(log)

        self._emit(
            Notification(
                type="honeypot_attack",
                payload={
                    "attack": jsonable_encoder(log),
                    "alert": jsonable_encoder(alert) if alert is not None else None,
                },
            )
        )

        return HoneypotSubmission(
            log=log,
            alert_created=alert is not None,
            alert=alert,
            email_sent=email_sent,
        )

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------
    def get_stats(self) -> SystemStats:
        return self._store.get_stats()

    def get_alerts(self, limit: int = 50, unread_only: bool = False) -> List[Alert]:
        where = (lambda a: not a.is_read) if unread_only else None
        return self._store.list_records(Alert, where=where, limit=limit)

    def mark_alert_read(self, alert_id: int) -> Alert:
        """Idempotent. NotFound for unknown ids."""
        with self._store.atomic():
            alert = self._store.get_record(Alert, alert_id)
            if alert.is_read:
                return alert
            return self._store.update_record_field(Alert, alert_id, "is_read", True)

    def mark_all_alerts_read(self) -> int:
        return self._store.update_records_where(
            Alert, lambda a: not a.is_read, "is_read", True
        )

    def get_alert_counts(self) -> AlertCounts:
        counts = {}
        for severity in Severity:
            counts[severity.value] = self._store.count_records(
                Alert, lambda a, s=severity: not a.is_read and a.severity == s
            )
        return AlertCounts(**counts)

    def get_honeypot_logs(
        self, limit: int = 100, service: Optional[HoneypotService] = None
    ) -> List[HoneypotLog]:
        where = (lambda log: log.service == service) if service is not None else None
        return self._store.list_records(HoneypotLog, where=where, limit=limit)

    def get_honeypot_stats(self) -> HoneypotStats:
        return HoneypotStats(
            **{
                service.value: self._store.count_records(
                    HoneypotLog, lambda log, s=service: log.service == s
                )
                for service in HoneypotService
            }
        )

    def list_threats(
        self,
        limit: int = 50,
        offset: int = 0,
        threat_type: Optional[ThreatType] = None,
    ) -> List[Threat]:
        where = (lambda t: t.type == threat_type) if threat_type is not None else None
        return self._store.list_records(Threat, where=where, limit=limit, offset=offset)

    def list_phishing_analyses(self, limit: int = 50) -> List[PhishingAnalysis]:
        return self._store.list_records(PhishingAnalysis, limit=limit)

    def list_deepfake_analyses(self, limit: int = 50) -> List[DeepfakeAnalysis]:
        return self._store.list_records(DeepfakeAnalysis, limit=limit)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _create_threat_and_alert(
        self,
        *,
        analysis_kind: type,
        analysis_id: int,
        threat_type: ThreatType,
        severity: Severity,
        source: str,
        threat_description: str,
        threat_extra: Dict[str, Any],
        alert_title: str,
        alert_description: str,
        category: AlertCategory,
    ) -> Tuple[Threat, Alert]:
        # caller holds store.atomic()
        self._store.ensure_exists(analysis_kind, analysis_id)
        threat = self._store.store_record(
            Threat(
                type=threat_type,
                severity=severity,
                source=source,
                description=threat_description,
                metadata={"analysis_id": analysis_id, **threat_extra},
            )
        )
        self._store.ensure_exists(Threat, threat.id)
        alert = self._store.store_record(
            Alert(
                title=alert_title,
                description=alert_description,
                severity=severity,
                category=category,
                metadata={"threat_id": threat.id, "analysis_id": analysis_id},
            )
        )
        return threat, alert

    async def _locate(self, ip: str) -> Optional[GeoLocation]:
        if self._geolocator is None:
            return None
        try:
            return await self._geolocator.locate(ip)
        except Exception as exc:
            logger.warning("Geolocation for %s failed (%s); storing without location.", ip, exc)
            return None

    async def _send_attack_email(self, log: HoneypotLog) -> bool:
        if self._email is None:
            return False

        location = log.location
        data = EmailAlertData(
            attacker_ip=log.source_ip,
            country=location.country if location else "Unknown",
            city=location.city if location else "Unknown",
            attack_type=log.attack_type,
            timestamp=log.detected_at,
            attempts=parse_attempts(log.payload),
        )
        try:
            sent = await asyncio.wait_for(
                asyncio.to_thread(self._email.send_attack_alert, data),
                timeout=self._email_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "E-mail alert for honeypot hit %s timed out after %ss.", log.id, self._email_timeout
            )
            return False
        except Exception:
            logger.exception("E-mail alert for honeypot hit %s failed.", log.id)
            return False

        if not sent:
            logger.warning("E-mail alert for honeypot hit %s was not sent.", log.id)
        return bool(sent)

    def _emit_new_alert(self, alert: Alert, threat: Optional[Threat]) -> None:
        self._emit(
            Notification(
                type="new_alert",
                payload={
                    "alert": jsonable_encoder(alert),
                    "threat": jsonable_encoder(threat) if threat is not None else None,
                },
            )
        )

    def _emit(self, notification: Notification) -> None:
        # sink failures never break correlation
        for sink in self._sinks:
            try:
                sink.publish(notification)
            except Exception:
                logger.exception("Notification sink %r failed for %s.", sink, notification.type)


def parse_attempts(payload: Optional[str]) -> int:
    """First number in the payload ("Failed login attempts: 12" -> 12), default 1."""
    match = ATTEMPTS_RE.search(payload or "")
    return int(match.group()) if match else 1


correlator = Correlator(
    store=event_store,
    sinks=[notifier],
    phishing_classifier=phishing_detector,
    media_classifier=deepfake_detector,
    geolocator=geolocation_service,
    email_sender=email_alert_service,
)
