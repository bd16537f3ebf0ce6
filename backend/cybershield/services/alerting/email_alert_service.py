# backend/cybershield/services/alerting/email_alert_service.py
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from cybershield.core.config import settings

logger = logging.getLogger(__name__)

templates = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
)


class EmailAlertData(BaseModel):
    attacker_ip: str
    country: str = "Unknown"
    city: str = "Unknown"
    attack_type: str
    timestamp: datetime
    attempts: int = 1


class EmailAlertService:
    """
    SSH honeypot e-mail alerts through the SendGrid v3 API.

    Configure env:
      SENDGRID_API_KEY=SG....
    Without a key the alert is only logged ("simulated") and counts as sent.
    """

    def __init__(
        self,
        api_key: Optional[str] = settings.SENDGRID_API_KEY,
        api_url: str = settings.SENDGRID_API_URL,
        to_address: str = settings.ALERT_EMAIL_TO,
        from_address: str = settings.ALERT_EMAIL_FROM,
        timeout: float = settings.EMAIL_ALERT_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._to = to_address
        self._from = from_address
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def send_attack_alert(self, data: EmailAlertData) -> bool:
        if not self.is_configured:
            logger.info(
                "[SIMULATED EMAIL] SSH attack alert: ip=%s location=%s, %s type=%s attempts=%s time=%s",
                data.attacker_ip,
                data.city,
                data.country,
                data.attack_type,
                data.attempts,
                data.timestamp.isoformat(),
            )
            return True

        payload = {
            "personalizations": [{"to": [{"email": self._to}]}],
            "from": {"email": self._from},
            "subject": f"SSH Honeypot Attack Alert - {data.attacker_ip}",
            "content": [
                {"type": "text/plain", "value": render_text(data)},
                {"type": "text/html", "value": render_html(data)},
            ],
        }

        try:
            resp = requests.post(
                self._api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except Exception as exc:
            logger.exception("Failed to send e-mail alert for %s: %s", data.attacker_ip, exc)
            return False

        logger.info("E-mail alert sent for attack from %s", data.attacker_ip)
        return True


def render_text(data: EmailAlertData) -> str:
    return "\n".join(
        [
            "SSH HONEYPOT ATTACK ALERT",
            "",
            f"Attacker IP: {data.attacker_ip}",
            f"Location: {data.city}, {data.country}",
            f"Attack Type: {data.attack_type}",
            f"Login Attempts: {data.attempts}",
            f"Timestamp: {data.timestamp.isoformat()}",
            "",
            "This is an automated alert from the CyberShield honeypot system.",
            "Please review your security logs and take appropriate action.",
        ]
    )


def render_html(data: EmailAlertData) -> str:
    # attack_type and location come from the caller; autoescape keeps them inert
    return templates.get_template("attack_alert.html").render(alert=data)


email_alert_service = EmailAlertService()
