from typing import Tuple

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "cybershield-backend"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # Live updates
    STATS_BROADCAST_INTERVAL_SECONDS: float = 30.0
    SUBSCRIBER_QUEUE_SIZE: int = 100

    # Synthetic honeypot generators (min, max) seconds between attacks
    HONEYPOT_ENABLED: bool = True
    HONEYPOT_SSH_INTERVAL_SECONDS: Tuple[float, float] = (10.0, 30.0)
    HONEYPOT_HTTP_INTERVAL_SECONDS: Tuple[float, float] = (8.0, 23.0)
    HONEYPOT_FTP_INTERVAL_SECONDS: Tuple[float, float] = (15.0, 45.0)

    # Geolocation (ip-api.com, no key required)
    GEOLOCATION_ENABLED: bool = True
    GEOLOCATION_API_URL: str = "http://ip-api.com/json"
    GEOLOCATION_TIMEOUT_SECONDS: float = 5.0

    # E-mail alerts (SendGrid). Without a key, alerts are only logged.
    SENDGRID_API_KEY: str | None = None
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    ALERT_EMAIL_TO: str = "admin@cybershield.ai"
    ALERT_EMAIL_FROM: str = "alerts@cybershield.ai"
    EMAIL_ALERT_TIMEOUT_SECONDS: float = 10.0

    # Uploads
    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
