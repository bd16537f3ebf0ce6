# backend/cybershield/services/honeypot/honeypot_simulator.py
import logging
import random
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from cybershield.core.config import settings
from cybershield.schemas.honeypot import HoneypotAttack
from cybershield.schemas.records import HoneypotService, Severity
from cybershield.services.correlation.correlation_engine import correlator
from cybershield.services.scheduling.periodic_task import PeriodicTask

logger = logging.getLogger(__name__)

SSH_ATTACK_TYPES = ["Brute Force", "Dictionary Attack", "Credential Stuffing"]
HTTP_ATTACK_TYPES = ["Web Crawler", "SQL Injection", "XSS Attempt", "Directory Traversal"]
FTP_ATTACK_TYPES = ["Login Attempt", "Anonymous Access", "File Enumeration"]

USER_AGENTS = [
    "Mozilla/5.0 (compatible; Baiduspider/2.0)",
    "Mozilla/5.0 (compatible; Googlebot/2.1)",
    "curl/7.68.0",
    "python-requests/2.25.1",
    "Wget/1.20.3",
    "sqlmap/1.4.7",
]

# how many candidate source IPs each service picks from per attack
IP_POOL_SIZE = {
    HoneypotService.SSH: 5,
    HoneypotService.HTTP: 10,
    HoneypotService.FTP: 3,
}

DEFAULT_INTERVALS: Dict[HoneypotService, Tuple[float, float]] = {
    HoneypotService.SSH: settings.HONEYPOT_SSH_INTERVAL_SECONDS,
    HoneypotService.HTTP: settings.HONEYPOT_HTTP_INTERVAL_SECONDS,
    HoneypotService.FTP: settings.HONEYPOT_FTP_INTERVAL_SECONDS,
}


class HoneypotSimulator:
    """
    Timer-driven fake SSH/HTTP/FTP honeypots.

    Each service gets its own PeriodicTask whose interval is drawn once per
    start() from the configured (min, max) range. Generated attacks go
    through `submit`, i.e. the same entry point a real honeypot would use.
    """

    def __init__(
        self,
        submit: Callable[[HoneypotAttack], Awaitable[object]],
        rng: Optional[random.Random] = None,
        intervals: Optional[Dict[HoneypotService, Tuple[float, float]]] = None,
    ) -> None:
        self._submit = submit
        self._rng = rng or random.Random()
        self._intervals = intervals or DEFAULT_INTERVALS
        self._tasks: List[PeriodicTask] = []

    @property
    def is_running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self.is_running:
            return
        logger.info("Starting honeypot services...")
        for service in HoneypotService:
            low, high = self._intervals[service]
            task = PeriodicTask(
                f"honeypot-{service.value}",
                lambda s=service: self.fire(s),
                self._rng.uniform(low, high),
            )
            task.start()
            self._tasks.append(task)

    async def stop(self) -> None:
        if not self.is_running:
            return
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            await task.stop()
        logger.info("Stopped honeypot services")

    async def fire(self, service: HoneypotService) -> object:
        """Generate one attack for `service` and submit it."""
        return await self._submit(self.generate(service))

    # -------------------------------------------------------------------------
    # Generators
    # -------------------------------------------------------------------------
    def generate(self, service: HoneypotService) -> HoneypotAttack:
        rng = self._rng
        source_ip = rng.choice(self._random_ips(IP_POOL_SIZE[service]))

        if service == HoneypotService.SSH:
            return HoneypotAttack(
                service=service,
                source_ip=source_ip,
                attack_type=rng.choice(SSH_ATTACK_TYPES),
                severity=rng.choice([Severity.MEDIUM, Severity.HIGH]),
                port=22,
                payload=f"Failed login attempts: {rng.randint(1, 50)}",
            )
        if service == HoneypotService.HTTP:
            return HoneypotAttack(
                service=service,
                source_ip=source_ip,
                attack_type=rng.choice(HTTP_ATTACK_TYPES),
                severity=rng.choice([Severity.LOW, Severity.MEDIUM]),
                port=rng.choice([80, 8080]),
                payload=f"User-Agent: {rng.choice(USER_AGENTS)}",
            )
        return HoneypotAttack(
            service=service,
            source_ip=source_ip,
            attack_type=rng.choice(FTP_ATTACK_TYPES),
            severity=rng.choice([Severity.LOW, Severity.MEDIUM]),
            port=21,
            payload=f"Connection attempts: {rng.randint(1, 10)}",
        )

    def _random_ips(self, count: int) -> List[str]:
        return [
            ".".join(str(self._rng.randint(1, 254)) for _ in range(4))
            for _ in range(count)
        ]


honeypot_simulator = HoneypotSimulator(correlator.submit_honeypot_attack)
