import asyncio
import random
from datetime import datetime, timedelta

import pytest

from cybershield.schemas.records import HoneypotLog, HoneypotService, Severity
from cybershield.services.honeypot.honeypot_simulator import (
    FTP_ATTACK_TYPES,
    HTTP_ATTACK_TYPES,
    SSH_ATTACK_TYPES,
    HoneypotSimulator,
)
from cybershield.services.honeypot.ssh_analytics import build_attack_map, compute_ssh_statistics

from fakes import geo

FAST = {service: (0.01, 0.02) for service in HoneypotService}


class Recorder:
    def __init__(self):
        self.attacks = []

    async def __call__(self, attack):
        self.attacks.append(attack)
        return attack


@pytest.mark.parametrize("seed", range(5))
def test_generated_attacks_follow_service_profiles(seed):
    simulator = HoneypotSimulator(Recorder(), rng=random.Random(seed))

    ssh = simulator.generate(HoneypotService.SSH)
    assert ssh.port == 22
    assert ssh.attack_type in SSH_ATTACK_TYPES
    assert ssh.severity in (Severity.MEDIUM, Severity.HIGH)
    assert ssh.payload.startswith("Failed login attempts: ")

    http = simulator.generate(HoneypotService.HTTP)
    assert http.port in (80, 8080)
    assert http.attack_type in HTTP_ATTACK_TYPES
    assert http.severity in (Severity.LOW, Severity.MEDIUM)
    assert http.payload.startswith("User-Agent: ")

    ftp = simulator.generate(HoneypotService.FTP)
    assert ftp.port == 21
    assert ftp.attack_type in FTP_ATTACK_TYPES
    assert ftp.payload.startswith("Connection attempts: ")


def test_fire_goes_through_submit():
    recorder = Recorder()
    simulator = HoneypotSimulator(recorder, rng=random.Random(1))

    attack = asyncio.run(simulator.fire(HoneypotService.FTP))

    assert recorder.attacks == [attack]
    assert attack.service == HoneypotService.FTP


def test_simulator_runs_all_services_until_stopped():
    recorder = Recorder()
    simulator = HoneypotSimulator(recorder, rng=random.Random(7), intervals=FAST)

    async def scenario():
        simulator.start()
        simulator.start()
        assert simulator.is_running
        await asyncio.sleep(0.15)
        await simulator.stop()
        assert not simulator.is_running
        stopped_at = len(recorder.attacks)
        await asyncio.sleep(0.05)
        return stopped_at

    stopped_at = asyncio.run(scenario())

    assert {a.service for a in recorder.attacks} == set(HoneypotService)
    assert len(recorder.attacks) == stopped_at


def test_simulator_keeps_going_when_submit_fails():
    calls = []

    async def failing_submit(attack):
        calls.append(attack)
        raise RuntimeError("store unavailable")

    simulator = HoneypotSimulator(failing_submit, rng=random.Random(3), intervals=FAST)

    async def scenario():
        simulator.start()
        await asyncio.sleep(0.15)
        await simulator.stop()

    asyncio.run(scenario())
    assert len(calls) >= 6


# -------------------------------------------------------------------------
# SSH analytics
# -------------------------------------------------------------------------
NOW = datetime(2024, 6, 1, 12, 0)


def ssh_log(ip, location=None, attack_type="Brute Force", age=timedelta(hours=1)):
    return HoneypotLog(
        id=1,
        detected_at=NOW - age,
        service=HoneypotService.SSH,
        source_ip=ip,
        attack_type=attack_type,
        severity=Severity.HIGH,
        port=22,
        location=location,
    )


def test_attack_map_groups_by_coordinates():
    berlin = geo("198.51.100.1")
    logs = [
        ssh_log("198.51.100.1", berlin, age=timedelta(minutes=5)),
        ssh_log("198.51.100.2", berlin.model_copy(update={"ip": "198.51.100.2"}), age=timedelta(hours=2)),
        ssh_log("192.0.2.9", geo("192.0.2.9", country="Japan", city="Tokyo", lat=35.68, lon=139.69)),
        ssh_log("192.0.2.10"),
    ]

    points = build_attack_map(logs)

    assert len(points) == 2
    berlin_point = next(p for p in points if p.city == "Berlin")
    assert berlin_point.count == 2
    assert berlin_point.ip == "198.51.100.1"
    assert berlin_point.coordinates == [13.405, 52.52]
    assert berlin_point.last_seen == NOW - timedelta(minutes=5)
    assert berlin_point.timestamp == NOW - timedelta(hours=2)


def test_attack_map_keeps_zero_coordinates():
    null_island = geo("192.0.2.50", country="Ghana", city="Null Island", lat=0.0, lon=0.0)
    equator = geo("192.0.2.51", country="Ecuador", city="Quito", lat=0.0, lon=-78.5)

    points = build_attack_map([ssh_log("192.0.2.50", null_island), ssh_log("192.0.2.51", equator)])

    assert sorted(p.coordinates for p in points) == [[-78.5, 0.0], [0.0, 0.0]]


def test_ssh_statistics():
    logs = [
        ssh_log("198.51.100.1", geo("198.51.100.1")),
        ssh_log("198.51.100.1", geo("198.51.100.1"), attack_type="Dictionary Attack", age=timedelta(days=2)),
        ssh_log("192.0.2.9", geo("192.0.2.9", country="Japan"), age=timedelta(days=10)),
        ssh_log("192.0.2.10"),
    ]

    stats = compute_ssh_statistics(logs, now=NOW)

    assert stats.total_attacks == 4
    assert stats.attacks_24h == 2
    assert stats.attacks_7d == 3
    assert stats.unique_ips == 3
    assert stats.unique_countries == 2
    assert stats.top_countries[0].country == "Germany"
    assert stats.top_countries[0].count == 2
    assert {c.country for c in stats.top_countries} == {"Germany", "Japan", "Unknown"}
    assert stats.top_attack_types[0].type == "Brute Force"
    assert stats.top_attack_types[0].count == 3


def test_ssh_statistics_on_empty_input():
    stats = compute_ssh_statistics([], now=NOW)
    assert stats.total_attacks == 0
    assert stats.top_countries == []
