# backend/cybershield/services/correlation/severity_policy.py
"""
Escalation thresholds. Pure functions, no state.

Phishing:  score >= 90 -> critical, 70 <= score < 90 -> high, else none
Deepfake:  is_deepfake and confidence >= 0.80; critical from 0.95
Honeypot:  only ssh hits with high/critical severity raise an alert
"""
from dataclasses import dataclass
from typing import Optional

from cybershield.schemas.records import HoneypotService, Severity

PHISHING_CRITICAL_SCORE = 90
PHISHING_HIGH_SCORE = 70

DEEPFAKE_CRITICAL_CONFIDENCE = 0.95
DEEPFAKE_HIGH_CONFIDENCE = 0.80

HONEYPOT_ALERT_SEVERITIES = frozenset({Severity.HIGH, Severity.CRITICAL})


@dataclass(frozen=True)
class PolicyDecision:
    escalate: bool
    severity: Optional[Severity] = None


NO_ESCALATION = PolicyDecision(escalate=False)


def phishing_decision(score: float) -> PolicyDecision:
    if score >= PHISHING_CRITICAL_SCORE:
        return PolicyDecision(True, Severity.CRITICAL)
    if score >= PHISHING_HIGH_SCORE:
        return PolicyDecision(True, Severity.HIGH)
    return NO_ESCALATION


def deepfake_decision(is_deepfake: bool, confidence: float) -> PolicyDecision:
    if not is_deepfake or confidence < DEEPFAKE_HIGH_CONFIDENCE:
        return NO_ESCALATION
    if confidence >= DEEPFAKE_CRITICAL_CONFIDENCE:
        return PolicyDecision(True, Severity.CRITICAL)
    return PolicyDecision(True, Severity.HIGH)


def honeypot_decision(service: HoneypotService, severity: Severity) -> PolicyDecision:
    if service == HoneypotService.SSH and severity in HONEYPOT_ALERT_SEVERITIES:
        return PolicyDecision(True, Severity(severity))
    return NO_ESCALATION
