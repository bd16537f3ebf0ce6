# backend/cybershield/services/classifiers/phishing_detector.py
import re
from typing import List

from cybershield.schemas.analysis import PhishingDetectionResult

# --------------------------------------------------------
# Heuristic tables
# --------------------------------------------------------

PHISHING_KEYWORDS = [
    "urgent", "verify", "suspend", "click here", "act now", "limited time",
    "confirm identity", "update payment", "security alert", "account locked",
    "winner", "congratulations", "claim now", "free", "prize",
]

URGENT_PHRASES = [
    "immediate action required", "within 24 hours", "expires today",
    "act immediately", "time sensitive", "last chance",
]

SUSPICIOUS_DOMAINS = [
    "bit.ly", "tinyurl.com", "shortened.link", "temp-mail.org",
    "fake-bank.com", "secure-verify.net", "phishing.net",
]

FAKE_SENDER_PATTERNS = [
    "fake-bank", "secure-verify", "account-update",
    "security-alert", "urgent-notice", "verify-account",
]

URL_SHORTENER_RE = re.compile(r"(bit\.ly|tinyurl|t\.co|goo\.gl|short\.link)", re.IGNORECASE)
SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
MULTI_SPACE_RE = re.compile(r"\s{2,}")
GLUED_WORDS_RE = re.compile(r"[a-z][A-Z]")

KEYWORD_WEIGHT = 15
URGENT_WEIGHT = 25
LINK_WEIGHT = 20
GRAMMAR_WEIGHT = 10
FAKE_SENDER_WEIGHT = 30


class PhishingDetector:
    """
    Keyword / regex scoring of an e-mail body. Deterministic; not a model.

    score:      0-100 phishing likelihood (capped)
    confidence: 70 + 8 per indicator, capped at 99
    """

    def analyze(self, content: str) -> PhishingDetectionResult:
        indicators: List[str] = []
        score = 0
        lowered = content.lower()

        keyword_hits = [k for k in PHISHING_KEYWORDS if k in lowered]
        if keyword_hits:
            score += len(keyword_hits) * KEYWORD_WEIGHT
            indicators.append(f"Suspicious keywords detected: {', '.join(keyword_hits)}")

        urgent_hits = [p for p in URGENT_PHRASES if p in lowered]
        if urgent_hits:
            score += len(urgent_hits) * URGENT_WEIGHT
            indicators.append("Urgent language patterns detected")

        suspicious_links = count_suspicious_links(content)
        if suspicious_links:
            score += suspicious_links * LINK_WEIGHT
            indicators.append("Suspicious URL redirects found")

        if has_poor_grammar(content):
            score += GRAMMAR_WEIGHT
            indicators.append("Poor grammar or spelling detected")

        if any(p in lowered for p in FAKE_SENDER_PATTERNS):
            score += FAKE_SENDER_WEIGHT
            indicators.append("Suspicious sender domain detected")

        return PhishingDetectionResult(
            score=min(score, 100),
            confidence=min(70 + len(indicators) * 8, 99),
            suspicious_links=suspicious_links,
            indicators=indicators,
        )


def count_suspicious_links(content: str) -> int:
    lowered = content.lower()
    count = sum(1 for domain in SUSPICIOUS_DOMAINS if domain in lowered)
    count += len(URL_SHORTENER_RE.findall(content))
    return count


def has_poor_grammar(content: str) -> bool:
    issues = 0
    for sentence in SENTENCE_SPLIT_RE.split(content):
        if " i " in sentence and " I " not in sentence:
            issues += 1
        if MULTI_SPACE_RE.search(sentence):
            issues += 1
        if GLUED_WORDS_RE.search(sentence):
            issues += 1
    return issues > 2


phishing_detector = PhishingDetector()
