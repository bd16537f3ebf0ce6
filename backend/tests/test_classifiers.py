import asyncio
import random

import pytest

from cybershield.core.errors import InvalidInput
from cybershield.services.classifiers.deepfake_detector import DeepfakeDetector, is_supported_media
from cybershield.services.classifiers.phishing_detector import (
    PhishingDetector,
    count_suspicious_links,
    has_poor_grammar,
)

PHISHY = (
    "URGENT: verify your account now. Click here: http://bit.ly/abc. "
    "Immediate action required within 24 hours. Sender: security@fake-bank.com"
)
BENIGN = "Hi team, the quarterly report is attached. See you at the meeting on Monday."


class FixedRandom(random.Random):
    """random() and uniform() always return the given values."""

    def __init__(self, roll, draw):
        super().__init__(0)
        self.roll = roll
        self.draw = draw

    def random(self):
        return self.roll

    def uniform(self, a, b):
        return self.draw


# -------------------------------------------------------------------------
# Phishing
# -------------------------------------------------------------------------
def test_obvious_phishing_scores_high():
    result = PhishingDetector().analyze(PHISHY)

    assert result.score == 100
    assert result.suspicious_links == 3
    assert result.confidence == 99
    assert "Urgent language patterns detected" in result.indicators
    assert "Suspicious sender domain detected" in result.indicators


def test_benign_mail_scores_zero():
    result = PhishingDetector().analyze(BENIGN)

    assert result.score == 0
    assert result.confidence == 70
    assert result.indicators == []


def test_single_keyword():
    result = PhishingDetector().analyze("You are a winner")
    assert result.score == 15
    assert result.confidence == 78


def test_link_counting():
    assert count_suspicious_links("see tinyurl.com/x and bit.ly/y") == 4
    assert count_suspicious_links("https://example.org") == 0


def test_grammar_heuristic_needs_more_than_two_issues():
    assert has_poor_grammar("helloWorld.  spaced  out. then i said. fooBar") is True
    assert has_poor_grammar("Perfectly fine sentence. Another one.") is False


# -------------------------------------------------------------------------
# Deepfake
# -------------------------------------------------------------------------
@pytest.mark.parametrize(
    "file_type, supported",
    [("image/png", True), ("video/mp4", True), ("audio/mpeg", False), ("text/plain", False)],
)
def test_supported_media(file_type, supported):
    assert is_supported_media(file_type) is supported


def test_every_check_firing_flags_image_with_raised_confidence():
    detector = DeepfakeDetector(rng=FixedRandom(roll=0.0, draw=0.71))

    result = asyncio.run(detector.analyze(b"x", "portrait.jpg", "image/jpeg"))

    assert result.is_deepfake is True
    assert result.confidence == 0.85
    assert "Face swap artifacts detected" in result.anomalies
    assert "Pixel-level inconsistencies found" in result.anomalies


def test_clean_image():
    detector = DeepfakeDetector(rng=FixedRandom(roll=0.99, draw=0.8123))

    result = asyncio.run(detector.analyze(b"x", "holiday.png", "image/png"))

    assert result.is_deepfake is False
    assert result.confidence == 0.812
    assert result.anomalies == []


def test_suspicious_name_alone_is_not_enough():
    detector = DeepfakeDetector(rng=FixedRandom(roll=0.99, draw=0.8))

    result = asyncio.run(detector.analyze(b"x", "deepfake_clip.mp4", "video/mp4"))

    assert result.is_deepfake is False
    assert result.anomalies == ["Suspicious metadata patterns"]


def test_video_with_two_hits_is_deepfake():
    # 0.25 only passes the 30% face-swap check; the name supplies the second hit
    detector = DeepfakeDetector(rng=FixedRandom(roll=0.25, draw=0.76))

    result = asyncio.run(detector.analyze(b"x", "synthetic_ceo.mp4", "video/mp4"))

    assert result.is_deepfake is True
    assert result.confidence == 0.88
    assert result.anomalies == ["Face swap artifacts detected", "Suspicious metadata patterns"]


def test_unsupported_type_is_rejected():
    with pytest.raises(InvalidInput):
        asyncio.run(DeepfakeDetector().analyze(b"x", "song.mp3", "audio/mpeg"))
