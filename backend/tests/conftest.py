import pytest
from fastapi.testclient import TestClient

from cybershield.api.deps import get_correlator, get_notifier
from cybershield.main import app
from cybershield.services.classifiers.phishing_detector import PhishingDetector
from cybershield.services.correlation.correlation_engine import Correlator
from cybershield.services.events.event_store_service import EventStore
from cybershield.services.notifications.notifier import Notifier

from fakes import (
    FixedMediaClassifier,
    FixedPhishingClassifier,
    RecordingSink,
    StubEmailSender,
    StubGeolocator,
    geo,
)


@pytest.fixture()
def store():
    return EventStore()


@pytest.fixture()
def sink():
    return RecordingSink()


@pytest.fixture()
def phishing_classifier():
    return FixedPhishingClassifier(score=0)


@pytest.fixture()
def media_classifier():
    return FixedMediaClassifier()


@pytest.fixture()
def geolocator():
    return StubGeolocator({"203.0.113.7": geo("203.0.113.7")})


@pytest.fixture()
def email_sender():
    return StubEmailSender()


@pytest.fixture()
def correlator(store, sink, phishing_classifier, media_classifier, geolocator, email_sender):
    return Correlator(
        store=store,
        sinks=[sink],
        phishing_classifier=phishing_classifier,
        media_classifier=media_classifier,
        geolocator=geolocator,
        email_sender=email_sender,
        email_timeout=1.0,
    )


@pytest.fixture()
def live():
    return Notifier(max_queue_size=50)


@pytest.fixture()
def api(live, geolocator, email_sender):
    """
    TestClient wired to a fresh store/notifier. Used without `with`, so the
    startup hooks (honeypot simulator, stats publisher) never run.
    """
    correlator = Correlator(
        store=EventStore(),
        sinks=[live],
        phishing_classifier=PhishingDetector(),
        media_classifier=FixedMediaClassifier(is_deepfake=True, confidence=0.97),
        geolocator=geolocator,
        email_sender=email_sender,
        email_timeout=1.0,
    )
    app.dependency_overrides[get_correlator] = lambda: correlator
    app.dependency_overrides[get_notifier] = lambda: live
    try:
        yield TestClient(app), correlator
    finally:
        app.dependency_overrides.clear()
