# backend/cybershield/api/deps.py
"""
FastAPI dependencies. Routes never import the service singletons directly,
so tests can swap them with `app.dependency_overrides`.
"""
from cybershield.services.correlation.correlation_engine import Correlator, correlator
from cybershield.services.notifications.notifier import Notifier, notifier


def get_correlator() -> Correlator:
    return correlator


def get_notifier() -> Notifier:
    return notifier
