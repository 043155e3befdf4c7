"""Shared fixtures for the quotagate test suite."""

import pytest

import quotagate.limiter.factory as factory_mod
import quotagate.providers.registry as registry_mod
from quotagate.config.settings import get_settings
from quotagate.limiter.clock import ManualClock
from quotagate.limiter.controller import AdmissionController
from quotagate.limiter.store import MemoryWindowStore


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=0.0)


@pytest.fixture
def store() -> MemoryWindowStore:
    return MemoryWindowStore()


@pytest.fixture
def controller(store, clock) -> AdmissionController:
    """Controller over a fresh in-memory store and a manual clock at t=0."""
    return AdmissionController(store=store, clock=clock)


@pytest.fixture
def reset_singletons(monkeypatch):
    """Drop the limiter and provider singletons so each test builds its own."""
    for name in ("_store", "_controller", "_sweeper"):
        monkeypatch.setattr(factory_mod, name, None)
    monkeypatch.setattr(registry_mod, "_provider", None)
    yield
    for name in ("_store", "_controller", "_sweeper"):
        monkeypatch.setattr(factory_mod, name, None)
    monkeypatch.setattr(registry_mod, "_provider", None)


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings cache.

    Usage:
        override_settings(RATE_LIMIT="3", RATE_LIMIT_FAILURE_MODE="closed")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        # Clear lru_cache so Settings re-reads env
        get_settings.cache_clear()

    yield _override

    # Always clear cache on teardown so other tests get fresh settings
    get_settings.cache_clear()
