"""Shared fixtures for checkout client tests."""

from __future__ import annotations

import pytest

from checkout_client.announcer import RecordingAnnouncer
from checkout_client.session import CheckoutSession

from tests.helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def announcer():
    return RecordingAnnouncer()


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def session(clock, announcer, emitted):
    return CheckoutSession(announcer=announcer, emit_ignore=emitted.append, clock=clock)
