import pytest

from wareauthen.authentication import Authentication

from servlet_helpers import FakeClock


@pytest.fixture
def clock(monkeypatch):
    clock = FakeClock(1500000000)
    monkeypatch.setattr(Authentication, 'clock', staticmethod(clock))
    return clock
