import pytest

from passcode_service.application.passcode_service import PasscodeService
from passcode_service.application.rate_limiter import RateGate, RateLimiter
from tests.fakes import FakeClock, FakeErroredStore, FakeKeyValueStore


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return FakeKeyValueStore(clock)


@pytest.fixture()
def errored_store():
    return FakeErroredStore()


@pytest.fixture()
def service(store, clock):
    return PasscodeService(store, length=6, ttl_seconds=300, clock=clock)


@pytest.fixture()
def limiter(store):
    return RateLimiter(store)


@pytest.fixture()
def gate(limiter):
    return RateGate(limiter, per_ip=10, per_user=3, window_seconds=60)
