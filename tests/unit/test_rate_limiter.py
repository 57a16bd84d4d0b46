import pytest

from passcode_service.application.rate_limiter import RateGate, RateLimiter
from passcode_service.domain.errors import RateLimitExceeded, StoreUnavailable


@pytest.mark.asyncio
async def test_allows_exactly_max_then_denies(limiter):
    results = [await limiter.check_and_consume("user:u1", 3, 60) for _ in range(4)]
    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_denied_call_does_not_increment(limiter, store):
    for _ in range(5):
        await limiter.check_and_consume("user:u1", 3, 60)
    assert store.peek("rate_limit:user:u1") == "3"


@pytest.mark.asyncio
async def test_window_is_set_on_first_increment_only(limiter, store, clock):
    await limiter.check_and_consume("ip:1.2.3.4", 3, 60)
    clock.advance(20)
    await limiter.check_and_consume("ip:1.2.3.4", 3, 60)

    # fixed window: the second request did not push the expiry out
    assert store.ttl_of("rate_limit:ip:1.2.3.4") == 40
    assert [c for c in store.calls if c[0] == "expire_if_unset"] == [
        ("expire_if_unset", "rate_limit:ip:1.2.3.4")
    ]


@pytest.mark.asyncio
async def test_new_window_after_expiry(limiter, clock):
    for _ in range(3):
        assert await limiter.check_and_consume("user:u1", 3, 60)
    assert not await limiter.check_and_consume("user:u1", 3, 60)

    clock.advance(60)

    results = [await limiter.check_and_consume("user:u1", 3, 60) for _ in range(4)]
    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_keys_are_independent(limiter):
    for _ in range(3):
        await limiter.check_and_consume("user:a", 3, 60)
    assert not await limiter.check_and_consume("user:a", 3, 60)
    assert await limiter.check_and_consume("user:b", 3, 60)


@pytest.mark.asyncio
async def test_store_failure_propagates(errored_store):
    limiter = RateLimiter(errored_store)
    with pytest.raises(StoreUnavailable):
        await limiter.check_and_consume("ip:x", 3, 60)


@pytest.mark.asyncio
async def test_gate_uses_separate_ip_and_user_ceilings(gate):
    assert all([await gate.check_ip("10.0.0.1") for _ in range(10)])
    assert not await gate.check_ip("10.0.0.1")

    assert all([await gate.check_user("u1") for _ in range(3)])
    assert not await gate.check_user("u1")


@pytest.mark.asyncio
async def test_gate_enforce_reports_denied_scope(store):
    gate = RateGate(RateLimiter(store), per_ip=1, per_user=1, window_seconds=60)

    await gate.enforce(ip="10.0.0.1", owner_id="u1")

    with pytest.raises(RateLimitExceeded) as exc:
        await gate.enforce(ip="10.0.0.1", owner_id="u2")
    assert exc.value.scope == "ip"

    with pytest.raises(RateLimitExceeded) as exc:
        await gate.enforce(ip="10.0.0.2", owner_id="u1")
    assert exc.value.scope == "user"
    assert exc.value.limit_key == "user:u1"


@pytest.mark.asyncio
async def test_gate_enforce_without_identities_is_a_noop(gate, store):
    await gate.enforce()
    assert store.calls == []


@pytest.mark.asyncio
async def test_corrupt_counter_is_a_store_failure(limiter, store):
    await store.set("rate_limit:ip:x", "not-a-number", 60)

    with pytest.raises(StoreUnavailable):
        await limiter.check_and_consume("ip:x", 3, 60)
