"""Tests for write-failure recovery policies."""

import asyncio

import pytest

from redis_failover.connection_state import RecoveryState
from redis_failover.connection_supervisor import ConnectionSupervisor
from redis_failover.endpoint_pool import Endpoint, EndpointPool
from redis_failover.exceptions import ConfigurationError
from redis_failover.failure_recovery import FailureRecoveryLoop, RetryState, SingleSweepRecovery
from tests.helpers.fakes import FakeConnectionFactory, IdentityRng


async def _connected(raw: str, factory: FakeConnectionFactory) -> ConnectionSupervisor:
    supervisor = ConnectionSupervisor(EndpointPool.build(raw, rng=IdentityRng()), factory)
    assert await supervisor.connect()
    return supervisor


async def _wait_until(predicate, attempts: int = 50) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.mark.asyncio
async def test_exhausts_after_max_retries_full_sweeps():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2,c:3", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=2, interval_seconds=0))
    factory.reachable = set()
    calls_before = len(factory.open_calls)

    assert not await recovery.handle_write_failure(supervisor.generation)

    # initial sweep plus exactly two backoff sweeps of three endpoints each
    assert len(factory.open_calls) - calls_before == 9
    assert recovery.state is RecoveryState.EXHAUSTED
    assert recovery.exhausted
    assert recovery.retry_state.attempts == 2
    assert supervisor.metrics.failed_sweeps == 3
    assert not supervisor.is_connected
    assert factory.live == 0


@pytest.mark.asyncio
async def test_exhausted_recovery_stops_issuing_connect_attempts():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=1, interval_seconds=0))
    factory.reachable = set()
    await recovery.handle_write_failure()
    calls = len(factory.open_calls)

    assert not await recovery.handle_write_failure()
    assert not await recovery.handle_write_failure()

    assert len(factory.open_calls) == calls
    assert recovery.last_error is not None
    assert recovery.last_error.attempts == 1


@pytest.mark.asyncio
async def test_zero_retries_gives_up_after_initial_sweep():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=0, interval_seconds=0))
    factory.reachable = set()

    assert not await recovery.handle_write_failure()

    assert factory.open_calls[1:] == ["a", "b"]
    assert recovery.exhausted


@pytest.mark.asyncio
async def test_recovery_rotates_to_next_endpoint_without_restarting():
    factory = FakeConnectionFactory(reachable=["c"])
    supervisor = await _connected("a:1,b:2,c:3", factory)
    assert supervisor.current_endpoint == Endpoint("c", 3)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=3, interval_seconds=0))

    factory.reachable = {"a"}
    assert await recovery.handle_write_failure(supervisor.generation)

    assert factory.open_calls == ["a", "b", "c", "c", "a"]
    assert supervisor.current_endpoint == Endpoint("a", 1)
    assert supervisor.pool.index == 0
    assert recovery.state is RecoveryState.IDLE


@pytest.mark.asyncio
async def test_recovery_leaves_exactly_one_live_handle():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2,c:3", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=2, interval_seconds=0))

    for _ in range(3):
        assert await recovery.handle_write_failure(supervisor.generation)

    assert factory.opened == 4
    assert factory.closed == 3
    assert factory.live == 1
    assert supervisor.is_connected
    assert all(handle.closed for handle in factory.handles[:-1])


@pytest.mark.asyncio
async def test_successful_recovery_restores_retry_budget():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2,c:3", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=2, interval_seconds=0))
    # first sweep fails entirely, the second succeeds on its second endpoint
    factory.fail_next = 4

    assert await recovery.handle_write_failure(supervisor.generation)

    assert recovery.retry_state.attempts == 0
    assert recovery.state is RecoveryState.IDLE

    factory.fail_next = 6
    assert await recovery.handle_write_failure(supervisor.generation)
    assert not recovery.exhausted


@pytest.mark.asyncio
async def test_concurrent_failures_recover_once():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2,c:3", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=2, interval_seconds=0))
    failed_generation = supervisor.generation

    results = await asyncio.gather(
        recovery.handle_write_failure(failed_generation),
        recovery.handle_write_failure(failed_generation),
        recovery.handle_write_failure(failed_generation),
    )

    assert all(results)
    assert factory.opened == 2
    assert factory.closed == 1
    assert factory.live == 1


@pytest.mark.asyncio
async def test_close_interrupts_backoff_and_exhausts():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=5, interval_seconds=30))
    factory.reachable = set()

    task = asyncio.create_task(recovery.handle_write_failure(supervisor.generation))
    await _wait_until(lambda: recovery.retry_state.attempts == 1)
    recovery.close()

    assert await asyncio.wait_for(task, timeout=1) is False
    assert recovery.exhausted
    assert not supervisor.lock.locked()
    assert not supervisor.is_connected


@pytest.mark.asyncio
async def test_cancellation_during_backoff_releases_lock():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=5, interval_seconds=30))
    factory.reachable = set()

    task = asyncio.create_task(recovery.handle_write_failure())
    await _wait_until(lambda: recovery.retry_state.attempts == 1)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert recovery.exhausted
    assert not supervisor.lock.locked()
    assert factory.live == 0


@pytest.mark.asyncio
async def test_backoff_holds_lock_against_other_writers():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=5, interval_seconds=30))
    factory.reachable = set()

    task = asyncio.create_task(recovery.handle_write_failure())
    await _wait_until(lambda: recovery.retry_state.attempts == 1)

    assert supervisor.lock.locked()
    assert recovery.state is RecoveryState.RECOVERING

    recovery.close()
    await task


@pytest.mark.asyncio
async def test_reset_restores_recovery_after_exhaustion():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2", factory)
    recovery = FailureRecoveryLoop(supervisor, RetryState(max_attempts=1, interval_seconds=0))
    factory.reachable = set()
    await recovery.handle_write_failure()
    assert recovery.exhausted

    recovery.reset()
    factory.reachable = None

    assert recovery.state is RecoveryState.IDLE
    assert await recovery.handle_write_failure()
    assert supervisor.is_connected
    assert recovery.get_status()["last_error"] is None


def test_retry_state_rejects_negative_values():
    with pytest.raises(ConfigurationError):
        RetryState(max_attempts=-1)
    with pytest.raises(ConfigurationError):
        RetryState(interval_seconds=-5)


@pytest.mark.asyncio
async def test_single_sweep_recovery_tries_pool_once_and_never_exhausts():
    factory = FakeConnectionFactory()
    supervisor = await _connected("a:1,b:2,c:3", factory)
    recovery = SingleSweepRecovery(supervisor)
    factory.reachable = set()

    assert not await recovery.handle_write_failure()
    assert len(factory.open_calls) == 1 + 3
    assert not recovery.exhausted

    factory.reachable = {"b"}
    assert await recovery.handle_write_failure()
    assert supervisor.current_endpoint == Endpoint("b", 2)
    assert recovery.state is RecoveryState.IDLE


@pytest.mark.asyncio
async def test_single_sweep_recovery_refuses_after_close(factory):
    supervisor = await _connected("a:1", factory)
    recovery = SingleSweepRecovery(supervisor)
    recovery.close()

    assert not await recovery.handle_write_failure()
    assert supervisor.is_connected
