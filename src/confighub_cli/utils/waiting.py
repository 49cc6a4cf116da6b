# ABOUTME: Awaiting engine that blocks until server-side triggers and operations settle
# ABOUTME: Bounded exponential-backoff polling built on tenacity

"""
Trigger and operation awaiting.

After a mutation the server may keep working on the entity asynchronously:
triggers run validation and mutation functions, and queued operations
(apply, refresh, destroy, import) report progress through unit events.
Commands invoked with --wait block here until that work settles.

Both waits are the same loop with a different fetch and predicate, so they
share poll_until():

    check done(snapshot) -> sleep(delay) -> delay = min(2 * delay, ceiling)
    -> snapshot = fetch() -> check again ...

Fetch errors abort the wait at once. Only the predicate is retried.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
    wait_exponential,
)

from confighub_cli.utils.client import TERMINAL_STATUSES

if TYPE_CHECKING:
    from confighub_cli.utils.client import HubClient, QueuedOperation, Unit, UnitEvent

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[Any]]

AWAITING_TRIGGERS_GATE = "awaiting/triggers"


# =============================================================================
# ERRORS
# =============================================================================


class WaitError(Exception):
    """A wait did not observe the expected completion."""


class TriggersNotCompleted(WaitError):
    """Triggers were still pending on a unit when the poll budget ran out."""

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"triggers didn't execute on unit {slug}")


class OperationNotCompleted(WaitError):
    """A queued operation did not finish within the timeout."""

    def __init__(self, action: str, unit_id: str) -> None:
        self.action = action
        self.unit_id = unit_id
        super().__init__(f"{action} didn't complete on unit {unit_id}")


class OperationFailed(WaitError):
    """A queued operation finished with status Failed."""

    def __init__(self, action: str, unit_id: str) -> None:
        self.action = action
        self.unit_id = unit_id
        super().__init__(f"{action} failed on unit {unit_id}")


class PollBudgetExhausted(Exception):
    """
    Raised by poll_until when the budget runs out.

    Carries the last snapshot seen so callers can build a descriptive error.
    """

    def __init__(self, last: Any) -> None:
        self.last = last
        super().__init__("poll budget exhausted")


# =============================================================================
# POLICY
# =============================================================================


@dataclass(frozen=True)
class PollPolicy:
    """
    Backoff shape and budget of a wait.

    Delays start at initial_delay and double up to max_delay, without jitter.
    max_polls bounds the number of fetches; timeout bounds wall-clock time.
    Either, both, or neither may be set.
    """

    initial_delay: float
    max_delay: float
    max_polls: int | None = None
    timeout: float | None = None

    def wait(self) -> wait_exponential:
        return wait_exponential(multiplier=self.initial_delay, max=self.max_delay)

    def stop(self) -> Any:
        # The first attempt is the check of the initial snapshot, not a fetch.
        conditions = []
        if self.max_polls is not None:
            conditions.append(stop_after_attempt(self.max_polls + 1))
        if self.timeout is not None:
            conditions.append(stop_after_delay(self.timeout))
        if not conditions:
            return stop_never
        stop = conditions[0]
        for condition in conditions[1:]:
            stop = stop | condition
        return stop


# 25ms doubling to 250ms, at most 100 polls.
TRIGGER_POLICY = PollPolicy(initial_delay=0.025, max_delay=0.25, max_polls=100)

COMPLETION_INITIAL_DELAY = 0.2
COMPLETION_MAX_DELAY = COMPLETION_INITIAL_DELAY * 32


def completion_policy(timeout: float) -> PollPolicy:
    """Policy for queued operations: 200ms doubling to 6.4s, bounded by timeout."""
    return PollPolicy(
        initial_delay=COMPLETION_INITIAL_DELAY,
        max_delay=COMPLETION_MAX_DELAY,
        timeout=timeout,
    )


# =============================================================================
# GENERIC POLLER
# =============================================================================


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    done: Callable[[T], bool],
    *,
    initial: T,
    policy: PollPolicy,
    sleep: Sleep = asyncio.sleep,
    describe: str = "",
) -> T:
    """
    Poll until done(snapshot) holds or the policy's budget is exhausted.

    The initial snapshot is checked before any sleep, so an entity that has
    already settled returns immediately without fetching. Every later check
    is preceded by one sleep and one fetch.

    Args:
        fetch: Coroutine function returning a fresh snapshot
        done: Predicate telling whether a snapshot has settled
        initial: Snapshot the caller already holds
        policy: Backoff shape and budget
        sleep: Awaitable sleep, injectable for tests
        describe: Target description for log lines

    Returns:
        The first snapshot for which done() held.

    Raises:
        PollBudgetExhausted: If the budget ran out; carries the last snapshot.
        Exception: Whatever fetch() raised, unchanged.
    """
    checked_initial = False

    async def attempt() -> T:
        nonlocal checked_initial
        if not checked_initial:
            checked_initial = True
            return initial
        return await fetch()

    def log_pending(retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.debug(
            "poll_pending",
            target=describe,
            attempt=retry_state.attempt_number,
            delay=delay,
        )

    retrying = AsyncRetrying(
        sleep=sleep,
        retry=retry_if_result(lambda snapshot: not done(snapshot)),
        stop=policy.stop(),
        wait=policy.wait(),
        before_sleep=log_pending,
    )

    try:
        return await retrying(attempt)
    except RetryError as e:
        logger.warning(
            "poll_budget_exhausted",
            target=describe,
            attempts=e.last_attempt.attempt_number,
        )
        raise PollBudgetExhausted(e.last_attempt.result()) from None


# =============================================================================
# TRIGGER AWAITING
# =============================================================================


def triggers_settled(unit: Unit) -> bool:
    """True when no "awaiting/triggers" gate is present on the unit."""
    return unit.apply_gates is None or AWAITING_TRIGGERS_GATE not in unit.apply_gates


async def await_triggers_removal(
    client: HubClient,
    unit: Unit,
    *,
    sleep: Sleep = asyncio.sleep,
    policy: PollPolicy = TRIGGER_POLICY,
) -> Unit:
    """
    Block until the unit's pending triggers have run.

    The unit is re-fetched from its own space until ApplyGates no longer
    contains "awaiting/triggers". The caller's snapshot is not modified.

    Returns:
        The settled unit snapshot.

    Raises:
        TriggersNotCompleted: If the gate is still present after 100 polls.
        HubError: If a re-fetch fails.
    """
    space_id = unit.space_id
    unit_id = unit.unit_id

    async def fetch() -> Unit:
        return await client.get_unit(space_id, unit_id)

    try:
        return await poll_until(
            fetch,
            triggers_settled,
            initial=unit,
            policy=policy,
            sleep=sleep,
            describe=f"unit/{unit.slug}",
        )
    except PollBudgetExhausted:
        raise TriggersNotCompleted(unit.slug) from None


# =============================================================================
# QUEUED OPERATION AWAITING
# =============================================================================


@dataclass
class _OperationProgress:
    started: bool
    event: UnitEvent | None = None


async def await_completion(
    client: HubClient,
    action: str,
    operation: QueuedOperation | None,
    timeout: float,
    *,
    sleep: Sleep = asyncio.sleep,
) -> UnitEvent:
    """
    Block until a queued operation reaches a terminal status.

    Progress is tracked in two phases. Until the operation has posted at
    least one unit event it has not started. Once started, the unit's latest
    event is watched until it belongs to a different operation or action, or
    reaches Completed, Canceled or Failed. Afterwards the unit's triggers are
    awaited too.

    Args:
        client: Open HubClient
        action: Action name used in messages ("apply", "refresh", ...)
        operation: QueuedOperation returned by the action call
        timeout: Wall-clock budget in seconds
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The operation's terminal unit event.

    Raises:
        WaitError: If the action returned no operation, or no terminal event
                   was recorded for it.
        OperationNotCompleted: If the timeout elapsed first.
        OperationFailed: If the operation ended with status Failed.
        HubError: If any fetch fails.
    """
    if operation is None:
        raise WaitError(f"{action} returned no operation")

    space_id = operation.space_id
    unit_id = operation.unit_id
    where_operation = f"QueuedOperationID='{operation.queued_operation_id}'"
    progress = _OperationProgress(started=False)

    async def probe() -> _OperationProgress:
        nonlocal progress
        if not progress.started:
            events = await client.list_unit_events(space_id, unit_id, where=where_operation)
            if not events:
                return progress
            progress = _OperationProgress(started=True)
        extended = await client.get_extended_unit(space_id, unit_id)
        progress = _OperationProgress(started=True, event=extended.latest_unit_event)
        return progress

    def finished(snapshot: _OperationProgress) -> bool:
        event = snapshot.event
        if not snapshot.started or event is None:
            return False
        return (
            event.queued_operation_id != operation.queued_operation_id
            or event.action != operation.action
            or event.is_terminal
        )

    try:
        final = await poll_until(
            probe,
            finished,
            initial=await probe(),
            policy=completion_policy(timeout),
            sleep=sleep,
            describe=f"{action}/{unit_id}",
        )
    except PollBudgetExhausted:
        raise OperationNotCompleted(operation.action, unit_id) from None

    if final.event is not None and final.event.status == "Failed":
        raise OperationFailed(operation.action, unit_id)

    unit = await client.get_unit(space_id, unit_id)
    await await_triggers_removal(client, unit, sleep=sleep)

    for event in await client.list_unit_events(space_id, unit_id, where=where_operation):
        if event.status in TERMINAL_STATUSES:
            return event
    raise WaitError("no matching events found for completed operation")
