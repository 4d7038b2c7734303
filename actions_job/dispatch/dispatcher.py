"""Create-or-replace, await-ready and start a remote job.

One call to :meth:`JobDispatcher.dispatch` drives the job through::

    probe -> absent  -> create  -+
          -> present -> replace -+-> await ready -> start -> started

Any stage error ends the dispatch in ``failed``. A missing job during
``replace`` or a conflicting ``create`` fails rather than switching branch,
and no remote error is ever discarded.
"""

from __future__ import annotations

import asyncio
import typing as typ

from actions_job.cloudrun.errors import CloudRunAPIError, JobNotFoundError
from actions_job.common.time import monotonic

from .errors import DispatchStage, ReadinessTimeout, RemoteStateError
from .models import DispatchProgress, DispatchResult, DispatchState, ReconcileAction
from .observability import DispatchEventLogger

if typ.TYPE_CHECKING:
    from actions_job.cloudrun.models import Job, JobResource
    from actions_job.common.time import Clock, Sleeper

    from .models import JobIdentity
    from .protocol import JobStore

DEFAULT_READY_TIMEOUT_S = 5.0
DEFAULT_INITIAL_BACKOFF_S = 0.01


class JobDispatcher:
    """Drive a job resource from probe to a started execution.

    Parameters
    ----------
    job_store
        Remote job operations.
    ready_timeout_s
        Overall deadline for the job to report ``Ready``.
    initial_backoff_s
        First wait between readiness polls; doubled after every poll.
    clock, sleep
        Monotonic clock and async sleep, injectable for tests.
    event_logger
        Structured event sink.

    """

    def __init__(  # noqa: PLR0913
        self,
        job_store: JobStore,
        *,
        ready_timeout_s: float = DEFAULT_READY_TIMEOUT_S,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_S,
        clock: Clock = monotonic,
        sleep: Sleeper = asyncio.sleep,
        event_logger: DispatchEventLogger | None = None,
    ) -> None:
        """Store collaborators and polling settings."""
        self._store = job_store
        self._ready_timeout_s = ready_timeout_s
        self._initial_backoff_s = initial_backoff_s
        self._clock = clock
        self._sleep = sleep
        self._events = event_logger or DispatchEventLogger()

    async def dispatch(
        self,
        identity: JobIdentity,
        job: Job,
        *,
        progress: DispatchProgress | None = None,
    ) -> DispatchResult:
        """Run the state machine for ``job`` and return the started execution.

        ``job`` is sent as-is to exactly one of create or replace and is not
        modified.

        Raises
        ------
        RemoteStateError
            If any platform call fails, tagged with the failing stage.
        ReadinessTimeout
            If the job does not become Ready before the readiness deadline.

        """
        progress = progress or DispatchProgress()
        state = await self.probe(identity, progress)
        action = await self.reconcile(identity, job, state, progress)
        polls = await self.await_ready(identity, progress)
        execution = await self.start(identity, progress)
        return DispatchResult(
            identity=identity,
            action=action,
            execution=execution,
            ready_polls=polls,
        )

    async def probe(
        self, identity: JobIdentity, progress: DispatchProgress
    ) -> DispatchState:
        """Return whether the job is ``absent`` or ``present``."""
        progress.enter(DispatchStage.PROBE, identity)
        try:
            await self._store.get_job(identity)
        except JobNotFoundError:
            progress.state = DispatchState.ABSENT
        except CloudRunAPIError as exc:
            raise self._failed(DispatchStage.PROBE, identity, exc, progress) from exc
        else:
            progress.state = DispatchState.PRESENT
        return progress.state

    async def reconcile(
        self,
        identity: JobIdentity,
        job: Job,
        state: DispatchState,
        progress: DispatchProgress,
    ) -> ReconcileAction:
        """Create an absent job or replace a present one."""
        progress.enter(DispatchStage.RECONCILE, identity)
        try:
            if state is DispatchState.ABSENT:
                await self._store.create_job(identity, job)
                action = ReconcileAction.CREATED
            else:
                await self._store.replace_job(identity, job)
                action = ReconcileAction.UPDATED
        except CloudRunAPIError as exc:
            raise self._failed(
                DispatchStage.RECONCILE, identity, exc, progress
            ) from exc
        self._events.log_job_reconciled(identity, action)
        return action

    async def await_ready(
        self, identity: JobIdentity, progress: DispatchProgress
    ) -> int:
        """Poll the job until it reports Ready and return the number of polls.

        Waits start at the initial backoff and double after each not-ready
        observation. A wait never extends past the deadline, and the deadline
        also cancels a poll that is still in flight when it expires.
        """
        progress.enter(DispatchStage.AWAIT_READY, identity)
        started = self._clock()
        deadline = started + self._ready_timeout_s
        wait = self._initial_backoff_s
        polls = 0
        try:
            async with asyncio.timeout(self._ready_timeout_s):
                while True:
                    resource = await self._poll(identity, progress)
                    polls += 1
                    if resource.is_ready:
                        break
                    remaining = deadline - self._clock()
                    if remaining <= 0:
                        raise self._not_ready(identity, polls, progress)
                    await self._sleep(min(wait, remaining))
                    wait *= 2
        except TimeoutError as exc:
            raise self._not_ready(identity, polls, progress) from exc

        progress.state = DispatchState.READY
        self._events.log_job_ready(
            identity, polls=polls, waited_s=self._clock() - started
        )
        return polls

    async def start(self, identity: JobIdentity, progress: DispatchProgress) -> str:
        """Request a new execution and return its handle."""
        progress.enter(DispatchStage.START, identity)
        try:
            execution = await self._store.run_job(identity)
        except CloudRunAPIError as exc:
            raise self._failed(DispatchStage.START, identity, exc, progress) from exc
        progress.state = DispatchState.STARTED
        self._events.log_job_started(identity, execution=execution.handle)
        return execution.handle

    async def _poll(
        self, identity: JobIdentity, progress: DispatchProgress
    ) -> JobResource:
        try:
            return await self._store.get_job(identity)
        except CloudRunAPIError as exc:
            raise self._failed(
                DispatchStage.AWAIT_READY, identity, exc, progress
            ) from exc

    @staticmethod
    def _failed(
        stage: DispatchStage,
        identity: JobIdentity,
        exc: CloudRunAPIError,
        progress: DispatchProgress,
    ) -> RemoteStateError:
        progress.state = DispatchState.FAILED
        return RemoteStateError.stage_failed(stage, identity, exc)

    def _not_ready(
        self, identity: JobIdentity, polls: int, progress: DispatchProgress
    ) -> ReadinessTimeout:
        progress.state = DispatchState.FAILED
        return ReadinessTimeout.after(identity, self._ready_timeout_s, polls)
