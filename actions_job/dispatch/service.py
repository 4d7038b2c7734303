"""The dispatch transaction for one ``workflow_job`` event."""

from __future__ import annotations

import asyncio
import typing as typ

from actions_job.common.time import monotonic
from actions_job.github.errors import GitHubAPIError, GitHubContentError

from .errors import (
    DispatchError,
    DispatchStage,
    RemoteStateError,
    SecurityViolation,
    UpstreamFetchError,
)
from .gate import admit
from .labels import extract_labeled_options, validate_labeled_options
from .manifest import TransformContext, transform_manifest
from .models import (
    Created,
    DispatchOutcome,
    DispatchProgress,
    Failed,
    ReconcileAction,
    Rejected,
    RejectionKind,
    Updated,
)
from .observability import DispatchEventLogger

if typ.TYPE_CHECKING:
    from actions_job.common.time import Clock
    from actions_job.events import WorkflowJobEvent

    from .dispatcher import JobDispatcher
    from .labels import LabeledOptions
    from .protocol import ManifestFetcher
    from .targets import TargetResolver

DEFAULT_DISPATCH_TIMEOUT_S = 10.0

_FETCH_ERRORS = (GitHubAPIError, GitHubContentError)


class WorkflowJobController:
    """Turn a ``workflow_job`` event into a :data:`DispatchOutcome`.

    The stages run in order (gate, labels and target, fetch, transform,
    dispatch) under one overall deadline. Every
    :class:`DispatchError` becomes an outcome, so ``handle`` only raises for
    programming errors and task cancellation.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        fetcher: ManifestFetcher,
        dispatcher: JobDispatcher,
        resolver: TargetResolver,
        dispatch_timeout_s: float = DEFAULT_DISPATCH_TIMEOUT_S,
        event_logger: DispatchEventLogger | None = None,
        clock: Clock = monotonic,
    ) -> None:
        """Store collaborators and the overall deadline."""
        self._fetcher = fetcher
        self._dispatcher = dispatcher
        self._resolver = resolver
        self._dispatch_timeout_s = dispatch_timeout_s
        self._events = event_logger or DispatchEventLogger()
        self._clock = clock

    async def handle(self, event: WorkflowJobEvent) -> DispatchOutcome:
        """Process ``event`` and return its outcome."""
        progress = DispatchProgress()
        started = self._clock()
        try:
            async with asyncio.timeout(self._dispatch_timeout_s):
                return await self._process(event, progress)
        except TimeoutError as exc:
            error = RemoteStateError.deadline_exceeded(
                progress.stage, progress.identity, self._dispatch_timeout_s
            )
            error.__cause__ = exc
            return self._failed(event, error, started)
        except DispatchError as exc:
            if exc.is_rejection:
                self._events.log_rejected(event, exc)
                kind = (
                    RejectionKind.SECURITY_VIOLATION
                    if isinstance(exc, SecurityViolation)
                    else RejectionKind.NON_TARGET
                )
                return Rejected(rejection=kind, reason=str(exc))
            return self._failed(event, exc, started)

    async def _process(
        self, event: WorkflowJobEvent, progress: DispatchProgress
    ) -> DispatchOutcome:
        admit(event)

        progress.enter(DispatchStage.LABELS)
        options = validate_labeled_options(extract_labeled_options(event.labels))
        target = await self._resolver.resolve(options)

        progress.enter(DispatchStage.FETCH)
        raw_text = await self._fetch(event, options)

        progress.enter(DispatchStage.TRANSFORM)
        transformed = transform_manifest(
            raw_text,
            TransformContext(
                owner=event.repository.owner,
                repo=event.repository.name,
                labels=event.labels,
            ),
        )

        identity = target.identity_for(transformed.job_name)
        result = await self._dispatcher.dispatch(
            identity, transformed.job, progress=progress
        )
        if result.action is ReconcileAction.CREATED:
            return Created(identity=identity, execution=result.execution)
        return Updated(identity=identity, execution=result.execution)

    async def _fetch(self, event: WorkflowJobEvent, options: LabeledOptions) -> str:
        repository = event.repository
        try:
            return await self._fetcher.fetch(
                repository.owner,
                repository.name,
                options.job_manifest,
                event.head_sha,
            )
        except _FETCH_ERRORS as exc:
            location = f"{repository.full_name}:{options.job_manifest}"
            raise UpstreamFetchError.from_exception(
                location, event.head_sha, exc
            ) from exc

    def _failed(
        self, event: WorkflowJobEvent, error: DispatchError, started: float
    ) -> Failed:
        self._events.log_failed(event, error, duration_s=self._clock() - started)
        return Failed(cause=error)
