"""GitHub webhook receiver.

``POST /github/events`` validates the delivery signature, answers ``ping``
deliveries and hands ``workflow_job`` events to the
:class:`~actions_job.dispatch.service.WorkflowJobController`. The dispatch
outcome decides the response status:

==========================  ======
outcome                     status
==========================  ======
created / updated           200
rejected (non-target)       202
rejected (security)         400
failed                      500
==========================  ======

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon

from actions_job.api.errors import InvalidWebhookError, UnsupportedEventError
from actions_job.dispatch.models import (
    Created,
    Failed,
    Rejected,
    RejectionKind,
    Updated,
)
from actions_job.events import InvalidEventPayloadError, decode_workflow_job_event
from actions_job.github.errors import WebhookSignatureError
from actions_job.github.webhook import (
    DELIVERY_HEADER,
    EVENT_HEADER,
    SIGNATURE_256_HEADER,
    SIGNATURE_HEADER,
    extract_payload,
    verify_signature,
)
from actions_job.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from actions_job.dispatch.models import DispatchOutcome
    from actions_job.dispatch.service import WorkflowJobController

__all__ = ["GitHubWebhookResource", "outcome_response"]

logger = get_logger(__name__)

PING_EVENT = "ping"
WORKFLOW_JOB_EVENT = "workflow_job"


def outcome_response(outcome: DispatchOutcome) -> tuple[HTTPStatus, dict[str, str]]:
    """Return the HTTP status and JSON body describing ``outcome``."""
    match outcome:
        case Created(identity=identity, execution=execution) | Updated(
            identity=identity, execution=execution
        ):
            return HTTPStatus.OK, {
                "outcome": outcome.kind,
                "job": str(identity),
                "execution": execution,
            }
        case Rejected(rejection=RejectionKind.SECURITY_VIOLATION, reason=reason):
            return HTTPStatus.BAD_REQUEST, {
                "outcome": outcome.kind,
                "rejection": RejectionKind.SECURITY_VIOLATION,
                "reason": reason,
            }
        case Rejected(rejection=rejection, reason=reason):
            return HTTPStatus.ACCEPTED, {
                "outcome": outcome.kind,
                "rejection": rejection,
                "reason": reason,
            }
        case Failed(cause=cause):
            return HTTPStatus.INTERNAL_SERVER_ERROR, {
                "outcome": outcome.kind,
                "error_kind": cause.kind,
                "stage": cause.stage,
                "reason": str(cause),
            }
    msg = f"unknown dispatch outcome: {outcome!r}"
    raise TypeError(msg)


class GitHubWebhookResource:
    """Receive GitHub webhook deliveries.

    Parameters
    ----------
    controller
        Dispatch transaction for ``workflow_job`` events.
    webhook_secret
        Shared secret used to verify delivery signatures.

    """

    def __init__(self, controller: WorkflowJobController, webhook_secret: str) -> None:
        """Store the controller and webhook secret."""
        self._controller = controller
        self._secret = webhook_secret

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /github/events deliveries.

        Raises
        ------
        InvalidWebhookError
            If the signature does not verify or the payload cannot be decoded.
        UnsupportedEventError
            If the delivery is neither ``ping`` nor ``workflow_job``.

        """
        body = await req.stream.read()
        signature_256 = req.get_header(SIGNATURE_256_HEADER)
        try:
            verify_signature(
                body,
                self._secret,
                signature_256=signature_256,
                signature=req.get_header(SIGNATURE_HEADER),
            )
        except WebhookSignatureError as exc:
            field = SIGNATURE_256_HEADER if signature_256 else SIGNATURE_HEADER
            raise InvalidWebhookError(str(exc), field=field) from exc

        event_type = req.get_header(EVENT_HEADER)
        delivery = req.get_header(DELIVERY_HEADER)
        if event_type == PING_EVENT:
            log_info(logger, "Handled ping delivery %s", delivery)
            resp.status = HTTPStatus.OK
            resp.content_type = falcon.MEDIA_TEXT
            resp.text = "pong"
            return
        if event_type != WORKFLOW_JOB_EVENT:
            raise UnsupportedEventError(event_type)

        try:
            event = decode_workflow_job_event(extract_payload(body, req.content_type))
        except InvalidEventPayloadError as exc:
            raise InvalidWebhookError(str(exc), field="payload") from exc

        log_info(
            logger,
            "Received workflow_job delivery %s action=%s repo_slug=%s",
            delivery,
            event.action,
            event.repository.full_name,
        )
        outcome = await self._controller.handle(event)
        resp.status, resp.media = outcome_response(outcome)
