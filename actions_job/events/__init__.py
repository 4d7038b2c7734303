"""Inbound webhook event models."""

from __future__ import annotations

from .models import (
    QUEUED_ACTION,
    EventRepository,
    InvalidEventPayloadError,
    WorkflowJob,
    WorkflowJobEvent,
    decode_workflow_job_event,
)

__all__ = [
    "QUEUED_ACTION",
    "EventRepository",
    "InvalidEventPayloadError",
    "WorkflowJob",
    "WorkflowJobEvent",
    "decode_workflow_job_event",
]
