"""Liveness and readiness probes for the Cloud Run service.

Usage
-----
Import health resources for route registration::

    from actions_job.api.health.resources import HealthResource, ReadyResource
"""
