"""GitHub webhook receiver resource.

Usage
-----
Import the resource for route registration::

    from actions_job.api.webhook.resources import GitHubWebhookResource
"""
