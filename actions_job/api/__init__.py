"""HTTP surface of the dispatcher.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application receiving GitHub webhook deliveries.

Usage
-----
Create and run the application::

    from actions_job.api import create_app

    app = create_app()              # probes only
    app = create_app(dependencies)  # probes and POST /github/events
"""

from actions_job.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
