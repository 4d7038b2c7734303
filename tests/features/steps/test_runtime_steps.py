"""Scenarios for starting the dispatcher service from its environment."""

from __future__ import annotations

import typing as typ

import falcon.testing
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from actions_job.runtime import create_app


class LifecycleContext(typ.TypedDict, total=False):
    """State shared between lifecycle steps."""

    env: pytest.MonkeyPatch
    client: falcon.testing.TestClient
    exit_code: int | str | None


@scenario(
    "../runtime.feature",
    "Probes answer once the dispatcher is configured",
)
def test_probes_answer_when_configured() -> None:
    """Configured service exposes healthy probes."""


@scenario(
    "../runtime.feature",
    "Service refuses to start without a webhook secret",
)
def test_missing_secret_aborts_startup() -> None:
    """Missing webhook secret stops the service."""


@pytest.fixture
def lifecycle(clean_env: pytest.MonkeyPatch) -> LifecycleContext:
    """Start each scenario from an empty ``ACTIONS_JOB_*`` environment."""
    return {"env": clean_env}


@given("the dispatcher environment is complete")
def given_complete_environment(lifecycle: LifecycleContext) -> None:
    env = lifecycle["env"]
    env.setenv("ACTIONS_JOB_WEBHOOK_SECRET", "s3cr3t")
    env.setenv("ACTIONS_JOB_GITHUB_TOKEN", "ghs_example")
    env.setenv("ACTIONS_JOB_GCP_ACCESS_TOKEN", "ya29.example")


@given(parsers.parse("{name} is unset"))
def given_variable_unset(lifecycle: LifecycleContext, name: str) -> None:
    lifecycle["env"].delenv(name, raising=False)


@when("the service is started")
def when_service_started(lifecycle: LifecycleContext) -> None:
    """Build the app the way Granian's factory hook would."""
    try:
        lifecycle["client"] = falcon.testing.TestClient(create_app())
    except SystemExit as exc:
        lifecycle["exit_code"] = exc.code


@then(
    parsers.re(
        r'GET (?P<path>\S+) answers (?P<status>\d+) with status "(?P<body>\w+)"'
    )
)
def then_probe_answers(
    lifecycle: LifecycleContext, path: str, status: str, body: str
) -> None:
    result = lifecycle["client"].simulate_get(path)

    assert result.status_code == int(status), f"{path} answered {result.status}"
    assert result.json == {"status": body}


@then(parsers.parse("startup aborts with exit code {code:d}"))
def then_startup_aborts(lifecycle: LifecycleContext, code: int) -> None:
    assert "client" not in lifecycle, "service should not have started"
    assert lifecycle.get("exit_code") == code
