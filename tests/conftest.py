"""Shared test fixtures for gatewayspec.

Provides reusable fixtures for loading document fixtures, building pass
configurations, isolating the environment, managing output state, and
running CLI commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from gatewayspec.models import (
    HTTPMethod,
    MethodOptions,
    PassContext,
    PoolAuthorizer,
    PoolName,
    RewriteConfig,
    RouteBinding,
)
from gatewayspec.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"

ACCOUNT_ID = "111122223333"
REGION = "us-east-1"


def lambda_arn(name: str) -> str:
    """Return a Lambda function ARN in the test account."""
    return f"arn:aws:lambda:{REGION}:{ACCOUNT_ID}:function:{name}"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test, the cached references go stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def widgets_yaml_text() -> str:
    """Raw text of the widgets YAML document."""
    return (FIXTURES_DIR / "widgets.yaml").read_text(encoding="utf-8")


@pytest.fixture
def widgets_json_text() -> str:
    """Raw text of the widgets JSON document."""
    return (FIXTURES_DIR / "widgets.json").read_text(encoding="utf-8")


@pytest.fixture
def widgets_raw(widgets_json_text: str) -> dict[str, Any]:
    """The widgets JSON document as a dict."""
    return json.loads(widgets_json_text)


@pytest.fixture
def bindings_raw() -> dict[str, Any]:
    """The bindings config fixture as a dict."""
    with open(FIXTURES_DIR / "bindings.json") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Pass configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def context() -> PassContext:
    """Pass context for the test account in us-east-1."""
    return PassContext(region=REGION, account_id=ACCOUNT_ID)


@pytest.fixture
def widgets_config(context: PassContext) -> RewriteConfig:
    """A configuration binding both /widgets operations and /health.

    ``GET /widgets`` uses the default pool ``app-users``, ``POST /widgets``
    has the ``admins`` pool of its own, ``GET /health`` is anonymous.
    """
    config = RewriteConfig(context=context, default_pool=PoolName(name="app-users"))
    config.register_function("/widgets", HTTPMethod.GET, lambda_arn("list-widgets"))
    config.register(
        RouteBinding(
            resource_path="/widgets",
            method=HTTPMethod.POST,
            integration_target=lambda_arn("create-widget"),
            authorizer=PoolAuthorizer(pool=PoolName(name="admins")),
            method_options=MethodOptions(authorization_scopes=["widgets/write"]),
        )
    )
    config.register_anonymous_function("/health", HTTPMethod.GET, lambda_arn("ping"))
    return config


# ---------------------------------------------------------------------------
# Environment isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate the environment to a temporary directory.

    Points XDG_DATA_HOME into tmp_path, clears every environment variable
    that feeds the pass context, and changes the working directory to
    tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "GATEWAYSPEC_REGION",
        "GATEWAYSPEC_ACCOUNT_ID",
        "GATEWAYSPEC_PARTITION",
        "AWS_REGION",
        "AWS_ACCOUNT_ID",
        "NO_COLOR",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN-format OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
