"""Shared test fixtures for rpcspec.

Provides the JSON fixture document, helpers for building
:class:`httpx.MockTransport`-backed fetchers, config isolation and output
state management. Fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from rpcspec.client import SpecFetcher
from rpcspec.models import SpecDocument
from rpcspec.output import reset_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    Typer's CliRunner swaps sys.stdout/sys.stderr; a manager created during
    one test would keep references to closed streams.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def todo_raw() -> dict[str, Any]:
    """Raw todo API spec dict, as served by the spec endpoint."""
    with open(FIXTURES_DIR / "todo_api.json") as f:
        return json.load(f)


@pytest.fixture
def todo_spec(todo_raw: dict[str, Any]) -> SpecDocument:
    """The todo API spec as a validated document."""
    return SpecDocument.from_payload(todo_raw)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _json_handler(
    payload: Any, status_code: int = 200
) -> Callable[[httpx.Request], httpx.Response]:
    """Build a MockTransport handler that always answers with *payload*."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=status_code, json=payload)

    return _handler


@pytest.fixture
def respond_json() -> Callable[..., Callable[[httpx.Request], httpx.Response]]:
    """Return a builder for handlers that always answer with a JSON payload."""
    return _json_handler


@pytest.fixture
def make_fetcher() -> Callable[..., SpecFetcher]:
    """Factory for SpecFetchers backed by an httpx.MockTransport handler."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> SpecFetcher:
        return SpecFetcher(transport=httpx.MockTransport(handler), **kwargs)

    return _make


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_DATA_HOME into tmp_path, clears the
    RPCSPEC_* environment variables and changes the working directory to
    tmp_path so no project config is picked up.
    """
    monkeypatch.setattr("rpcspec.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ("RPCSPEC_SPEC_URL", "RPCSPEC_BASE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
