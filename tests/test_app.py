"""CLI tests for rpcspec.app using Typer's CliRunner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from rpcspec import __version__
from rpcspec.app import app
from rpcspec.client import SpecFetcher


SPEC_URL = "http://rpc.example.com/spec.json"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def serve(isolated_config: Path, monkeypatch: pytest.MonkeyPatch):
    """Serve a payload (or status) to every fetcher the CLI creates."""
    requested: list[str] = []

    def _serve(payload: Any, status_code: int = 200) -> list[str]:
        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(status_code=status_code, json=payload)

        def make_fetcher(config) -> SpecFetcher:
            return SpecFetcher(
                config.request,
                base_url=config.base_url,
                transport=httpx.MockTransport(handler),
            )

        monkeypatch.setattr("rpcspec.app._make_fetcher", make_fetcher)
        return requested

    return _serve


def _invoke(runner: CliRunner, *args: str):
    return runner.invoke(app, ["--spec", SPEC_URL, "--no-color", *args])


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestMethods:
    def test_plain_table(self, runner: CliRunner, serve, todo_raw) -> None:
        requested = serve(todo_raw)
        result = _invoke(runner, "--plain", "methods")
        assert result.exit_code == 0, result.output
        assert requested == [SPEC_URL]
        assert "Method\tParams\tResult" in result.output
        assert "todo.list\texample/todo.ListParams\t[]*example/todo.Todo" in result.output

    def test_json_table(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--json", "methods")
        assert result.exit_code == 0, result.output
        rows = json.loads(result.output)
        assert rows[0] == {
            "Method": "todo.create",
            "Params": "*example/todo.CreateParams",
            "Result": "*example/todo.Todo",
        }

    def test_empty_spec(self, runner: CliRunner, serve) -> None:
        serve({})
        result = _invoke(runner, "--plain", "methods")
        assert result.exit_code == 0
        assert "No methods defined" in result.output

    def test_null_and_object_params(self, runner: CliRunner, serve) -> None:
        serve(
            {
                "methods": [
                    {"name": "Ping", "params": None, "result": "string"},
                    {"name": "Create", "params": {"type": "object"}},
                ]
            }
        )
        result = _invoke(runner, "--plain", "methods")
        assert result.exit_code == 0, result.output
        assert "Ping\t-\tstring" in result.output
        assert 'Create\t{"type": "object"}\t-' in result.output

    def test_fetch_error_exit_code(self, runner: CliRunner, serve) -> None:
        serve({"error": "missing"}, status_code=404)
        result = _invoke(runner, "methods")
        assert result.exit_code == 6
        assert "Failed to fetch spec: Not Found" in result.output

    def test_base_url_and_env(self, runner: CliRunner, serve, todo_raw, monkeypatch) -> None:
        requested = serve(todo_raw)
        monkeypatch.setenv("RPCSPEC_SPEC_URL", "/api/spec.json")
        result = runner.invoke(
            app, ["--base-url", "http://localhost:8080", "--plain", "methods"]
        )
        assert result.exit_code == 0, result.output
        assert requested == ["http://localhost:8080/api/spec.json"]


class TestTypes:
    def test_lists_sorted_with_wrapping(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--plain", "types")
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "Type\tPackage\tKind\tFields"
        assert "example/todo.IDs\texample/todo\t[]slice\t0" in lines
        assert "example/todo.Todo\texample/todo\tstruct\t3" in lines


class TestResolve:
    def test_descriptor_json(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--json", "resolve", "[]*example/todo.Todo")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["name"] == "example/todo.Todo"
        assert data["kind"] == "struct"
        assert data["arrayDepth"] == 1
        assert data["isPointer"] is True
        assert data["fields"] == ["id", "title", "done"]

    def test_alias_flag_merge(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--json", "resolve", "example/todo.IDs")
        data = json.loads(result.output)
        assert data["isArray"] is True
        assert data["arrayDepth"] == 0

    def test_unknown_type_warns(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--plain", "resolve", "*Missing")
        assert result.exit_code == 0
        assert "Warning: Type 'Missing' is not defined" in result.output
        assert "kind\tunknown" in result.output

    def test_tree(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--plain", "resolve", "--tree", "example/todo.Node")
        assert result.exit_code == 0, result.output
        assert "  children: []example/todo.Node (struct) ..." in result.output
        assert "    id: int64 (int64)" in result.output

    def test_empty_name(self, runner: CliRunner, serve, todo_raw) -> None:
        requested = serve(todo_raw)
        result = _invoke(runner, "resolve", "")
        assert result.exit_code == 2
        assert requested == []


class TestShow:
    def test_expands_params_and_result(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "--plain", "show", "todo.create")
        assert result.exit_code == 0, result.output
        assert "Params:" in result.output
        assert "*example/todo.CreateParams (struct)" in result.output
        assert "  due: *example/types.Time (string)" in result.output
        assert "*example/todo.Todo (struct)" in result.output

    def test_object_params_printed_as_data(self, runner: CliRunner, serve) -> None:
        serve({"methods": [{"name": "Create", "params": {"type": "object"}, "result": "bool"}]})
        result = _invoke(runner, "--plain", "show", "Create")
        assert result.exit_code == 0, result.output
        assert "type\tobject" in result.output
        assert "bool (bool)" in result.output

    def test_unknown_method(self, runner: CliRunner, serve, todo_raw) -> None:
        serve(todo_raw)
        result = _invoke(runner, "show", "todo.delete")
        assert result.exit_code == 2
        assert "Unknown method: todo.delete" in result.output
