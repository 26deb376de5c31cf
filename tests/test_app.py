"""End-to-end tests for the CLI flow (cli/app.py).

The remote call is replaced at the ``_build_client`` seam with a fake
client; standard input is replaced with an in-memory stream.
"""

from __future__ import annotations

import io
import json
import sys
from typing import Any

import pytest

from cv_api4.cli import app as app_module
from cv_api4.cli import exit_codes
from cv_api4.cli.app import cli, main, split_entity_action
from cv_api4.exceptions import (
    CapabilityUnavailableError,
    ConfigurationError,
    ParseError,
    TransportError,
)


@pytest.fixture()
def use_client(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Install *client* as the remote-call capability."""

    def _install(client: Any) -> Any:
        monkeypatch.setattr(app_module, "_build_client", lambda settings: client)
        return client

    return _install


# ---------------------------------------------------------------------------
# Entity.action
# ---------------------------------------------------------------------------

class TestSplitEntityAction:
    def test_split(self) -> None:
        assert split_entity_action("Contact.get") == ("Contact", "get")

    @pytest.mark.parametrize("value", ["Contact", ".get", "Contact."])
    def test_malformed(self, value: str) -> None:
        with pytest.raises(ParseError, match="Entity.action"):
            split_entity_action(value)


# ---------------------------------------------------------------------------
# Inline arguments
# ---------------------------------------------------------------------------

class TestInlineArguments:
    def test_params_reach_client(self, use_client: Any, fake_client: Any) -> None:
        use_client(fake_client)
        code = main(["Contact.get", "+s", "id,name", "+w", "id > 0", "+l", "2", "--out", "none"])
        assert code == exit_codes.SUCCESS
        assert fake_client.calls == [
            (
                "Contact",
                "get",
                {
                    "version": 4,
                    "checkPermissions": False,
                    "select": ["id", "name"],
                    "where": ["id > 0"],
                    "limit": 2,
                },
            )
        ]

    def test_options_may_follow_parameters(
        self, use_client: Any, fake_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(fake_client)
        code = main(["Contact.get", "+s", "id", "--out", "csv", "limit=1"])
        assert code == exit_codes.SUCCESS
        assert fake_client.calls[0][2]["limit"] == 1
        assert capsys.readouterr().out == "id\n1\n2\n"

    def test_default_output_is_json_pretty(
        self, use_client: Any, fake_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(fake_client)
        assert main(["Contact.get"]) == exit_codes.SUCCESS
        rows = json.loads(capsys.readouterr().out)
        assert [row["name"] for row in rows] == ["Alice", "Bob"]

    def test_parse_error_before_call(self, use_client: Any, fake_client: Any) -> None:
        use_client(fake_client)
        with pytest.raises(ParseError, match=r"\+bogus"):
            main(["Contact.get", "+bogus", "x"])
        assert fake_client.calls == []

    def test_malformed_limit_before_call(self, use_client: Any, fake_client: Any) -> None:
        use_client(fake_client)
        with pytest.raises(ParseError, match="limit"):
            main(["Contact.get", "+limit", "ten"])
        assert fake_client.calls == []


# ---------------------------------------------------------------------------
# JSON input
# ---------------------------------------------------------------------------

class TestJsonInput:
    def test_stdin_object_merged_over_defaults(
        self, use_client: Any, fake_client: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_client(fake_client)
        monkeypatch.setattr(sys, "stdin", io.StringIO('{"limit":5}'))
        assert main(["Contact.get", "--in=json", "--out=none"]) == exit_codes.SUCCESS
        assert fake_client.calls[0][2] == {"version": 4, "checkPermissions": False, "limit": 5}

    def test_empty_stdin_uses_defaults(
        self, use_client: Any, fake_client: Any, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        use_client(fake_client)
        monkeypatch.setattr(sys, "stdin", io.StringIO(""))
        main(["Contact.get", "--in", "json", "--out", "none"])
        assert fake_client.calls[0][2] == {"version": 4, "checkPermissions": False}

    def test_unknown_input_format_makes_no_call(
        self, use_client: Any, fake_client: Any
    ) -> None:
        use_client(fake_client)
        with pytest.raises(ConfigurationError, match="Unknown input format"):
            main(["Contact.get", "--in", "yaml"])
        assert fake_client.calls == []


# ---------------------------------------------------------------------------
# Dry run / verbosity
# ---------------------------------------------------------------------------

class TestDryRun:
    def test_never_calls_and_exits_zero(
        self, use_client: Any, fake_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(fake_client)
        assert main(["Contact.get", "-N", "+w", "id = 5"]) == exit_codes.SUCCESS
        assert fake_client.calls == []
        out = capsys.readouterr().out
        assert "Entity: Contact" in out
        assert "Action: get" in out
        assert '"where"' in out

    def test_works_without_endpoint(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["Contact.create", "--dry-run", "+v", "first_name=Alice"]) == 0
        assert '"first_name": "Alice"' in capsys.readouterr().out

    def test_verbose_previews_then_calls(
        self, use_client: Any, fake_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(fake_client)
        assert main(["Contact.get", "-v", "--out", "list", "+s", "name"]) == 0
        out = capsys.readouterr().out
        assert "Entity: Contact" in out
        assert out.endswith("Alice\nBob\n")
        assert len(fake_client.calls) == 1


# ---------------------------------------------------------------------------
# Output routing
# ---------------------------------------------------------------------------

class TestOutputRouting:
    def test_select_string_defines_table_columns(
        self, use_client: Any, fake_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(fake_client)
        assert main(["Contact.get", "select=id,name", "--out", "csv"]) == 0
        assert capsys.readouterr().out == "id,name\n1,Alice\n2,Bob\n"

    def test_rich_table(
        self, use_client: Any, fake_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(fake_client)
        assert main(["Contact.get", "+s", "id,name", "--out", "table"]) == 0
        out = capsys.readouterr().out
        assert "Alice" in out
        assert "email" not in out

    def test_tabular_for_create_falls_back(
        self, use_client: Any, make_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(make_client(payload={"values": [{"id": 9, "first_name": "Alice"}]}))
        code = main(["Contact.create", "+v", "first_name=Alice", "--out", "table"])
        assert code == exit_codes.SUCCESS
        captured = capsys.readouterr()
        assert 'only works with tabular data' in captured.err
        assert json.loads(captured.out) == [{"id": 9, "first_name": "Alice"}]

    def test_tabular_for_empty_get_falls_back(
        self, use_client: Any, make_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(make_client(payload={"values": [], "count": 0}))
        assert main(["Contact.get", "--out", "csv"]) == exit_codes.SUCCESS
        captured = capsys.readouterr()
        assert "json-pretty" in captured.err
        assert json.loads(captured.out) == []

    def test_cv_output_environment_default(
        self,
        use_client: Any,
        fake_client: Any,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_client(fake_client)
        monkeypatch.setenv("CV_OUTPUT", "json-strict")
        main(["Contact.get", "+s", "id"])
        assert capsys.readouterr().out.count("\n") == 1

    def test_unknown_output_format(self, use_client: Any, fake_client: Any) -> None:
        use_client(fake_client)
        with pytest.raises(ConfigurationError, match="Unknown output format"):
            main(["Contact.get", "--out", "xml"])
        assert fake_client.calls == []


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_api_error_exits_one(
        self, use_client: Any, make_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_client(make_client(payload={"error_code": 0, "error_message": "Api Contact.frob does not exist."}))
        assert main(["Contact.frob"]) == exit_codes.API_ERROR
        assert "does not exist" in capsys.readouterr().out

    def test_null_error_message_exits_zero(
        self, use_client: Any, make_client: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        payload = {"is_error": 0, "error_message": None, "values": [{"id": 1}]}
        use_client(make_client(payload=payload))
        assert main(["Contact.get"]) == exit_codes.SUCCESS
        assert json.loads(capsys.readouterr().out) == [{"id": 1}]

    def test_missing_endpoint_is_capability_error(self) -> None:
        with pytest.raises(CapabilityUnavailableError):
            main(["Contact.get"])

    def test_transport_error_propagates(self, use_client: Any, make_client: Any) -> None:
        use_client(make_client(error=TransportError("connection refused")))
        with pytest.raises(TransportError, match="connection refused"):
            main(["Contact.get"])


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def _run_cli(self, monkeypatch: pytest.MonkeyPatch, *argv: str) -> int:
        monkeypatch.setattr(sys, "argv", ["cv-api4", *argv])
        with pytest.raises(SystemExit) as exc_info:
            cli()
        return int(exc_info.value.code or 0)

    def test_success(
        self, monkeypatch: pytest.MonkeyPatch, use_client: Any, fake_client: Any
    ) -> None:
        use_client(fake_client)
        assert self._run_cli(monkeypatch, "Contact.get", "--out", "none") == exit_codes.SUCCESS

    def test_api_error(
        self, monkeypatch: pytest.MonkeyPatch, use_client: Any, make_client: Any
    ) -> None:
        use_client(make_client(payload={"is_error": 1, "error_message": "nope"}))
        assert self._run_cli(monkeypatch, "Contact.get") == exit_codes.API_ERROR

    def test_known_error_prints_message_and_hint(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = self._run_cli(monkeypatch, "Contact.get", "+frob", "x")
        assert code == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "Error:" in err
        assert "+frob" in err
        assert "Hint:" in err

    def test_capability_error_is_fatal(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert self._run_cli(monkeypatch, "Contact.get") == exit_codes.GENERAL_ERROR
        assert "enable APIv4" in capsys.readouterr().err

    def test_unexpected_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def boom(argv: object = None) -> int:
            raise RuntimeError("kaput")

        monkeypatch.setattr(app_module, "main", boom)
        assert self._run_cli(monkeypatch) == exit_codes.UNEXPECTED_ERROR
        assert "kaput" in capsys.readouterr().err

    def test_keyboard_interrupt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def interrupted(argv: object = None) -> int:
            raise KeyboardInterrupt

        monkeypatch.setattr(app_module, "main", interrupted)
        assert self._run_cli(monkeypatch) == exit_codes.KEYBOARD_INTERRUPT
