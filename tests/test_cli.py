"""Tests for CLI commands."""

from unittest.mock import patch

import httpx
import pytest
import respx
from cryptography.fernet import Fernet
from rich.console import Console
from typer.testing import CliRunner

from n26_cli.api.exceptions import (
    AuthRejectedError,
    CorruptStoreError,
    MfaCancelledError,
    N26APIError,
    NotAuthenticatedError,
    RateLimitedError,
    TransportError,
)
from n26_cli.auth.credential_store import FileCredentialStore
from n26_cli.auth.session import Session
from n26_cli.cli.commands.auth import _format_time_remaining
from n26_cli.cli.errors import format_error, get_error_type
from n26_cli.config import load_config
from n26_cli.main import app

from conftest import TOKEN_URL, token_pair

runner = CliRunner()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temporary cache directory."""
    monkeypatch.setenv("N26_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("N26_DEVICE_BACKEND", "memory")
    return tmp_path / "cache"


class TestStatus:
    """Tests for the status command."""

    def test_not_logged_in(self, cli_env):
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "Not logged in" in result.output

    @patch("n26_cli.cli.commands.auth.has_stored_credentials", return_value=False)
    def test_logged_in(self, mock_has, cli_env):
        """Status reads the stored session file."""
        FileCredentialStore(cli_env / ".n26").save(
            Session.from_grant("access", "refresh", 3600, now=0)
        )

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "Logged in" in result.output
        assert "expired" in result.output

    def test_corrupt_session_file(self, cli_env):
        """An unreadable session file is reported, not a traceback."""
        cli_env.mkdir(parents=True, exist_ok=True)
        (cli_env / ".n26").write_text("garbage")

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "Traceback" not in result.output


class TestLogout:
    """Tests for the logout command."""

    def test_removes_session(self, cli_env):
        path = cli_env / ".n26"
        FileCredentialStore(path).save(Session.from_grant("access", "refresh", 3600, now=0))

        result = runner.invoke(app, ["logout"])

        assert result.exit_code == 0
        assert not path.exists()

    def test_nothing_to_remove(self, cli_env):
        result = runner.invoke(app, ["logout"])

        assert result.exit_code == 0
        assert "No stored session" in result.output


class TestRefreshCommand:
    """Tests for the refresh command."""

    @respx.mock
    def test_uses_stored_refresh_token(self, cli_env):
        """A stored session is renewed with one refresh exchange and no login."""
        FileCredentialStore(cli_env / ".n26").save(
            Session.from_grant("access-1", "refresh-1", 3600, now=0)
        )
        refresh = respx.post(TOKEN_URL, params__contains={"grant_type": "refresh_token"}).mock(
            return_value=httpx.Response(200, json=token_pair("access-2", "refresh-2"))
        )

        result = runner.invoke(app, ["refresh"])

        assert result.exit_code == 0, result.output
        assert refresh.call_count == 1
        assert refresh.calls.last.request.url.params["refresh_token"] == "refresh-1"
        assert FileCredentialStore(cli_env / ".n26").load().access_token == "access-2"

    @respx.mock
    def test_logs_in_once_without_stored_session(self, cli_env, monkeypatch):
        """With nothing stored the command performs a single login."""
        monkeypatch.setenv("N26_USERNAME", "user@example.com")
        monkeypatch.setenv("N26_PASSWORD", "secret")
        login = respx.post(TOKEN_URL, params__contains={"grant_type": "password"}).mock(
            return_value=httpx.Response(200, json=token_pair())
        )

        result = runner.invoke(app, ["refresh"])

        assert result.exit_code == 0, result.output
        assert login.call_count == 1
        assert FileCredentialStore(cli_env / ".n26").load().access_token == "access-1"


class TestKeygen:
    def test_prints_valid_key(self):
        result = runner.invoke(app, ["keygen"])

        assert result.exit_code == 0
        Fernet(result.output.strip().encode())


class TestConfigCommands:
    """Tests for the config sub-commands."""

    def test_set_value(self):
        result = runner.invoke(app, ["config", "set", "timeout", "60"])

        assert result.exit_code == 0
        assert load_config()["timeout"] == 60

    def test_set_bool(self):
        runner.invoke(app, ["config", "set", "store_connection", "no"])

        assert load_config()["store_connection"] is False

    def test_set_unknown_key(self):
        result = runner.invoke(app, ["config", "set", "password", "x"])

        assert result.exit_code == 1
        assert "Unknown setting" in result.output

    def test_set_invalid_choice(self):
        result = runner.invoke(app, ["config", "set", "store_backend", "cloud"])

        assert result.exit_code != 0
        assert "store_backend" not in load_config()


class TestFormatTimeRemaining:
    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (0, "less than a minute"),
            (1, "1 minute"),
            (45, "45 minutes"),
            (60, "1 h"),
            (135, "2 h 15 min"),
        ],
    )
    def test_format(self, minutes, expected):
        assert _format_time_remaining(minutes) == expected


class TestErrorTypes:
    """Tests for mapping exceptions to user-facing messages."""

    @pytest.mark.parametrize(
        "error,expected",
        [
            (MfaCancelledError(), "mfa_timeout"),
            (AuthRejectedError("invalid_grant"), "auth_rejected"),
            (NotAuthenticatedError(), "auth_required"),
            (RateLimitedError("slow down"), "rate_limit"),
            (CorruptStoreError("bad file"), "corrupt_store"),
            (TransportError("refused"), "network_error"),
            (N26APIError("gone", 404), "not_found"),
            (N26APIError("boom", 503), "server_error"),
            (N26APIError("odd", 418), "unknown"),
            (ValueError("other"), "unknown"),
        ],
    )
    def test_get_error_type(self, error, expected):
        assert get_error_type(error) == expected

    def test_rate_limit_panel_shows_wait(self):
        console = Console(record=True, width=120)

        format_error(RateLimitedError("slow down", retry_after=600), console)

        assert "Wait 600 seconds" in console.export_text()
