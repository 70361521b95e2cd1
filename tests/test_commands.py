from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from autoinvite.bot.supervisor import AccountReport
from autoinvite.cli.commands import app

runner = CliRunner()
wide_console = Console(width=200)

CONFIG = """\
message: "hello"
target_user: "@owner:example.org"
state_dir: "{state}"
log_file: ""
servers:
  - address: "https://matrix.example.org"
    mxid: "@bot:example.org"
    access_token: "syt_abc"
  - address: "https://matrix.other.net"
    mxid: "@helper:other.net"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG.format(state=tmp_path / "state"))
    return path


def test_run_with_missing_config_exits_1(tmp_path: Path) -> None:
    result = runner.invoke(app, ["run", "-c", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.stdout


def test_run_with_invalid_config_exits_1(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("message: hi\n")

    result = runner.invoke(app, ["run", "-c", str(path)])

    assert result.exit_code == 1


def test_run_prints_account_reports(config_file: Path) -> None:
    reports = [
        AccountReport("@bot:example.org", "failed", batches=3, reason="sync failed"),
        AccountReport("@helper:other.net", "skipped", reason="no credentials"),
    ]
    with patch("autoinvite.utils.logging.setup_logging") as mock_logging, \
         patch("autoinvite.cli.commands.console", wide_console), \
         patch("autoinvite.bot.supervisor.AccountSupervisor.run", AsyncMock(return_value=reports)):
        result = runner.invoke(app, ["run", "-c", str(config_file), "-vv"])

    assert result.exit_code == 0
    mock_logging.assert_called_once_with(2, None)
    assert "Starting autoinvite with 2 account(s)" in result.stdout
    assert "@bot:example.org" in result.stdout
    assert "skipped" in result.stdout


def test_accounts_shows_saved_state(config_file: Path, tmp_path: Path) -> None:
    account_dir = tmp_path / "state" / "matrix.example.org" / "bot"
    account_dir.mkdir(parents=True)
    (account_dir / "control_room").write_text("!ctl:example.org")

    with patch("autoinvite.cli.commands.console", wide_console):
        result = runner.invoke(app, ["accounts", "-c", str(config_file)])

    assert result.exit_code == 0
    assert "@bot:example.org" in result.stdout
    assert "!ctl:example.org" in result.stdout
    assert "missing" in result.stdout
    assert "@owner:example.org" in result.stdout


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "autoinvite v" in result.stdout
