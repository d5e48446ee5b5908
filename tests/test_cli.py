import json
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from spot_export import __version__
from spot_export.cli import app as app_module
from spot_export.exceptions import ConnectionFailedError

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(app_module, "CONFIG_FILE", tmp_path / "cfg" / "config.ini")


@pytest.fixture
def connected(monkeypatch, session):
    connect = AsyncMock(return_value=session)
    monkeypatch.setattr(app_module, "_connect_session", connect)
    return connect


def test_version():
    result = runner.invoke(app_module.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.parametrize("flag", ["--username", "--access-token"])
def test_empty_credentials_flag_is_rejected(flag, connected):
    result = runner.invoke(app_module.app, ["export", flag, " "])
    assert result.exit_code == 1
    connected.assert_not_awaited()


def test_export_links_from_arguments(tmp_path, session, connected):
    session.add_track("t1", name="Song", artists=("A",))
    out = tmp_path / "out"

    result = runner.invoke(
        app_module.app,
        [
            "export",
            "-k",
            "token",
            "-o",
            str(out),
            "--pacing",
            "0",
            "https://open.spotify.com/track/t1?si=x",
        ],
    )

    assert result.exit_code == 0, result.output
    assert (out / "A - Song.ogg").exists()
    assert connected.await_args.args[0].auth_data == b"token"
    assert session.closed


def test_export_links_from_stdin(tmp_path, session, connected):
    session.add_track("t1", name="One", artists=("A",))
    session.add_track("t2", name="Two", artists=("A",))
    out = tmp_path / "out"

    result = runner.invoke(
        app_module.app,
        ["export", "-k", "token", "-o", str(out), "--pacing", "0"],
        input="spotify:track:t1\ndone\nspotify:track:t2\n",
    )

    assert result.exit_code == 0, result.output
    assert [p.name for p in out.iterdir()] == ["A - One.ogg"]


def test_export_without_credentials_fails(connected):
    # CliRunner output is not a terminal, so no browser login starts.
    result = runner.invoke(app_module.app, ["export", "spotify:track:t1"])
    assert result.exit_code == 1
    connected.assert_not_awaited()


def test_init_then_validate(tmp_path):
    result = runner.invoke(
        app_module.app, ["init", "-u", "alice", "-o", str(tmp_path / "music")]
    )
    assert result.exit_code == 0, result.output
    assert app_module.CONFIG_FILE.is_file()

    result = runner.invoke(app_module.app, ["validate"])
    assert result.exit_code == 0, result.output
    assert "alice" in result.output


def test_init_keeps_existing_config_unless_forced():
    assert runner.invoke(app_module.app, ["init", "-u", "alice"]).exit_code == 0

    declined = runner.invoke(app_module.app, ["init", "-u", "bob"], input="n\n")
    assert declined.exit_code == 1
    assert "alice" in app_module.CONFIG_FILE.read_text()

    forced = runner.invoke(app_module.app, ["init", "-u", "bob", "-f"])
    assert forced.exit_code == 0, forced.output
    assert "bob" in app_module.CONFIG_FILE.read_text()


def test_validate_reports_invalid_config():
    app_module.CONFIG_FILE.parent.mkdir(parents=True)
    app_module.CONFIG_FILE.write_text("[DEFAULT]\npacing_seconds = -3\n")
    result = runner.invoke(app_module.app, ["validate"])
    assert result.exit_code == 1


def test_export_reports_connection_failure(monkeypatch):
    connect = AsyncMock(side_effect=ConnectionFailedError("access point unreachable"))
    monkeypatch.setattr(app_module, "_connect_session", connect)

    result = runner.invoke(app_module.app, ["export", "-k", "token", "spotify:track:t1"])

    assert result.exit_code == 1
    assert "ConnectionFailedError" in result.output
    assert "access point unreachable" in result.output


def test_export_writes_json_events(tmp_path, session, connected):
    session.add_track("t1", name="Song", artists=("A",))
    log_dir = tmp_path / "logs"

    result = runner.invoke(
        app_module.app,
        [
            "export",
            "-k",
            "token",
            "-o",
            str(tmp_path / "out"),
            "--pacing",
            "0",
            "--json-log",
            str(log_dir),
            "spotify:track:t1",
        ],
    )

    assert result.exit_code == 0, result.output
    (log_file,) = log_dir.glob("*.jsonl")
    events = [json.loads(line)["event"] for line in log_file.read_text().splitlines()]
    assert events[0] == "session_started"
    assert "item_delivered" in events
    assert events[-1] == "session_completed"
