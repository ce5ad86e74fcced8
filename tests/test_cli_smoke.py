import json

import pytest
from typer.testing import CliRunner

from inserts.config import ENV_NAMES
from inserts.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES.values():
        monkeypatch.delenv(name, raising=False)


def _write(path, data) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "plugins" in result.stdout
    assert "run" in result.stdout
    assert "show-config" in result.stdout


def test_plugins_lists_registered_names():
    result = runner.invoke(app, ["plugins"])
    assert result.exit_code == 0
    for name in ("aetra-lookup", "unify-lookup", "aetra-enrich", "clean-google-events", "unify-click-capture"):
        assert name in result.stdout


def test_show_config_reflects_cli_override(tmp_path):
    result = runner.invoke(
        app,
        ["--log-dir", str(tmp_path), "--profiles-base-url", "https://cli.profiles", "show-config"],
    )
    assert result.exit_code == 0
    assert "profiles_base_url=https://cli.profiles" in result.stdout
    assert "sources=['cli']" in result.stdout


def test_run_clean_google_prints_event(tmp_path):
    event = _write(
        tmp_path / "event.json",
        {"type": "track", "properties": {"gclid": "G", "gbraid": "B"}, "context": {"traits": {"email": "a@b.c"}}},
    )

    result = runner.invoke(app, ["--log-dir", str(tmp_path / "logs"), "run", "clean-google-events", "--event", event])

    assert result.exit_code == 0
    printed = json.loads(result.stdout.strip().splitlines()[-1])
    assert printed["properties"] == {"gclid": "G"}
    assert printed["context"]["traits"] == {"email": "a@b.c"}


def test_run_unsupported_event_exits_skipped(tmp_path):
    event = _write(tmp_path / "event.json", {"type": "identify", "userId": "u-1"})

    result = runner.invoke(app, ["--log-dir", str(tmp_path / "logs"), "run", "unify-lookup", "--event", event])

    assert result.exit_code == 4


def test_run_missing_credentials_exits_validation(tmp_path):
    event = _write(tmp_path / "event.json", {"type": "track", "userId": "u-1"})
    settings = tmp_path / "settings.yml"
    settings.write_text("writeKey: wk\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["--log-dir", str(tmp_path / "logs"), "run", "aetra-lookup", "--event", event, "--settings", str(settings)],
    )

    assert result.exit_code == 2


def test_run_unknown_event_type_exits_dropped(tmp_path):
    event = _write(tmp_path / "event.json", {"type": "bogus"})

    result = runner.invoke(app, ["--log-dir", str(tmp_path / "logs"), "run", "clean-google-events", "--event", event])

    assert result.exit_code == 5


def test_run_unknown_plugin_exits_usage(tmp_path):
    event = _write(tmp_path / "event.json", {"type": "track"})

    result = runner.invoke(app, ["--log-dir", str(tmp_path / "logs"), "run", "nope", "--event", event])

    assert result.exit_code == 2


def test_run_missing_event_file(tmp_path):
    result = runner.invoke(
        app, ["--log-dir", str(tmp_path / "logs"), "run", "clean-google-events", "--event", str(tmp_path / "x.json")]
    )

    assert result.exit_code == 2
