import pytest

from inserts.config import ENV_NAMES, RuntimeSettings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES.values():
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_sources():
    loaded = load_settings(config_path=None, cli_overrides={})

    assert loaded.settings == RuntimeSettings()
    assert loaded.sources_used == []


def test_priority_cli_over_env_over_config(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            'aetra_base_url: "https://cfg.aetra"',
            'profiles_base_url: "https://cfg.profiles"',
            "timeout_seconds: 3",
            "retries: 1",
        ]),
        encoding="utf-8",
    )

    # ENV overrides config
    monkeypatch.setenv("INSERTS_PROFILES_BASE_URL", "https://env.profiles")
    monkeypatch.setenv("INSERTS_RETRIES", "2")
    monkeypatch.setenv("INSERTS_TLS_SKIP_VERIFY", "yes")

    # CLI overrides env
    loaded = load_settings(
        config_path=str(cfg),
        cli_overrides={"retries": 5, "log_level": None},
    )

    assert loaded.settings.aetra_base_url == "https://cfg.aetra"
    assert loaded.settings.profiles_base_url == "https://env.profiles"
    assert loaded.settings.timeout_seconds == 3.0
    assert loaded.settings.retries == 5
    assert loaded.settings.tls_skip_verify is True
    assert loaded.sources_used == ["config", "env", "cli"]


def test_missing_config_file_is_ignored(tmp_path):
    loaded = load_settings(config_path=str(tmp_path / "absent.yml"), cli_overrides={})

    assert loaded.sources_used == []


def test_invalid_boolean_env_raises(monkeypatch):
    monkeypatch.setenv("INSERTS_TLS_SKIP_VERIFY", "maybe")

    with pytest.raises(ValueError):
        load_settings(config_path=None, cli_overrides={})
