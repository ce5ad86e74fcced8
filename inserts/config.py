from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml


@dataclass(frozen=True)
class RuntimeSettings:
    # API endpoints
    aetra_base_url: str = "https://api.aetra.app"
    profiles_base_url: str = "https://profiles.segment.com"
    tracking_api_url: str = "https://api.segment.io"

    # HTTP
    timeout_seconds: float = 10.0
    retries: int = 0
    retry_backoff_seconds: float = 0.5
    tls_skip_verify: bool = False
    ca_file: str | None = None

    # Logging
    log_dir: str = "./logs"
    log_level: str = "INFO"


@dataclass(frozen=True)
class LoadedSettings:
    settings: RuntimeSettings
    sources_used: list[str]


ENV_NAMES: dict[str, str] = {
    "aetra_base_url": "INSERTS_AETRA_BASE_URL",
    "profiles_base_url": "INSERTS_PROFILES_BASE_URL",
    "tracking_api_url": "INSERTS_TRACKING_API_URL",
    "timeout_seconds": "INSERTS_TIMEOUT_SECONDS",
    "retries": "INSERTS_RETRIES",
    "retry_backoff_seconds": "INSERTS_RETRY_BACKOFF_SECONDS",
    "tls_skip_verify": "INSERTS_TLS_SKIP_VERIFY",
    "ca_file": "INSERTS_CA_FILE",
    "log_dir": "INSERTS_LOG_DIR",
    "log_level": "INSERTS_LOG_LEVEL",
}

INT_FIELDS = ("retries",)
FLOAT_FIELDS = ("timeout_seconds", "retry_backoff_seconds")
BOOL_FIELDS = ("tls_skip_verify",)


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def parse_bool(v: str | None) -> bool | None:
    if v is None:
        return None
    vv = v.lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean env value: {v}")


def _coerce(key: str, value):
    if value is None:
        return None
    if key in INT_FIELDS:
        return int(value)
    if key in FLOAT_FIELDS:
        return float(value)
    if key in BOOL_FIELDS:
        if isinstance(value, bool):
            return value
        return parse_bool(str(value))
    return value


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = RuntimeSettings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env
    env = {key: _env_get(name) for key, name in ENV_NAMES.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")

    merged = {key: cfg.get(key, getattr(defaults, key)) for key in ENV_NAMES}

    for key, value in env.items():
        if value is not None:
            merged[key] = value

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    settings = RuntimeSettings(
        aetra_base_url=str(merged["aetra_base_url"]),
        profiles_base_url=str(merged["profiles_base_url"]),
        tracking_api_url=str(merged["tracking_api_url"]),
        timeout_seconds=_coerce("timeout_seconds", merged["timeout_seconds"]),
        retries=_coerce("retries", merged["retries"]),
        retry_backoff_seconds=_coerce("retry_backoff_seconds", merged["retry_backoff_seconds"]),
        tls_skip_verify=bool(_coerce("tls_skip_verify", merged["tls_skip_verify"])),
        ca_file=merged["ca_file"],
        log_dir=str(merged["log_dir"]),
        log_level=str(merged["log_level"]),
    )

    return LoadedSettings(settings=settings, sources_used=sources)
