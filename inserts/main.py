from __future__ import annotations

import json
import logging
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any

import httpx
import typer
import yaml

from inserts.common.run_id import generate_run_id
from inserts.config import RuntimeSettings, load_settings
from inserts.domain.models import PluginSettings
from inserts.errors import AppError, EventNotSupported, RetryError, ValidationError
from inserts.loggingSetup import closeLogger, createCommandLogger, logEvent, mapLogLevel
from inserts.plugins.registry import PLUGIN_SPECS, PluginContext, build_plugin, list_plugins
from inserts.timeUtils import getDurationMs

app = typer.Typer(no_args_is_help=True, add_completion=False)

EXIT_OK = 0
EXIT_VALIDATION = 2
EXIT_RETRY = 3
EXIT_SKIPPED = 4
EXIT_DROPPED = 5


def exitCodeFor(error: AppError) -> int:
    """
    Назначение:
        Код завершения процесса для исключения плагина.
    """
    if isinstance(error, RetryError):
        return EXIT_RETRY
    if isinstance(error, EventNotSupported):
        return EXIT_SKIPPED
    if isinstance(error, ValidationError):
        return EXIT_VALIDATION
    return EXIT_DROPPED


def readJsonObject(path: str, what: str) -> dict[str, Any]:
    """
    Назначение:
        Читает JSON-объект события из файла.
    Поведение:
        - Отсутствующий файл, битый JSON или не-объект -> exit code 2.
    """
    p = Path(path)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: {what} file not found: {path}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except ValueError as exc:
        typer.echo(f"ERROR: {what} file is not valid JSON: {exc}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)
    if not isinstance(data, dict):
        typer.echo(f"ERROR: {what} must be a JSON object", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)
    return data


def readPluginSettings(path: str | None) -> dict[str, Any]:
    """Настройки плагина: JSON или YAML mapping; без файла пустые."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: settings file not found: {path}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        typer.echo(f"ERROR: settings file is not valid YAML/JSON: {exc}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)
    if not isinstance(data, dict):
        typer.echo("ERROR: settings must be a mapping", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)
    return data


def printRunHeader(runId: str, command: str, settings: RuntimeSettings, sources: list[str]) -> None:
    typer.echo(
        f"run_id={runId} command={command} "
        f"aetra_base_url={settings.aetra_base_url} profiles_base_url={settings.profiles_base_url} "
        f"tracking_api_url={settings.tracking_api_url} sources={sources} log_level={settings.log_level}",
        err=True,
    )


def runPluginCommand(
    ctx: typer.Context,
    pluginName: str,
    eventPath: str,
    settingsPath: str | None,
    apiTransport: httpx.BaseTransport | None = None,
) -> None:
    """
    Назначение:
        Прогон одного события через плагин, как это сделал бы хост.

    Алгоритм:
        - проверка имени плагина и входных файлов (exit 2);
        - сборка HandlerSet и dispatch по типу события;
        - результат печатается в stdout как JSON;
        - исключения плагина переводятся в коды 2/3/4/5.
    """
    runId = ctx.obj["runId"]
    settings: RuntimeSettings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    if pluginName not in PLUGIN_SPECS:
        typer.echo(f"ERROR: unknown plugin: {pluginName}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)

    event = readJsonObject(eventPath, "event")
    pluginSettings = readPluginSettings(settingsPath)

    logger, logFilePath = createCommandLogger(
        commandName="run",
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
        pluginName=pluginName,
        consoleStream=sys.stderr,
    )
    startMonotonic = time.monotonic()
    pluginCtx = PluginContext(runtime=settings, logger=logger, run_id=runId, transport=apiTransport)
    exitCode = EXIT_OK
    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started", plugin=pluginName, event=Path(eventPath).name)
        printRunHeader(runId, "run", settings, sources)
        logEvent(
            logger,
            logging.DEBUG,
            runId,
            "core",
            "plugin settings",
            **PluginSettings.from_mapping(pluginSettings).masked(),
        )
        handlers = build_plugin(pluginName, pluginCtx)
        try:
            result = handlers.dispatch(event, pluginSettings)
        except AppError as err:
            exitCode = exitCodeFor(err)
            logEvent(logger, logging.WARNING, runId, "core", err.message, category=err.category)
            typer.echo(json.dumps(err.to_dict(), ensure_ascii=False), err=True)
        else:
            typer.echo(json.dumps(result, ensure_ascii=False, sort_keys=True))
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        logEvent(
            logger,
            logging.INFO,
            runId,
            "core",
            "Command finished",
            exit_code=exitCode,
            duration_ms=durationMs,
            log=logFilePath,
        )
    finally:
        pluginCtx.close()
        closeLogger(logger)

    if exitCode != EXIT_OK:
        raise typer.Exit(code=exitCode)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    retries: int | None = typer.Option(None, "--retries", help="Retry attempts inside one API call"),
    aetraBaseUrl: str | None = typer.Option(None, "--aetra-base-url", help="Aetra API base URL"),
    profilesBaseUrl: str | None = typer.Option(None, "--profiles-base-url", help="Unify profiles API base URL"),
    trackingApiUrl: str | None = typer.Option(None, "--tracking-api-url", help="Tracking API base URL"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "timeout_seconds": timeoutSeconds,
        "retries": retries,
        "aetra_base_url": aetraBaseUrl,
        "profiles_base_url": profilesBaseUrl,
        "tracking_api_url": trackingApiUrl,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
        mapLogLevel(loaded.settings.log_level)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid settings: {exc}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("plugins")
def plugins() -> None:
    for spec in list_plugins():
        types = ",".join(t.value for t in spec.event_types)
        typer.echo(f"{spec.name}\t{types}\t{spec.description}")


@app.command("run")
def run(
    ctx: typer.Context,
    plugin: str = typer.Argument(..., help="Plugin name (see `plugins`)"),
    event: str = typer.Option(..., "--event", help="Path to event JSON"),
    settings: str | None = typer.Option(None, "--settings", help="Path to plugin settings (JSON or YAML)"),
):
    runPluginCommand(ctx, plugin, event, settings)


@app.command("show-config")
def showConfig(ctx: typer.Context) -> None:
    settings: RuntimeSettings = ctx.obj["settings"]
    typer.echo(f"run_id={ctx.obj['runId']} sources={ctx.obj['sources']}")
    for key, value in asdict(settings).items():
        typer.echo(f"{key}={value}")
