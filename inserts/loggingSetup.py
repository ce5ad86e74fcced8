from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any

from inserts.common.sanitize import maskSecretsInObject, truncateText


class EnsureFieldsFilter(logging.Filter):
    """
    Назначение:
        Гарантирует наличие полей runId и component в LogRecord,
        чтобы форматтер не падал KeyError.

    Входные данные:
        runId: str
            Идентификатор запуска.
        defaultComponent: str
            Компонент по умолчанию, если не задан.
    """

    def __init__(self, runId: str, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "runId"):
            record.runId = self.runId
        if not hasattr(record, "component"):
            record.component = self.defaultComponent
        return True


def mapLogLevel(levelName: str) -> int:
    """
    Назначение:
        Преобразует строковый уровень логирования в logging level.

    Входные данные:
        levelName: str
            ERROR|WARN|INFO|DEBUG

    Выходные данные:
        int
    """
    value = (levelName or "").strip().upper()
    if value == "ERROR":
        return logging.ERROR
    if value in ("WARN", "WARNING"):
        return logging.WARNING
    if value == "INFO":
        return logging.INFO
    if value == "DEBUG":
        return logging.DEBUG
    raise ValueError(f"Unsupported log level: {levelName}")


LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s msg=%(message)s"
CONSOLE_FORMAT = "%(levelname)s comp=%(component)s %(message)s"


def createCommandLogger(
    commandName: str,
    logDir: str,
    runId: str,
    logLevel: str,
    pluginName: str | None = None,
    consoleStream: IO[str] | None = None,
) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Логгер одного прогона плагина: файл <command>[_<plugin>]_<runId>.log
        и, опционально, поток для предупреждений.

    Входные данные:
        commandName: str
        logDir: str
        runId: str
        logLevel: str
            ERROR|WARN|INFO|DEBUG, уровень файла.
        pluginName: str | None
            Имя плагина, попадает в имя файла.
        consoleStream: IO[str] | None
            Поток (обычно sys.stderr), куда дублируются записи WARNING и выше.

    Выходные данные:
        (logger, logFilePath)
    """
    level = mapLogLevel(logLevel)
    Path(logDir).mkdir(parents=True, exist_ok=True)

    stem = f"{commandName}_{pluginName}" if pluginName else commandName
    logFilePath = str(Path(logDir) / f"{stem}_{runId}.log")

    logger = logging.getLogger(f"inserts.{stem}.{runId}")
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level)

    fileHandler = logging.FileHandler(logFilePath, encoding="utf-8")
    fileHandler.setLevel(level)
    fileHandler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    fileHandler.addFilter(EnsureFieldsFilter(runId=runId))
    logger.addHandler(fileHandler)

    if consoleStream is not None:
        consoleHandler = logging.StreamHandler(consoleStream)
        consoleHandler.setLevel(max(level, logging.WARNING))
        consoleHandler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT))
        consoleHandler.addFilter(EnsureFieldsFilter(runId=runId))
        logger.addHandler(consoleHandler)

    return logger, logFilePath


def getPluginLogger(component: str) -> logging.Logger:
    """
    Назначение:
        Логгер use case по умолчанию, когда хост не передал свой.

    Ограничения:
        - Имя логгера: inserts.<component>; записи уходят в обработчики хоста через propagate.
        - Фильтр подставляет runId="-" и component, если запись пришла без extra.
    """
    logger = logging.getLogger(f"inserts.{component}")
    if not any(isinstance(f, EnsureFieldsFilter) for f in logger.filters):
        logger.addFilter(EnsureFieldsFilter(runId="-", defaultComponent=component))
    return logger


def closeLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def formatFields(fields: dict[str, Any], limit: int = 200) -> str:
    """
    Назначение:
        Рендерит структурные поля записи как "key=value" через пробел.

    Алгоритм:
        - значения по чувствительным ключам (token, writeKey, email ...) заменяются на "***";
        - None пропускается;
        - длинные значения усекаются до limit.
    """
    masked = maskSecretsInObject(fields)
    parts: list[str] = []
    for key, value in masked.items():
        if value is None:
            continue
        parts.append(f"{key}={truncateText(str(value), limit)}")
    return " ".join(parts)


def logEvent(
    logger: logging.Logger,
    level: int,
    runId: str | None,
    component: str,
    message: str,
    **fields: Any,
) -> None:
    """
    Назначение:
        Унифицированная запись событий плагина с runId/component и полями key=value.

    Входные данные:
        logger: logging.Logger
        level: int
        runId: str | None
        component: str
            profile | merge | google_ads | validation | delivery | core
        message: str
        fields:
            Дополнительные поля (plugin=..., status=...), секреты маскируются.
    """
    if not logger.isEnabledFor(level):
        return
    rendered = formatFields(fields) if fields else ""
    text = f"{message} {rendered}" if rendered else message
    logger.log(level, text, extra={"runId": runId or "-", "component": component})
