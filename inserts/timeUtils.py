from __future__ import annotations

import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_FRACTION = re.compile(r"(T[\d:]+)\.(\d+)")


def getNowEpochMillis() -> int:
    return int(time.time() * 1000)


def parseEpochMillis(timestamp: Any) -> int | None:
    """
    Назначение:
        Переводит ISO 8601 timestamp события в epoch millis.

    Входные данные:
        timestamp: str | None
            Например: 2024-01-15T10:30:00Z или 2024-01-15T10:30:00.123+02:00

    Выходные данные:
        int | None
            None, если значение отсутствует или не разбирается.
            Время без часового пояса трактуется как UTC.

    Ограничения:
        - Дробная часть секунд приводится к 6 знакам (fromisoformat в Python 3.10
          принимает только 3 или 6 знаков).
    """
    if not isinstance(timestamp, str) or not timestamp.strip():
        return None
    value = timestamp.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    value = _FRACTION.sub(lambda m: f"{m.group(1)}.{(m.group(2) + '000000')[:6]}", value, count=1)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


def getDurationMs(startMonotonic: float, endMonotonic: float) -> int:
    """
    Назначение:
        Считает длительность в миллисекундах по monotonic timestamps.
    """
    return int((endMonotonic - startMonotonic) * 1000)
