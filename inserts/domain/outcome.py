from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from inserts.domain.error_codes import ErrorCode


@dataclass(frozen=True)
class Enriched:
    """Событие дополнено или преобразовано."""

    event: dict[str, Any]
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Unchanged:
    """
    Назначение:
        Событие возвращается хосту без изменений (профиль не найден, мягкий сбой и т.п.).
    """

    event: dict[str, Any]
    reason: str


@dataclass(frozen=True)
class Failed:
    """
    Назначение:
        Сбой вызова, который хост должен интерпретировать по виду ошибки.
    Инварианты/гарантии:
        - code однозначно определяет поведение хоста (retry/skip/drop/fail).
        - status_code заполнен для сбоев, пришедших из HTTP-ответа.
    """

    code: ErrorCode
    message: str
    status_code: int | None = None

    @property
    def retryable(self) -> bool:
        return self.code.retryable


HandlerOutcome = Union[Enriched, Unchanged, Failed]


__all__ = ["Enriched", "Unchanged", "Failed", "HandlerOutcome"]
