from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from inserts.domain.error_codes import ErrorCode


@dataclass
class AppError(Exception):
    """
    Унифицированная ошибка приложения.
    """

    category: str
    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details or {},
        }


class ValidationError(AppError):
    """Некорректная конфигурация или входные данные. Не ретраится."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            category="validation",
            code=ErrorCode.VALIDATION_ERROR.value,
            message=message,
            retryable=False,
            details=details or {},
        )


class RetryError(AppError):
    """
    Назначение:
        Временный сбой (сеть, 5xx, 429). Хост повторит доставку события позже.
    Контракт:
        - status_code заполнен, если сбой пришёл из HTTP-ответа.
    """

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        super().__init__(
            category="retry",
            code=ErrorCode.RETRY_ERROR.value,
            message=message,
            retryable=True,
            details=details or {},
        )
        self.status_code = status_code


class EventNotSupported(AppError):
    """Тип события не обрабатывается плагином. Хост пропускает плагин."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            category="skip",
            code=ErrorCode.EVENT_NOT_SUPPORTED.value,
            message=message,
            retryable=False,
            details=details or {},
        )


class InvalidEventPayload(AppError):
    """Событие нарушает ожидаемую форму. Хост отбрасывает его без ретраев."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            category="drop",
            code=ErrorCode.INVALID_EVENT_PAYLOAD.value,
            message=message,
            retryable=False,
            details=details or {},
        )


class DropEvent(AppError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            category="drop",
            code=ErrorCode.DROP_EVENT.value,
            message=message,
            retryable=False,
            details=details or {},
        )


ERROR_TYPES: dict[ErrorCode, type[AppError]] = {
    ErrorCode.VALIDATION_ERROR: ValidationError,
    ErrorCode.RETRY_ERROR: RetryError,
    ErrorCode.EVENT_NOT_SUPPORTED: EventNotSupported,
    ErrorCode.INVALID_EVENT_PAYLOAD: InvalidEventPayload,
    ErrorCode.DROP_EVENT: DropEvent,
}


__all__ = [
    "AppError",
    "ValidationError",
    "RetryError",
    "EventNotSupported",
    "InvalidEventPayload",
    "DropEvent",
    "ERROR_TYPES",
]
