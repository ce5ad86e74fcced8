from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок, которые видит хост-рантайм.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    RETRY_ERROR = "RETRY_ERROR"
    EVENT_NOT_SUPPORTED = "EVENT_NOT_SUPPORTED"
    INVALID_EVENT_PAYLOAD = "INVALID_EVENT_PAYLOAD"
    DROP_EVENT = "DROP_EVENT"

    @property
    def retryable(self) -> bool:
        return self is ErrorCode.RETRY_ERROR


class FetchStatus(str, Enum):
    """
    Назначение:
        Исход обращения к сервису профилей.
    """

    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"
    PERMANENT_FAILURE = "permanent_failure"

    @classmethod
    def from_status(cls, status_code: int) -> "FetchStatus":
        """
        Назначение:
            Классификация HTTP-статуса ответа сервиса профилей.

        Алгоритм:
            - 2xx -> FOUND
            - 404 -> NOT_FOUND
            - 429 и 5xx -> TRANSIENT_FAILURE
            - всё остальное -> PERMANENT_FAILURE
        """
        if 200 <= status_code <= 299:
            return cls.FOUND
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code == 429 or status_code >= 500:
            return cls.TRANSIENT_FAILURE
        return cls.PERMANENT_FAILURE
