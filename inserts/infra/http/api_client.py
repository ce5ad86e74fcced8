from __future__ import annotations

import base64
import time
from typing import Any

import httpx

from inserts.errors import AppError


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        retryable: bool = False,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение для ошибок HTTP/API уровня HttpApiClient.
        Контракт:
            - code: строковый код (HTTP_*, NETWORK_ERROR, INVALID_JSON и т.п.).
            - status_code/body_snippet используются для диагностики.
        """
        super().__init__(
            category="api",
            code=code or (f"HTTP_{status_code}" if status_code else "API_ERROR"),
            message=message,
            retryable=retryable,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


class HttpApiClient:
    def __init__(
        self,
        baseUrl: str,
        timeoutSeconds: float = 10.0,
        tlsSkipVerify: bool = False,
        caFile: str | None = None,
        retries: int = 0,
        retryBackoffSeconds: float = 0.5,
        defaultHeaders: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            HTTP-клиент внешних API (сервис профилей, трекинг) с простой политикой ретраев.
        Контракт:
            - baseUrl обязателен.
            - retries по умолчанию 0: единица ретрая это весь вызов плагина, им управляет хост.
        """
        verify: bool | str = True
        if tlsSkipVerify:
            verify = False
        elif caFile:
            verify = caFile

        self.baseUrl = baseUrl.rstrip("/")
        self.retries = retries
        self.retryBackoffSeconds = retryBackoffSeconds
        self.defaultHeaders = dict(defaultHeaders or {})
        self.retry_attempts = 0

        self.client = httpx.Client(
            base_url=self.baseUrl,
            timeout=timeoutSeconds,
            verify=verify,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def getRetryAttempts(self) -> int:
        """Возвращает количество выполненных повторных попыток."""
        return self.retry_attempts

    def _headers_with(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """Базовые заголовки + дополнительные."""
        base = {"accept": "application/json", "Content-Type": "application/json"}
        base.update(self.defaultHeaders)
        if extra:
            base.update(extra)
        return base

    def _should_retry(self, resp: httpx.Response) -> bool:
        """Решает, стоит ли повторить запрос (429 или 5xx)."""
        if resp.status_code == 429:
            return True
        if 500 <= resp.status_code <= 599:
            return True
        return False

    def _sleep_backoff(self, attempt: int) -> None:
        """Задержка с экспоненциальным ростом для ретраев."""
        delay = self.retryBackoffSeconds * (2 ** attempt)
        time.sleep(delay)

    def requestAny(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> tuple[int, Any | None, str | None]:
        """
        Выполняет запрос без проверки ожидаемых статусов.

        Возвращает кортеж: (status_code, response_json_or_text, body_snippet).
        Сетевые ошибки после исчерпания ретраев превращаются в ApiError(code="NETWORK_ERROR").
        """
        params = params or {}
        attempt = 0
        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout
        while True:
            try:
                resp = self.client.request(
                    method,
                    path,
                    params=params,
                    headers=self._headers_with(headers),
                    json=json,
                    **extra,
                )
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt >= self.retries:
                    raise ApiError(
                        f"Network error: {exc}" if str(exc) else "Network error",
                        status_code=None,
                        retryable=True,
                        code="NETWORK_ERROR",
                    ) from exc
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            if self._should_retry(resp) and attempt < self.retries:
                self.retry_attempts += 1
                self._sleep_backoff(attempt)
                attempt += 1
                continue

            status_code = resp.status_code
            body_snippet = resp.text[:200] if resp.text else None
            if resp.text:
                try:
                    return status_code, resp.json(), body_snippet
                except ValueError:
                    return status_code, resp.text, body_snippet
            return status_code, None, body_snippet


def basicAuthorization(token: str) -> str:
    """Заголовок Authorization для Basic-схемы "<token>:" (пустой пароль)."""
    encoded = base64.b64encode(f"{token}:".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"
