from __future__ import annotations

from typing import Any
from urllib.parse import quote

from inserts.infra.http.api_client import HttpApiClient, basicAuthorization
from inserts.infra.http.profile_gateways import AETRA_API_VERSION


class AetraEnrichGateway:
    """
    Назначение/ответственность:
        POST /profile/{writeKey}/enrich: сервис Aetra возвращает обогащённое событие целиком.
    Ограничения:
        - Статусы не интерпретируются, классификация остаётся за use-case.
        - Сетевые сбои пробрасываются как ApiError(code="NETWORK_ERROR").
    """

    def __init__(self, client: HttpApiClient):
        self._client = client

    def enrich(self, event: dict[str, Any], write_key: str, token: str) -> tuple[int, Any | None, str | None]:
        return self._client.requestAny(
            "POST",
            f"/profile/{quote(write_key, safe='')}/enrich",
            json=event,
            headers={
                "Authorization": basicAuthorization(token),
                "X-Aetra-Version": AETRA_API_VERSION,
            },
        )


class TrackingApiGateway:
    """
    Назначение/ответственность:
        Отправка identify-вызова в tracking API (POST /v1/identify).
    """

    def __init__(self, client: HttpApiClient):
        self._client = client

    def identify(self, payload: dict[str, Any]) -> tuple[int, Any | None, str | None]:
        return self._client.requestAny("POST", "/v1/identify", json=payload)
