from __future__ import annotations

from typing import Any, Callable
from urllib.parse import quote

from inserts.common.sanitize import truncateText
from inserts.domain.error_codes import FetchStatus
from inserts.domain.exceptions import MissingSettingError
from inserts.domain.identity_keys import LookupKey
from inserts.domain.models import PluginSettings
from inserts.domain.ports.profile_gateway import ProfileFetchResult
from inserts.domain.profile import UNIFY_PROFILE_TRAITS, ProfileDocument
from inserts.infra.http.api_client import ApiError, HttpApiClient, basicAuthorization

AETRA_API_VERSION = "2025-01-01"


def _segment(value: str) -> str:
    return quote(value, safe=":@")


def classify_profile_response(
    status_code: int,
    body: Any,
    body_snippet: str | None,
    parser: Callable[[Any], ProfileDocument],
) -> ProfileFetchResult:
    """
    Назначение:
        Классификатор ответа сервиса профилей.

    Алгоритм:
        - 404 -> NOT_FOUND (обогащения нет, это не ошибка);
        - 5xx и 429 -> TRANSIENT_FAILURE со статусом;
        - прочие не-2xx -> PERMANENT_FAILURE (событие вернётся без изменений);
        - 2xx с телом не-JSON-объектом -> PERMANENT_FAILURE;
        - иначе FOUND с разобранным профилем.
    """
    status = FetchStatus.from_status(status_code)
    if status is FetchStatus.NOT_FOUND:
        return ProfileFetchResult.not_found(status_code)
    if status is FetchStatus.TRANSIENT_FAILURE:
        return ProfileFetchResult.transient(f"Failed with {status_code}", status_code=status_code)
    if status is FetchStatus.PERMANENT_FAILURE:
        message = f"Failed with {status_code}"
        if body_snippet:
            message = f"{message}: {truncateText(body_snippet, 200)}"
        return ProfileFetchResult.permanent(message, status_code=status_code)
    if body is not None and not isinstance(body, dict):
        return ProfileFetchResult.permanent("Invalid JSON response", status_code=status_code)
    return ProfileFetchResult.found(parser(body or {}), status_code=status_code)


class _ProfileGatewayBase:
    def __init__(self, client: HttpApiClient):
        self._client = client

    def _get(
        self,
        path: str,
        token: str,
        parser: Callable[[Any], ProfileDocument],
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> ProfileFetchResult:
        request_headers = {"Authorization": basicAuthorization(token)}
        if headers:
            request_headers.update(headers)
        try:
            status_code, body, snippet = self._client.requestAny(
                "GET",
                path,
                params=params,
                headers=request_headers,
            )
        except ApiError as err:
            # Сетевой сбой (включая таймаут) всегда временный.
            return ProfileFetchResult.transient(err.message, status_code=err.status_code)
        return classify_profile_response(status_code, body, snippet, parser)


class AetraProfileGateway(_ProfileGatewayBase):
    """
    Назначение/ответственность:
        Получение профиля Aetra: GET /profile/{writeKey}/{lookupKey}.
    Взаимодействия:
        Ответ вида {context, properties, traits} -> ProfileDocument.from_segmented.
    """

    def check_settings(self, settings: PluginSettings) -> None:
        if not settings.write_key or not settings.token:
            raise MissingSettingError(fields=("writeKey", "token"), message="Write key and token are required")

    def fetch(self, key: LookupKey, settings: PluginSettings) -> ProfileFetchResult:
        self.check_settings(settings)
        return self._get(
            f"/profile/{_segment(settings.write_key or '')}/{_segment(str(key))}",
            settings.token or "",
            ProfileDocument.from_segmented,
            headers={"X-Aetra-Version": AETRA_API_VERSION},
        )


class UnifyProfileGateway(_ProfileGatewayBase):
    """
    Назначение/ответственность:
        Получение трейтов профиля Unify (Segment Profiles API).
    Взаимодействия:
        Ответ вида {traits: {...}} -> ProfileDocument.from_traits.
    """

    def check_settings(self, settings: PluginSettings) -> None:
        if not settings.space_id or not settings.space_token:
            raise MissingSettingError(
                fields=("spaceId", "spaceToken"),
                message="Space ID and Space Token are required",
            )

    def fetch(self, key: LookupKey, settings: PluginSettings) -> ProfileFetchResult:
        self.check_settings(settings)
        path = (
            f"/v1/spaces/{_segment(settings.space_id or '')}"
            f"/collections/users/profiles/{_segment(str(key))}/traits"
        )
        return self._get(
            path,
            settings.space_token or "",
            ProfileDocument.from_traits,
            params={"limit": 100, "include": ",".join(UNIFY_PROFILE_TRAITS)},
        )


__all__ = ["AetraProfileGateway", "UnifyProfileGateway", "classify_profile_response", "AETRA_API_VERSION"]
