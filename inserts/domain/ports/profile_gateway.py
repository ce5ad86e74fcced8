from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from inserts.domain.error_codes import FetchStatus
from inserts.domain.identity_keys import LookupKey
from inserts.domain.models import PluginSettings
from inserts.domain.profile import ProfileDocument


@dataclass(frozen=True)
class ProfileFetchResult:
    """
    Назначение/ответственность:
        Нормализованный исход обращения к сервису профилей.
    Инварианты/гарантии:
        - profile задан только при status == FOUND.
        - message задан для TRANSIENT_FAILURE/PERMANENT_FAILURE.
    """

    status: FetchStatus
    profile: ProfileDocument | None = None
    status_code: int | None = None
    message: str | None = None

    @classmethod
    def found(cls, profile: ProfileDocument, status_code: int = 200) -> "ProfileFetchResult":
        return cls(status=FetchStatus.FOUND, profile=profile, status_code=status_code)

    @classmethod
    def not_found(cls, status_code: int = 404) -> "ProfileFetchResult":
        return cls(status=FetchStatus.NOT_FOUND, status_code=status_code)

    @classmethod
    def transient(cls, message: str, status_code: int | None = None) -> "ProfileFetchResult":
        return cls(status=FetchStatus.TRANSIENT_FAILURE, status_code=status_code, message=message)

    @classmethod
    def permanent(cls, message: str, status_code: int | None = None) -> "ProfileFetchResult":
        return cls(status=FetchStatus.PERMANENT_FAILURE, status_code=status_code, message=message)


@runtime_checkable
class ProfileGatewayProtocol(Protocol):
    """
    Назначение:
        Порт получения профиля по ключу поиска.
    Контракт:
        - check_settings(settings) бросает MissingSettingError, если креденшелов не хватает.
        - fetch(key, settings) всегда возвращает ProfileFetchResult и не пробрасывает
          сетевые исключения.
    """

    def check_settings(self, settings: PluginSettings) -> None: ...

    def fetch(self, key: LookupKey, settings: PluginSettings) -> ProfileFetchResult: ...


__all__ = ["ProfileFetchResult", "ProfileGatewayProtocol"]
