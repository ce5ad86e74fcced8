from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from inserts.common.sanitize import maskSecretsInObject


class EventType(str, Enum):
    """
    Назначение:
        Дискриминант события аналитики (поле `type`).
    """

    TRACK = "track"
    IDENTIFY = "identify"
    PAGE = "page"
    SCREEN = "screen"
    GROUP = "group"
    ALIAS = "alias"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: Any) -> "EventType | None":
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class AttributionFreshnessPolicy(str, Enum):
    """
    Назначение:
        Политика использования click id из URL страницы относительно профиля.

    Значения:
        BACKFILL_IF_MISSING:
            URL-значение берётся, только если ни профиль, ни свойства события
            не дали значения поля (компенсирует задержку записи профиля сразу после клика).
        OVERRIDE_IF_PRESENT:
            URL-значение берётся, только если профиль его дал
            (значение профиля считается устаревшим относительно текущей навигации).

    Ограничения:
        - При OVERRIDE_IF_PRESENT новый click id из URL игнорируется, пока профиль
          не содержит значения этого поля; итог может чередоваться между
          сохранённым и URL-значением на последовательных просмотрах.
    """

    BACKFILL_IF_MISSING = "backfill_if_missing"
    OVERRIDE_IF_PRESENT = "override_if_present"


class Provenance(str, Enum):
    """Источник значения в слоте атрибуции."""

    EVENT = "event"
    PROFILE = "profile"
    URL = "url"
    DERIVED = "derived"


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return bool(value)


@dataclass(frozen=True)
class PluginSettings:
    """
    Назначение:
        Неизменяемые настройки одного вызова плагина, полученные от хоста.

    Поля:
        write_key/token: креденшелы Aetra (и write key трекинга для click-capture).
        space_id/space_token: креденшелы сервиса профилей Unify.
        google_ads: включает фильтр эксклюзивности Google Ads.
        extra: прочие ключи настроек, переданные хостом как есть.
    """

    write_key: str | None = None
    token: str | None = None
    space_id: str | None = None
    space_token: str | None = None
    google_ads: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "PluginSettings":
        """
        Контракт:
            Вход: mapping настроек в нотации хоста (writeKey, spaceToken, googleAds ...).
            Выход: PluginSettings; пустые строки считаются отсутствующими значениями.
        """
        data = dict(raw or {})
        known = ("writeKey", "token", "spaceId", "spaceToken", "googleAds")
        return cls(
            write_key=_as_text(data.get("writeKey")),
            token=_as_text(data.get("token")),
            space_id=_as_text(data.get("spaceId")),
            space_token=_as_text(data.get("spaceToken")),
            google_ads=_as_flag(data.get("googleAds", False)),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def masked(self) -> dict[str, Any]:
        """Представление для логов: writeKey, token и spaceToken заменяются на "***"."""
        return maskSecretsInObject(
            {
                "writeKey": self.write_key,
                "token": self.token,
                "spaceId": self.space_id,
                "spaceToken": self.space_token,
                "googleAds": self.google_ads,
            }
        )


__all__ = [
    "EventType",
    "AttributionFreshnessPolicy",
    "Provenance",
    "PluginSettings",
]
