from __future__ import annotations

from dataclasses import dataclass


@dataclass
class MissingIdentityError(Exception):
    """
    Назначение:
        Событие не содержит ни userId, ни anonymousId, ключ поиска профиля не построить.
    """

    event_type: str | None = None

    def __str__(self) -> str:
        return "User ID or Anonymous ID is required"


@dataclass
class MissingSettingError(Exception):
    """
    Назначение:
        Отсутствуют настройки, без которых обращение к внешнему API невозможно.
    Инварианты/гарантии:
        - message сформулирован для оператора и называет отсутствующие поля.
    """

    fields: tuple[str, ...]
    message: str

    def __str__(self) -> str:
        return self.message


__all__ = ["MissingIdentityError", "MissingSettingError"]
