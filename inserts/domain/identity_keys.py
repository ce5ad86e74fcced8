from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from inserts.domain.exceptions import MissingIdentityError
from inserts.domain.presence import is_present


class LookupKind(str, Enum):
    USER = "user_id"
    ANONYMOUS = "anonymous_id"


@dataclass(frozen=True)
class LookupKey:
    """
    Назначение:
        Value Object ключа поиска профиля.

    Инварианты/гарантии:
        - value непустой.
        - str(key) даёт сегмент пути сервиса профилей: "user_id:<id>" / "anonymous_id:<id>".
    """

    kind: LookupKind
    value: str

    def __str__(self) -> str:
        return format_identity_key(self.kind.value, self.value)


def format_identity_key(name: str, value: str) -> str:
    """
    Назначение:
        Унифицированное представление ключа идентичности.
    """
    return f"{name}:{value}"


def resolve_lookup_key(event: Mapping[str, Any]) -> LookupKey:
    """
    Назначение:
        Выводит единственный ключ поиска профиля из идентификаторов события.

    Алгоритм:
        - userId, если задан и непуст;
        - иначе anonymousId;
        - иначе MissingIdentityError.
    """
    user_id = event.get("userId")
    if is_present(user_id):
        return LookupKey(kind=LookupKind.USER, value=str(user_id))
    anonymous_id = event.get("anonymousId")
    if is_present(anonymous_id):
        return LookupKey(kind=LookupKind.ANONYMOUS, value=str(anonymous_id))
    raise MissingIdentityError(event_type=event.get("type"))
