from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from inserts.domain.attribution.click_ids import CLICK_ID_FIELDS, REDDIT_UUID_FIELD
from inserts.domain.presence import is_present

UNIFY_PROFILE_TRAITS: tuple[str, ...] = (
    "lastCampaignName",
    "lastCampaignSource",
    "lastCampaignMedium",
    "lastCampaignContent",
    "lastCampaignTerm",
    "lastFbclid",
    "lastFbc",
    "lastGclid",
    "lastGbraid",
    "lastWbraid",
    "lastIrclickid",
    "lastLiFatId",
    "lastMsclkid",
    "lastEpik",
    "lastRdtCid",
    "lastRdtUuid",
    "lastSccid",
    "lastTtclid",
    "lastIp",
    "lastUserAgent",
    "email",
    "phone",
    "firstName",
    "lastName",
    "address",
    "gender",
    "birthday",
)

UNIFY_PERSON_TRAITS: tuple[str, ...] = ("email", "phone", "firstName", "lastName", "gender", "birthday")
ADDRESS_PARTS: tuple[str, ...] = ("street", "city", "state", "postalCode", "country")

_CLICK_FIELD_NAMES = {item.field for item in CLICK_ID_FIELDS}


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


@dataclass(frozen=True)
class ProfileDocument:
    """
    Назначение:
        Нормализованный ответ сервиса профилей, не зависящий от формы ответа.

    Поля:
        click_ids: значения click id по имени поля event.properties (fbc, gclid, ...).
        properties: прочие свойства профиля, сливаемые в event.properties как есть.
        traits: трейты для event.context.traits.
        context: прочие поля контекста (без ip/userAgent).
        last_ip / last_user_agent: запасные значения для context.ip / context.userAgent.

    Инварианты/гарантии:
        - Отсутствующее поле означает "неизвестно", а не ошибку.
    """

    click_ids: Mapping[str, Any] = field(default_factory=dict)
    properties: Mapping[str, Any] = field(default_factory=dict)
    traits: Mapping[str, Any] = field(default_factory=dict)
    context: Mapping[str, Any] = field(default_factory=dict)
    last_ip: Any = None
    last_user_agent: Any = None

    def supplies(self, click_field: str) -> bool:
        return is_present(self.click_ids.get(click_field))

    @classmethod
    def empty(cls) -> "ProfileDocument":
        return cls()

    @classmethod
    def from_segmented(cls, body: Any) -> "ProfileDocument":
        """
        Назначение:
            Разбор ответа вида {context, properties, traits} (Aetra).

        Алгоритм:
            - click id и rdt_uuid из properties уходят в click_ids, остальное в properties.
            - ip/userAgent из context становятся запасными значениями.
        """
        data = _mapping(body)
        properties = _mapping(data.get("properties"))
        context = dict(_mapping(data.get("context")))
        last_ip = context.pop("ip", None)
        last_user_agent = context.pop("userAgent", None)
        click_ids = {k: v for k, v in properties.items() if k in _CLICK_FIELD_NAMES}
        extra = {
            k: v for k, v in properties.items() if k not in _CLICK_FIELD_NAMES and k != REDDIT_UUID_FIELD
        }
        return cls(
            click_ids=click_ids,
            properties=extra,
            traits=dict(_mapping(data.get("traits"))),
            context=context,
            last_ip=last_ip,
            last_user_agent=last_user_agent,
        )

    @classmethod
    def from_traits(cls, body: Any) -> "ProfileDocument":
        """
        Назначение:
            Разбор плоского ответа вида {traits: {...}} (Unify).

        Алгоритм:
            - click id берутся из lastXxx трейтов (lastFbc, lastGclid, ...).
            - персональные трейты переносятся как есть, address собирается из известных частей.
            - lastIp/lastUserAgent становятся запасными значениями контекста.
        """
        profile = _mapping(_mapping(body).get("traits"))
        click_ids = {
            item.field: profile.get(item.profile_trait)
            for item in CLICK_ID_FIELDS
            if is_present(profile.get(item.profile_trait))
        }
        traits: dict[str, Any] = {
            name: profile[name] for name in UNIFY_PERSON_TRAITS if is_present(profile.get(name))
        }
        raw_address = _mapping(profile.get("address"))
        address = {part: raw_address[part] for part in ADDRESS_PARTS if is_present(raw_address.get(part))}
        if address:
            traits["address"] = address
        return cls(
            click_ids=click_ids,
            traits=traits,
            last_ip=profile.get("lastIp"),
            last_user_agent=profile.get("lastUserAgent"),
        )
