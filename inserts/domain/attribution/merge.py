from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from inserts.domain.attribution.attribution_set import AttributionSet
from inserts.domain.attribution.click_ids import (
    CLICK_ID_FIELDS,
    REDDIT_UUID_FIELD,
    facebook_click_cookie,
    reddit_uuid,
)
from inserts.domain.models import AttributionFreshnessPolicy, Provenance
from inserts.domain.presence import is_present
from inserts.domain.profile import ProfileDocument


@dataclass
class ReconciledProfile:
    """
    Назначение:
        Результат слияния, готовый к наложению на событие.

    Поля:
        attribution: итоговые click id (включая очищенные слоты).
        properties: прочие свойства профиля для event.properties.
        traits: трейты для event.context.traits.
        context: поля для event.context (ip, userAgent и контекст профиля).
        cleared_traits: трейты, которые нужно удалить из события.
    """

    attribution: AttributionSet
    properties: dict[str, Any] = field(default_factory=dict)
    traits: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    cleared_traits: set[str] = field(default_factory=set)

    def clear_trait(self, name: str) -> None:
        self.traits.pop(name, None)
        self.cleared_traits.add(name)


class AttributionMergeEngine:
    """
    Назначение/ответственность:
        Сводит click id из трёх источников (свойства события, профиль, URL страницы)
        в один согласованный набор по политике свежести.
    Ограничения:
        - Чистая функция над уже полученными данными, исключений не бросает.
        - URL-значения передаются только для page-событий, решение об этом принимает вызывающий.
    """

    def __init__(self, policy: AttributionFreshnessPolicy):
        self.policy = policy

    def _takes_url_value(self, profile_supplied: bool, already_present: bool) -> bool:
        # backfill: any settled value (event or profile) blocks the URL value
        if self.policy is AttributionFreshnessPolicy.BACKFILL_IF_MISSING:
            return not already_present
        return profile_supplied

    def merge(
        self,
        event: Mapping[str, Any],
        profile: ProfileDocument,
        click_params: Mapping[str, str],
        event_millis: int,
    ) -> ReconciledProfile:
        """
        Контракт (вход/выход):
            Вход: событие, нормализованный профиль, click id из URL, epoch millis события.
            Выход: ReconciledProfile.
        Алгоритм:
            - засеять набор значениями event.properties;
            - наложить click id профиля;
            - для каждого click id из URL применить политику свежести
              (backfill: только в пустой слот; override: только если профиль дал значение;
               fbc синтезируется как fb.1.<millis>.<fbclid>);
            - если rdt_cid установлен из профиля или URL, пересчитать rdt_uuid;
            - ip/userAgent события приоритетнее значений профиля.
        """
        attribution = AttributionSet.from_properties(_mapping(event.get("properties")))
        reddit_set = False

        for item in CLICK_ID_FIELDS:
            value = profile.click_ids.get(item.field)
            if is_present(value):
                attribution.set(item.field, value, Provenance.PROFILE)
                reddit_set = reddit_set or item.field == "rdt_cid"

        for item in CLICK_ID_FIELDS:
            url_value = click_params.get(item.query_param)
            if not is_present(url_value):
                continue
            if not self._takes_url_value(profile.supplies(item.field), attribution.has(item.field)):
                continue
            if item.field == "fbc":
                url_value = facebook_click_cookie(event_millis, url_value)
            attribution.set(item.field, url_value, Provenance.URL)
            reddit_set = reddit_set or item.field == "rdt_cid"

        anonymous_id = event.get("anonymousId")
        if reddit_set and attribution.has("rdt_cid") and is_present(anonymous_id):
            attribution.set(REDDIT_UUID_FIELD, reddit_uuid(event_millis, str(anonymous_id)), Provenance.DERIVED)

        event_context = _mapping(event.get("context"))
        context = {k: v for k, v in profile.context.items() if k not in ("ip", "userAgent")}
        ip = _first_present(event_context.get("ip"), profile.last_ip)
        if ip is not None:
            context["ip"] = ip
        user_agent = _first_present(event_context.get("userAgent"), profile.last_user_agent)
        if user_agent is not None:
            context["userAgent"] = user_agent

        return ReconciledProfile(
            attribution=attribution,
            properties={k: v for k, v in profile.properties.items() if is_present(v)},
            traits={k: v for k, v in profile.traits.items() if is_present(v)},
            context=context,
        )


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _first_present(*values: Any) -> Any:
    for value in values:
        if is_present(value):
            return value
    return None
