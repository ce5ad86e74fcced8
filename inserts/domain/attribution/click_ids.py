from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClickIdField:
    """
    Назначение:
        Описание одного идентификатора рекламного клика.

    Поля:
        network: рекламная сеть.
        field: имя поля в event.properties.
        query_param: имя параметра в URL страницы (в нижнем регистре).
        profile_trait: имя трейта в плоском профиле (lastXxx).
    """

    network: str
    field: str
    query_param: str
    profile_trait: str


CLICK_ID_FIELDS: tuple[ClickIdField, ...] = (
    ClickIdField("facebook", "fbc", "fbclid", "lastFbc"),
    ClickIdField("google", "gclid", "gclid", "lastGclid"),
    ClickIdField("google", "gbraid", "gbraid", "lastGbraid"),
    ClickIdField("google", "wbraid", "wbraid", "lastWbraid"),
    ClickIdField("impact", "irclickid", "irclickid", "lastIrclickid"),
    ClickIdField("linkedin", "li_fat_id", "li_fat_id", "lastLiFatId"),
    ClickIdField("microsoft", "msclkid", "msclkid", "lastMsclkid"),
    ClickIdField("pinterest", "epik", "epik", "lastEpik"),
    ClickIdField("reddit", "rdt_cid", "rdt_cid", "lastRdtCid"),
    ClickIdField("snapchat", "sccid", "sccid", "lastSccid"),
    ClickIdField("tiktok", "ttclid", "ttclid", "lastTtclid"),
)

# Компаньон rdt_cid, всегда вычисляется при слиянии.
REDDIT_UUID_FIELD = "rdt_uuid"

GOOGLE_CLICK_ID_PRIORITY: tuple[str, ...] = ("gclid", "gbraid", "wbraid")

RECOGNIZED_QUERY_PARAMS: tuple[str, ...] = tuple(item.query_param for item in CLICK_ID_FIELDS)

ATTRIBUTION_FIELDS: tuple[str, ...] = tuple(item.field for item in CLICK_ID_FIELDS) + (REDDIT_UUID_FIELD,)


def facebook_click_cookie(event_millis: int, fbclid: str) -> str:
    """Формат fbc: fb.1.<epoch_millis>.<fbclid>."""
    return f"fb.1.{event_millis}.{fbclid}"


def reddit_uuid(event_millis: int, anonymous_id: str) -> str:
    return f"{event_millis}.{anonymous_id}"
