from __future__ import annotations

import re
from typing import Any, Mapping

from inserts.domain.attribution.click_ids import (
    CLICK_ID_FIELDS,
    GOOGLE_CLICK_ID_PRIORITY,
    facebook_click_cookie,
    reddit_uuid,
)
from inserts.domain.attribution.query_params import extract_click_params
from inserts.domain.presence import is_present

CAMPAIGN_PARTS: tuple[str, ...] = ("name", "source", "medium", "content", "term")

_WORD_PATTERN = re.compile(r"[A-Z]?[a-z]+|[A-Z]+(?![a-z])|\d+")


def camel_case(value: str) -> str:
    """
    Назначение:
        "last_li_fat_id" -> "lastLiFatId", "last_userAgent" -> "lastUserAgent".
    """
    words = _WORD_PATTERN.findall(value)
    if not words:
        return ""
    head, *rest = words
    return head.lower() + "".join(word.capitalize() for word in rest)


def flatten_traits(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Назначение:
        Разворачивает вложенные словари в плоские camelCase-ключи.

    Контракт:
        - {"last": {"campaign": {"name": "x"}}} -> {"lastCampaignName": "x"}
        - значения None пропускаются, пустые строки сохраняются.
    """
    result: dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping):
            result.update(flatten_traits(value, f"{path}_"))
        elif isinstance(value, (list, tuple)):
            result.update(flatten_traits(dict(enumerate(value)), f"{path}_"))
        elif value is not None:
            result[camel_case(path)] = value
    return result


def facebook_browser_id(event_millis: int, anonymous_id: str) -> str | None:
    """
    Назначение:
        fbp = <millis>.<anonymousId как шестнадцатеричное число в десятичной записи>.
    Выходные данные:
        None, если anonymousId без дефисов не является шестнадцатеричным числом.
    """
    digits = anonymous_id.replace("-", "")
    try:
        return f"{event_millis}.{int(digits, 16)}"
    except ValueError:
        return None


def build_click_traits(event: Mapping[str, Any], event_millis: int) -> dict[str, Any]:
    """
    Назначение:
        Трейты "последнего клика" из page-события для identify-вызова.

    Алгоритм:
        - fbclid -> fbclid и синтезированный fbc;
        - любой из Google id -> все три поля, отсутствующие как "";
        - прочие click id как есть;
        - campaign, если задано хотя бы одно поле;
        - при anonymousId: fbp и rdt_uuid;
        - ip и userAgent события.
    """
    context = event.get("context") if isinstance(event.get("context"), Mapping) else {}
    page = context.get("page") if isinstance(context.get("page"), Mapping) else {}
    params = extract_click_params(page.get("search"))
    traits: dict[str, Any] = {}

    fbclid = params.get("fbclid")
    if fbclid:
        traits["fbclid"] = fbclid
        traits["fbc"] = facebook_click_cookie(event_millis, fbclid)

    if any(params.get(name) for name in GOOGLE_CLICK_ID_PRIORITY):
        for name in GOOGLE_CLICK_ID_PRIORITY:
            traits[name] = params.get(name, "")

    for item in CLICK_ID_FIELDS:
        if item.network in ("facebook", "google"):
            continue
        value = params.get(item.query_param)
        if value:
            traits[item.field] = value

    campaign = context.get("campaign") if isinstance(context.get("campaign"), Mapping) else {}
    parts = {part: campaign.get(part) or "" for part in CAMPAIGN_PARTS}
    if any(parts.values()):
        traits["campaign"] = parts

    anonymous_id = event.get("anonymousId")
    if is_present(anonymous_id):
        fbp = facebook_browser_id(event_millis, str(anonymous_id))
        if fbp is not None:
            traits["fbp"] = fbp
        traits["rdt_uuid"] = reddit_uuid(event_millis, str(anonymous_id))

    traits["ip"] = context.get("ip")
    traits["userAgent"] = context.get("userAgent")
    return flatten_traits({"last": traits})
