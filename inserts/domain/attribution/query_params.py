from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl

from inserts.domain.attribution.click_ids import RECOGNIZED_QUERY_PARAMS
from inserts.domain.presence import is_present


def parse_query_string(search: Any) -> dict[str, str]:
    """
    Назначение:
        Разбирает query string страницы в словарь с ключами в нижнем регистре.

    Контракт:
        - Вход: строка вида "?a=1&B=2" (ведущий "?" необязателен) или None.
        - Ключи приводятся к нижнему регистру, регистр значений сохраняется.
        - При повторе ключа побеждает первое вхождение.
        - Пустые значения сохраняются как "".
    """
    if not is_present(search) or not isinstance(search, str):
        return {}
    query = search.split("#", 1)[0]
    if query.startswith("?"):
        query = query[1:]
    result: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        result.setdefault(key.lower(), value)
    return result


def extract_click_params(search: Any) -> dict[str, str]:
    """
    Назначение:
        Извлекает из query string только распознаваемые click id
        (fbclid, gclid, gbraid, wbraid, irclickid, li_fat_id, msclkid, epik, rdt_cid, sccid, ttclid).

    Выходные данные:
        dict[param, value]; параметры с пустым значением не попадают в результат.
    """
    params = parse_query_string(search)
    return {name: params[name] for name in RECOGNIZED_QUERY_PARAMS if is_present(params.get(name))}
