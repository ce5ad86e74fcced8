from __future__ import annotations

import math
from typing import Any


def is_present(value: Any) -> bool:
    """
    Назначение:
        Единая политика "значение задано" для полей событий и профилей.

    Контракт:
        - None, пустая строка, 0, 0.0, NaN и False считаются отсутствующими.
        - Любая непустая строка (включая "0" и "false") считается заданной.
        - dict/list считаются заданными даже пустыми.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return False
        return value != 0
    return True


def present_or_none(value: Any) -> Any:
    """Возвращает value, если оно задано по is_present, иначе None."""
    return value if is_present(value) else None
