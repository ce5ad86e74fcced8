from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from inserts.domain.attribution.click_ids import GOOGLE_CLICK_ID_PRIORITY
from inserts.domain.attribution.merge import ReconciledProfile
from inserts.domain.presence import is_present

PII_TRAITS: tuple[str, ...] = ("email", "phone")


@dataclass(frozen=True)
class GoogleAdsDecision:
    """
    Назначение:
        Итог фильтра эксклюзивности для логирования и тестов.
    """

    survivor: str | None
    cleared_click_ids: tuple[str, ...]
    pii_removed: bool


def select_google_click_id(values: Mapping[str, Any]) -> str | None:
    """Первый заданный идентификатор в порядке gclid > gbraid > wbraid."""
    for name in GOOGLE_CLICK_ID_PRIORITY:
        if is_present(values.get(name)):
            return name
    return None


class GoogleAdsExclusivityFilter:
    """
    Назначение/ответственность:
        Обходит дефект destination Google Ads: в событие уходит не более одного
        из gclid/gbraid/wbraid, а email/phone удаляются, если выжил не gclid.
    Ограничения:
        - Применяется после слияния: значения из URL участвуют в решении наравне с профилем.
        - strip_pii_without_click_id управляет удалением PII, когда ни одного id нет
          (True для lookup-плагинов, False для отдельного плагина очистки).
    """

    def __init__(self, strip_pii_without_click_id: bool = True):
        self.strip_pii_without_click_id = strip_pii_without_click_id

    def _must_strip_pii(self, survivor: str | None) -> bool:
        if survivor == "gclid":
            return False
        if survivor is None:
            return self.strip_pii_without_click_id
        return True

    def apply(self, reconciled: ReconciledProfile) -> GoogleAdsDecision:
        attribution = reconciled.attribution
        survivor = select_google_click_id(attribution.values())
        cleared = tuple(name for name in GOOGLE_CLICK_ID_PRIORITY if name != survivor and survivor is not None)
        for name in cleared:
            attribution.clear(name)
        strip = self._must_strip_pii(survivor)
        if strip:
            for name in PII_TRAITS:
                reconciled.clear_trait(name)
        return GoogleAdsDecision(survivor=survivor, cleared_click_ids=cleared, pii_removed=strip)

    def apply_to_event(self, event: dict[str, Any]) -> GoogleAdsDecision:
        """
        Назначение:
            Та же политика, применённая напрямую к event.properties и event.context.traits.
        """
        properties = event.get("properties")
        if not isinstance(properties, dict):
            properties = {}
        survivor = select_google_click_id(properties)
        cleared: tuple[str, ...] = ()
        if survivor is not None:
            cleared = tuple(name for name in GOOGLE_CLICK_ID_PRIORITY if name != survivor)
            for name in cleared:
                properties.pop(name, None)
        strip = self._must_strip_pii(survivor)
        if strip:
            context = event.get("context")
            traits = context.get("traits") if isinstance(context, dict) else None
            if isinstance(traits, dict):
                for name in PII_TRAITS:
                    traits.pop(name, None)
        return GoogleAdsDecision(survivor=survivor, cleared_click_ids=cleared, pii_removed=strip)
