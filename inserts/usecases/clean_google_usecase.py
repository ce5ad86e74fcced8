from __future__ import annotations

import logging
from typing import Any

from inserts.domain.attribution.google_ads import GoogleAdsExclusivityFilter
from inserts.domain.models import PluginSettings
from inserts.domain.outcome import Enriched, HandlerOutcome
from inserts.loggingSetup import getPluginLogger, logEvent


class CleanGoogleEventsUseCase:
    """
    Назначение/ответственность:
        Отдельный плагин очистки: оставляет один Google click id и убирает email/phone
        рядом с gbraid/wbraid. Сети не использует.
    """

    def __init__(self, logger: logging.Logger | None = None, run_id: str | None = None) -> None:
        self.google_ads_filter = GoogleAdsExclusivityFilter(strip_pii_without_click_id=False)
        self.logger = logger or getPluginLogger("clean_google")
        self.run_id = run_id

    def run(self, event: dict[str, Any], settings: PluginSettings) -> HandlerOutcome:
        decision = self.google_ads_filter.apply_to_event(event)
        logEvent(
            self.logger,
            logging.DEBUG,
            self.run_id,
            "google_ads",
            "google ads filter applied",
            survivor=decision.survivor,
            cleared=list(decision.cleared_click_ids),
            pii_removed=decision.pii_removed,
        )
        return Enriched(event=event, details={"survivor": decision.survivor})
