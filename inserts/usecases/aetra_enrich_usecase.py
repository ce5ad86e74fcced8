from __future__ import annotations

import logging
from typing import Any

from inserts.domain.error_codes import ErrorCode, FetchStatus
from inserts.domain.models import PluginSettings
from inserts.domain.outcome import Enriched, Failed, HandlerOutcome, Unchanged
from inserts.infra.http.api_client import ApiError
from inserts.infra.http.delivery_gateways import AetraEnrichGateway
from inserts.loggingSetup import getPluginLogger, logEvent


class AetraEnrichUseCase:
    """
    Назначение/ответственность:
        Сквозное обогащение: событие целиком уходит в Aetra, ответ 2xx заменяет событие.
    Ограничения:
        - Без writeKey/token событие возвращается как есть (плагин считается не настроенным).
        - 5xx/429 и сетевые сбои -> Failed(RETRY_ERROR); прочие статусы -> Unchanged.
    """

    def __init__(self, gateway: AetraEnrichGateway, logger: logging.Logger | None = None, run_id: str | None = None):
        self.gateway = gateway
        self.logger = logger or getPluginLogger("aetra_enrich")
        self.run_id = run_id

    def run(self, event: dict[str, Any], settings: PluginSettings) -> HandlerOutcome:
        if not settings.write_key or not settings.token:
            logEvent(self.logger, logging.INFO, self.run_id, "config", "writeKey/token not set, enrichment skipped")
            return Unchanged(event=event, reason="missing_credentials")

        try:
            status_code, body, _snippet = self.gateway.enrich(event, settings.write_key, settings.token)
        except ApiError as err:
            logEvent(self.logger, logging.WARNING, self.run_id, "enrich", f"enrich will be retried: {err.message}")
            return Failed(code=ErrorCode.RETRY_ERROR, message=err.message)

        status = FetchStatus.from_status(status_code)
        if status is FetchStatus.TRANSIENT_FAILURE:
            return Failed(code=ErrorCode.RETRY_ERROR, message=f"Failed with {status_code}", status_code=status_code)
        if status is not FetchStatus.FOUND or not isinstance(body, dict):
            logEvent(
                self.logger,
                logging.WARNING,
                self.run_id,
                "enrich",
                f"enrich returned status={status_code}, event passed through",
            )
            return Unchanged(event=event, reason="enrich_failed")
        return Enriched(event=body)
