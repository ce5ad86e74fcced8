from __future__ import annotations

import logging
from typing import Any

from inserts.domain.attribution.click_capture import build_click_traits
from inserts.domain.error_codes import ErrorCode, FetchStatus
from inserts.domain.models import PluginSettings
from inserts.domain.outcome import Failed, HandlerOutcome, Unchanged
from inserts.domain.presence import is_present, present_or_none
from inserts.infra.http.api_client import ApiError
from inserts.infra.http.delivery_gateways import TrackingApiGateway
from inserts.loggingSetup import getPluginLogger, logEvent
from inserts.timeUtils import parseEpochMillis


class ClickCaptureUseCase:
    """
    Назначение/ответственность:
        Destination для page-событий: извлекает click id, UTM-кампанию и браузерные
        идентификаторы и отправляет их identify-вызовом как трейты last*.
    Ограничения:
        - Событие не изменяется.
        - 5xx/429 и сетевые сбои -> Failed(RETRY_ERROR); прочие статусы не считаются ошибкой.
    """

    def __init__(self, gateway: TrackingApiGateway, logger: logging.Logger | None = None, run_id: str | None = None):
        self.gateway = gateway
        self.logger = logger or getPluginLogger("click_capture")
        self.run_id = run_id

    def build_payload(self, event: dict[str, Any], settings: PluginSettings, event_millis: int) -> dict[str, Any]:
        return {
            "writeKey": settings.write_key,
            "userId": present_or_none(event.get("userId")),
            "anonymousId": present_or_none(event.get("anonymousId")),
            "traits": build_click_traits(event, event_millis),
        }

    def run(self, event: dict[str, Any], settings: PluginSettings) -> HandlerOutcome:
        if not settings.write_key:
            return Failed(code=ErrorCode.VALIDATION_ERROR, message="Write key is required")
        timestamp = event.get("timestamp")
        if not is_present(timestamp):
            return Failed(code=ErrorCode.VALIDATION_ERROR, message="Timestamp is missing")
        event_millis = parseEpochMillis(timestamp)
        if event_millis is None:
            return Failed(code=ErrorCode.INVALID_EVENT_PAYLOAD, message=f"Timestamp is not ISO-8601: {timestamp}")

        payload = self.build_payload(event, settings, event_millis)
        logEvent(
            self.logger,
            logging.DEBUG,
            self.run_id,
            "capture",
            "identify payload built",
            userId=payload.get("userId"),
            traits=payload.get("traits"),
        )
        try:
            status_code, _body, _snippet = self.gateway.identify(payload)
        except ApiError as err:
            return Failed(code=ErrorCode.RETRY_ERROR, message=err.message)

        if FetchStatus.from_status(status_code) is FetchStatus.TRANSIENT_FAILURE:
            return Failed(code=ErrorCode.RETRY_ERROR, message=f"Failed with {status_code}", status_code=status_code)
        if status_code >= 300:
            logEvent(self.logger, logging.WARNING, self.run_id, "capture", "identify rejected", status=status_code)
        return Unchanged(event=event, reason="identify_sent")
