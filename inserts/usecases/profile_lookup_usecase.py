from __future__ import annotations

import logging
from typing import Any, Callable

from inserts.domain.attribution.assembler import assemble_event
from inserts.domain.attribution.google_ads import GoogleAdsExclusivityFilter
from inserts.domain.attribution.merge import AttributionMergeEngine
from inserts.domain.attribution.query_params import extract_click_params
from inserts.domain.error_codes import ErrorCode, FetchStatus
from inserts.domain.exceptions import MissingIdentityError, MissingSettingError
from inserts.domain.identity_keys import resolve_lookup_key
from inserts.domain.models import AttributionFreshnessPolicy, EventType, PluginSettings
from inserts.domain.outcome import Enriched, Failed, HandlerOutcome, Unchanged
from inserts.domain.ports.profile_gateway import ProfileGatewayProtocol
from inserts.domain.profile import ProfileDocument
from inserts.loggingSetup import getPluginLogger, logEvent
from inserts.timeUtils import getNowEpochMillis, parseEpochMillis


class ProfileLookupUseCase:
    """
    Назначение/ответственность:
        Обогащение события профилем: ключ -> запрос профиля -> слияние атрибуции ->
        фильтр Google Ads -> сборка результата.
    Взаимодействия:
        ProfileGatewayProtocol (сеть), AttributionMergeEngine, GoogleAdsExclusivityFilter.
    Ограничения:
        - Одно сетевое обращение на вызов, состояние между вызовами не хранится.
        - Событие изменяется только на шаге сборки; при любом сбое оно остаётся нетронутым.
    """

    def __init__(
        self,
        gateway: ProfileGatewayProtocol,
        policy: AttributionFreshnessPolicy,
        google_ads_filter: GoogleAdsExclusivityFilter | None = None,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
        clock: Callable[[], int] = getNowEpochMillis,
    ) -> None:
        self.gateway = gateway
        self.engine = AttributionMergeEngine(policy)
        self.google_ads_filter = google_ads_filter or GoogleAdsExclusivityFilter()
        self.logger = logger or getPluginLogger("lookup")
        self.run_id = run_id
        self.clock = clock

    def run(self, event: dict[str, Any], settings: PluginSettings) -> HandlerOutcome:
        """
        Контракт (вход/выход):
            Вход: событие и настройки вызова.
            Выход: Enriched | Unchanged | Failed.
        Алгоритм:
            - нет креденшелов или идентификаторов -> Failed(VALIDATION_ERROR);
            - 404 -> Unchanged;
            - сеть/5xx/429 -> Failed(RETRY_ERROR) со статусом или сообщением;
            - прочие не-2xx -> Unchanged (логируется, не пробрасывается);
            - профиль найден -> Enriched.
        """
        try:
            self.gateway.check_settings(settings)
            key = resolve_lookup_key(event)
        except (MissingSettingError, MissingIdentityError) as exc:
            logEvent(self.logger, logging.ERROR, self.run_id, "validation", str(exc))
            return Failed(code=ErrorCode.VALIDATION_ERROR, message=str(exc))

        result = self.gateway.fetch(key, settings)

        if result.status is FetchStatus.NOT_FOUND:
            logEvent(self.logger, logging.INFO, self.run_id, "profile", "profile not found", key=key.kind.value)
            return Unchanged(event=event, reason="profile_not_found")
        if result.status is FetchStatus.TRANSIENT_FAILURE:
            message = result.message or f"Failed with {result.status_code}"
            logEvent(
                self.logger,
                logging.WARNING,
                self.run_id,
                "profile",
                "profile lookup will be retried",
                status=result.status_code,
                reason=result.message,
            )
            return Failed(code=ErrorCode.RETRY_ERROR, message=message, status_code=result.status_code)
        if result.status is FetchStatus.PERMANENT_FAILURE:
            logEvent(
                self.logger,
                logging.WARNING,
                self.run_id,
                "profile",
                "profile lookup failed, event passed through",
                status=result.status_code,
                reason=result.message,
            )
            return Unchanged(event=event, reason="profile_lookup_failed")

        self.reconcile(event, result.profile or ProfileDocument.empty(), settings)
        return Enriched(event=event)

    def reconcile(self, event: dict[str, Any], profile: ProfileDocument, settings: PluginSettings) -> dict[str, Any]:
        """
        Назначение:
            Слияние уже полученного профиля с событием (без сети).
        Ограничения:
            - URL страницы учитывается только для page-событий.
            - Без timestamp события используется текущее время.
        """
        event_type = EventType.parse(event.get("type"))
        click_params: dict[str, str] = {}
        if event_type is EventType.PAGE:
            context = event.get("context")
            page = context.get("page") if isinstance(context, dict) else None
            search = page.get("search") if isinstance(page, dict) else None
            click_params = extract_click_params(search)

        event_millis = parseEpochMillis(event.get("timestamp"))
        if event_millis is None:
            event_millis = self.clock()

        reconciled = self.engine.merge(event, profile, click_params, event_millis)
        if click_params:
            logEvent(
                self.logger,
                logging.DEBUG,
                self.run_id,
                "merge",
                "url click ids merged",
                params=sorted(click_params),
                policy=self.engine.policy.value,
            )

        if settings.google_ads:
            decision = self.google_ads_filter.apply(reconciled)
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

        return assemble_event(event, reconciled)
