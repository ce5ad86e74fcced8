from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

import httpx

from inserts.config import RuntimeSettings
from inserts.domain.attribution.google_ads import GoogleAdsExclusivityFilter
from inserts.domain.models import AttributionFreshnessPolicy, EventType
from inserts.infra.http.api_client import HttpApiClient
from inserts.infra.http.delivery_gateways import AetraEnrichGateway, TrackingApiGateway
from inserts.infra.http.profile_gateways import AetraProfileGateway, UnifyProfileGateway
from inserts.plugins.handlers import HandlerSet, UseCaseProtocol
from inserts.usecases.aetra_enrich_usecase import AetraEnrichUseCase
from inserts.usecases.clean_google_usecase import CleanGoogleEventsUseCase
from inserts.usecases.click_capture_usecase import ClickCaptureUseCase
from inserts.usecases.profile_lookup_usecase import ProfileLookupUseCase

AETRA_LOOKUP = "aetra-lookup"
UNIFY_LOOKUP = "unify-lookup"
AETRA_ENRICH = "aetra-enrich"
CLEAN_GOOGLE_EVENTS = "clean-google-events"
UNIFY_CLICK_CAPTURE = "unify-click-capture"

_LOOKUP_TYPES = (EventType.PAGE, EventType.TRACK, EventType.SCREEN)


@dataclass
class PluginContext:
    """
    Назначение:
        Общие зависимости сборки плагинов: настройки рантайма, логгер, транспорт httpx.
    Ограничения:
        - transport передаётся в каждый HttpApiClient (в тестах это httpx.MockTransport).
        - Созданные клиенты копятся в clients, чтобы вызывающий мог их закрыть.
    """

    runtime: RuntimeSettings
    logger: logging.Logger | None = None
    run_id: str | None = None
    transport: httpx.BaseTransport | None = None
    clients: list[HttpApiClient] = field(default_factory=list)

    def client(self, base_url: str) -> HttpApiClient:
        client = HttpApiClient(
            baseUrl=base_url,
            timeoutSeconds=self.runtime.timeout_seconds,
            tlsSkipVerify=self.runtime.tls_skip_verify,
            caFile=self.runtime.ca_file,
            retries=self.runtime.retries,
            retryBackoffSeconds=self.runtime.retry_backoff_seconds,
            transport=self.transport,
        )
        self.clients.append(client)
        return client

    def close(self) -> None:
        for client in self.clients:
            client.close()
        self.clients.clear()


@dataclass(frozen=True)
class PluginSpec:
    name: str
    description: str
    event_types: tuple[EventType, ...]
    build: Callable[[PluginContext], UseCaseProtocol]


def _aetra_lookup(ctx: PluginContext) -> UseCaseProtocol:
    return ProfileLookupUseCase(
        gateway=AetraProfileGateway(ctx.client(ctx.runtime.aetra_base_url)),
        policy=AttributionFreshnessPolicy.OVERRIDE_IF_PRESENT,
        google_ads_filter=GoogleAdsExclusivityFilter(strip_pii_without_click_id=True),
        logger=ctx.logger,
        run_id=ctx.run_id,
    )


def _unify_lookup(ctx: PluginContext) -> UseCaseProtocol:
    return ProfileLookupUseCase(
        gateway=UnifyProfileGateway(ctx.client(ctx.runtime.profiles_base_url)),
        policy=AttributionFreshnessPolicy.BACKFILL_IF_MISSING,
        google_ads_filter=GoogleAdsExclusivityFilter(strip_pii_without_click_id=True),
        logger=ctx.logger,
        run_id=ctx.run_id,
    )


def _aetra_enrich(ctx: PluginContext) -> UseCaseProtocol:
    return AetraEnrichUseCase(
        gateway=AetraEnrichGateway(ctx.client(ctx.runtime.aetra_base_url)),
        logger=ctx.logger,
        run_id=ctx.run_id,
    )


def _clean_google_events(ctx: PluginContext) -> UseCaseProtocol:
    return CleanGoogleEventsUseCase(logger=ctx.logger, run_id=ctx.run_id)


def _unify_click_capture(ctx: PluginContext) -> UseCaseProtocol:
    return ClickCaptureUseCase(
        gateway=TrackingApiGateway(ctx.client(ctx.runtime.tracking_api_url)),
        logger=ctx.logger,
        run_id=ctx.run_id,
    )


PLUGIN_SPECS: dict[str, PluginSpec] = {
    spec.name: spec
    for spec in (
        PluginSpec(AETRA_LOOKUP, "Aetra profile lookup, URL click ids override", _LOOKUP_TYPES, _aetra_lookup),
        PluginSpec(UNIFY_LOOKUP, "Unify profile lookup, URL click ids backfill", _LOOKUP_TYPES, _unify_lookup),
        PluginSpec(
            AETRA_ENRICH,
            "Aetra enrich passthrough",
            (EventType.TRACK, EventType.IDENTIFY, EventType.GROUP, EventType.PAGE, EventType.SCREEN),
            _aetra_enrich,
        ),
        PluginSpec(CLEAN_GOOGLE_EVENTS, "Google Ads click id cleanup", _LOOKUP_TYPES, _clean_google_events),
        PluginSpec(UNIFY_CLICK_CAPTURE, "Last click capture via identify", (EventType.PAGE,), _unify_click_capture),
    )
}


def list_plugins() -> list[PluginSpec]:
    return list(PLUGIN_SPECS.values())


def build_plugin(name: str, ctx: PluginContext) -> HandlerSet:
    """
    Назначение:
        Собирает HandlerSet плагина по имени.
    Ошибки/исключения:
        KeyError с понятным сообщением для неизвестного имени.
    """
    spec = PLUGIN_SPECS.get(name)
    if spec is None:
        raise KeyError(f"Unknown plugin: {name}")
    return HandlerSet.for_types(spec.name, spec.build(ctx), spec.event_types)


def build_plugins(ctx: PluginContext) -> dict[str, HandlerSet]:
    return {name: build_plugin(name, ctx) for name in PLUGIN_SPECS}


__all__ = [
    "AETRA_ENRICH",
    "AETRA_LOOKUP",
    "CLEAN_GOOGLE_EVENTS",
    "PLUGIN_SPECS",
    "PluginContext",
    "PluginSpec",
    "UNIFY_CLICK_CAPTURE",
    "UNIFY_LOOKUP",
    "build_plugin",
    "build_plugins",
    "list_plugins",
]
