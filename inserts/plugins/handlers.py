from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Protocol

from inserts.domain.error_codes import ErrorCode
from inserts.domain.models import EventType, PluginSettings
from inserts.domain.outcome import Failed, HandlerOutcome
from inserts.errors import ERROR_TYPES, EventNotSupported, InvalidEventPayload, RetryError

Handler = Callable[[dict[str, Any], "Mapping[str, Any] | PluginSettings | None"], dict[str, Any]]


class UseCaseProtocol(Protocol):
    def run(self, event: dict[str, Any], settings: PluginSettings) -> HandlerOutcome: ...


def raise_for_outcome(outcome: HandlerOutcome) -> dict[str, Any]:
    """
    Назначение:
        Перевод результата ядра в соглашения хоста: событие или исключение нужного вида.
    """
    if isinstance(outcome, Failed):
        if outcome.code is ErrorCode.RETRY_ERROR:
            raise RetryError(outcome.message, status_code=outcome.status_code)
        raise ERROR_TYPES[outcome.code](outcome.message)
    return outcome.event


def _coerce_settings(settings: Mapping[str, Any] | PluginSettings | None) -> PluginSettings:
    if isinstance(settings, PluginSettings):
        return settings
    return PluginSettings.from_mapping(settings)


def supported(use_case: UseCaseProtocol) -> Handler:
    def handler(event: dict[str, Any], settings: Mapping[str, Any] | PluginSettings | None = None) -> dict[str, Any]:
        return raise_for_outcome(use_case.run(event, _coerce_settings(settings)))

    return handler


def unsupported(event_type: EventType) -> Handler:
    def handler(_event: dict[str, Any], _settings: Mapping[str, Any] | PluginSettings | None = None) -> dict[str, Any]:
        raise EventNotSupported(f"{event_type.value} is not supported")

    return handler


@dataclass(frozen=True)
class HandlerSet:
    """
    Назначение/ответственность:
        Явный набор обработчиков плагина по типам событий, передаваемый адаптеру хоста.
    Инварианты/гарантии:
        - Обработчик неподдерживаемого типа синхронно бросает EventNotSupported
          "<type> is not supported", не выполняя работы.
    """

    name: str
    on_track: Handler
    on_identify: Handler
    on_page: Handler
    on_screen: Handler
    on_group: Handler
    on_alias: Handler
    on_delete: Handler

    @classmethod
    def for_types(cls, name: str, use_case: UseCaseProtocol, types: Iterable[EventType]) -> "HandlerSet":
        accepted = set(types)
        handlers = {
            f"on_{event_type.value}": supported(use_case) if event_type in accepted else unsupported(event_type)
            for event_type in EventType
        }
        return cls(name=name, **handlers)

    def handler_for(self, event_type: EventType) -> Handler:
        return getattr(self, f"on_{event_type.value}")

    def dispatch(
        self,
        event: dict[str, Any],
        settings: Mapping[str, Any] | PluginSettings | None = None,
    ) -> dict[str, Any]:
        """
        Назначение:
            Маршрутизация события по полю type.
        Ошибки/исключения:
            InvalidEventPayload, если событие не словарь или type неизвестен.
        """
        if not isinstance(event, dict):
            raise InvalidEventPayload("Event must be a JSON object")
        event_type = EventType.parse(event.get("type"))
        if event_type is None:
            raise InvalidEventPayload(f"Unknown event type: {event.get('type')!r}")
        return self.handler_for(event_type)(event, settings)


__all__ = ["Handler", "HandlerSet", "raise_for_outcome", "supported", "unsupported"]
