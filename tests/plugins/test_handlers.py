from __future__ import annotations

import pytest

from inserts.domain.error_codes import ErrorCode
from inserts.domain.models import EventType, PluginSettings
from inserts.domain.outcome import Enriched, Failed, Unchanged
from inserts.errors import (
    DropEvent,
    EventNotSupported,
    InvalidEventPayload,
    RetryError,
    ValidationError,
)
from inserts.plugins.handlers import HandlerSet, raise_for_outcome


class RecordingUseCase:
    def __init__(self, outcome_factory):
        self.outcome_factory = outcome_factory
        self.calls: list[tuple[dict, PluginSettings]] = []

    def run(self, event, settings):
        self.calls.append((event, settings))
        return self.outcome_factory(event)


def _handlers(outcome_factory=lambda event: Enriched(event=event)):
    usecase = RecordingUseCase(outcome_factory)
    handlers = HandlerSet.for_types("test", usecase, (EventType.PAGE, EventType.TRACK, EventType.SCREEN))
    return handlers, usecase


def test_identify_is_not_supported():
    handlers, usecase = _handlers()

    with pytest.raises(EventNotSupported) as exc:
        handlers.on_identify({"type": "identify", "userId": "u"}, {})

    assert str(exc.value) == "identify is not supported"
    assert usecase.calls == []


@pytest.mark.parametrize("event_type", ["group", "alias", "delete"])
def test_other_unsupported_types(event_type):
    handlers, _ = _handlers()

    with pytest.raises(EventNotSupported, match=f"^{event_type} is not supported$"):
        handlers.dispatch({"type": event_type})


def test_dispatch_routes_by_type_and_coerces_settings():
    handlers, usecase = _handlers()

    result = handlers.dispatch({"type": "page"}, {"writeKey": "wk", "googleAds": True})

    assert result == {"type": "page"}
    settings = usecase.calls[0][1]
    assert settings.write_key == "wk"
    assert settings.google_ads is True


def test_dispatch_rejects_unknown_type():
    handlers, _ = _handlers()

    with pytest.raises(InvalidEventPayload):
        handlers.dispatch({"type": "bogus"})


def test_unchanged_returns_original_event():
    handlers, _ = _handlers(lambda event: Unchanged(event=event, reason="profile_not_found"))
    event = {"type": "track"}

    assert handlers.on_track(event, PluginSettings()) is event


@pytest.mark.parametrize(
    "code, error_type",
    [
        (ErrorCode.VALIDATION_ERROR, ValidationError),
        (ErrorCode.INVALID_EVENT_PAYLOAD, InvalidEventPayload),
        (ErrorCode.DROP_EVENT, DropEvent),
        (ErrorCode.EVENT_NOT_SUPPORTED, EventNotSupported),
    ],
)
def test_failed_outcome_raises_matching_error(code, error_type):
    with pytest.raises(error_type, match="boom"):
        raise_for_outcome(Failed(code=code, message="boom"))


def test_retry_error_carries_status_code():
    with pytest.raises(RetryError) as exc:
        raise_for_outcome(Failed(code=ErrorCode.RETRY_ERROR, message="Failed with 503", status_code=503))

    assert exc.value.status_code == 503
    assert exc.value.retryable is True
    assert exc.value.to_dict()["code"] == "RETRY_ERROR"
