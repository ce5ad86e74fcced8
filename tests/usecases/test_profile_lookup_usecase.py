from __future__ import annotations

import copy

import pytest

from inserts.domain.attribution.google_ads import GoogleAdsExclusivityFilter
from inserts.domain.error_codes import ErrorCode
from inserts.domain.exceptions import MissingSettingError
from inserts.domain.models import AttributionFreshnessPolicy, PluginSettings
from inserts.domain.outcome import Enriched, Failed, Unchanged
from inserts.domain.ports.profile_gateway import ProfileFetchResult
from inserts.domain.profile import ProfileDocument
from inserts.usecases.profile_lookup_usecase import ProfileLookupUseCase

SETTINGS = PluginSettings(write_key="wk", token="tok")
SETTINGS_WITH_ADS = PluginSettings(write_key="wk", token="tok", google_ads=True)
NOW = 1700000000000


class FakeGateway:
    def __init__(self, result: ProfileFetchResult, required: bool = True):
        self.result = result
        self.required = required
        self.keys: list[str] = []

    def check_settings(self, settings: PluginSettings) -> None:
        if self.required and not settings.write_key:
            raise MissingSettingError(fields=("writeKey",), message="Write key and token are required")

    def fetch(self, key, settings):
        self.keys.append(str(key))
        return self.result


def _usecase(result: ProfileFetchResult, policy=AttributionFreshnessPolicy.BACKFILL_IF_MISSING):
    gateway = FakeGateway(result)
    usecase = ProfileLookupUseCase(
        gateway,
        policy,
        google_ads_filter=GoogleAdsExclusivityFilter(strip_pii_without_click_id=True),
        clock=lambda: NOW,
    )
    return usecase, gateway


def _track(**extra):
    event = {"type": "track", "userId": "u-1", "timestamp": "2024-01-15T10:30:00Z", "properties": {}}
    event.update(extra)
    return event


def test_found_profile_enriches_event():
    profile = ProfileDocument(click_ids={"li_fat_id": "L"}, traits={"firstName": "Ann"})
    usecase, gateway = _usecase(ProfileFetchResult.found(profile))

    outcome = usecase.run(_track(), SETTINGS)

    assert isinstance(outcome, Enriched)
    assert outcome.event["properties"] == {"li_fat_id": "L"}
    assert outcome.event["context"]["traits"] == {"firstName": "Ann"}
    assert gateway.keys == ["user_id:u-1"]


def test_not_found_returns_event_untouched():
    event = _track(properties={"gclid": "G"})
    snapshot = copy.deepcopy(event)
    usecase, _ = _usecase(ProfileFetchResult.not_found())

    outcome = usecase.run(event, SETTINGS)

    assert isinstance(outcome, Unchanged)
    assert outcome.reason == "profile_not_found"
    assert outcome.event == snapshot


@pytest.mark.parametrize("code", [429, 500, 502, 503])
def test_transient_failure_maps_to_retry(code):
    usecase, _ = _usecase(ProfileFetchResult.transient(f"Failed with {code}", status_code=code))
    event = _track(properties={"wbraid": "W"}, context={"traits": {"email": "a@b.c"}})
    snapshot = copy.deepcopy(event)

    outcome = usecase.run(event, SETTINGS_WITH_ADS)

    assert outcome == Failed(code=ErrorCode.RETRY_ERROR, message=f"Failed with {code}", status_code=code)
    assert outcome.retryable is True
    assert event == snapshot


def test_permanent_failure_passes_event_through():
    usecase, _ = _usecase(ProfileFetchResult.permanent("Failed with 400", status_code=400))

    outcome = usecase.run(_track(), SETTINGS)

    assert isinstance(outcome, Unchanged)
    assert outcome.reason == "profile_lookup_failed"


def test_missing_identity_is_validation_failure():
    usecase, gateway = _usecase(ProfileFetchResult.found(ProfileDocument()))

    outcome = usecase.run({"type": "track", "properties": {}}, SETTINGS)

    assert outcome == Failed(code=ErrorCode.VALIDATION_ERROR, message="User ID or Anonymous ID is required")
    assert gateway.keys == []


def test_missing_credentials_is_validation_failure():
    usecase, gateway = _usecase(ProfileFetchResult.found(ProfileDocument()))

    outcome = usecase.run(_track(), PluginSettings())

    assert isinstance(outcome, Failed)
    assert outcome.code is ErrorCode.VALIDATION_ERROR
    assert outcome.message == "Write key and token are required"
    assert gateway.keys == []


def test_url_params_ignored_for_non_page_events():
    event = _track(context={"page": {"search": "?gclid=URL"}})
    usecase, _ = _usecase(ProfileFetchResult.found(ProfileDocument()))

    outcome = usecase.run(event, SETTINGS)

    assert "gclid" not in outcome.event["properties"]


def test_page_without_timestamp_uses_clock():
    event = {"type": "page", "anonymousId": "anon-1", "context": {"page": {"search": "?fbclid=F"}}}
    usecase, _ = _usecase(ProfileFetchResult.found(ProfileDocument()))

    outcome = usecase.run(event, SETTINGS)

    assert outcome.event["properties"]["fbc"] == f"fb.1.{NOW}.F"


def test_google_ads_filter_runs_only_when_enabled():
    profile = ProfileDocument(click_ids={"gbraid": "B", "wbraid": "W"}, traits={"email": "a@b.c"})

    enabled, _ = _usecase(ProfileFetchResult.found(profile))
    disabled, _ = _usecase(ProfileFetchResult.found(profile))
    on = enabled.run(_track(), PluginSettings(write_key="wk", token="tok", google_ads=True))
    off = disabled.run(_track(), SETTINGS)

    assert on.event["properties"] == {"gbraid": "B"}
    assert on.event["context"]["traits"] == {}
    assert off.event["properties"] == {"gbraid": "B", "wbraid": "W"}
    assert off.event["context"]["traits"] == {"email": "a@b.c"}
