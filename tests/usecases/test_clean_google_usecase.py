from inserts.domain.models import PluginSettings
from inserts.domain.outcome import Enriched
from inserts.usecases.clean_google_usecase import CleanGoogleEventsUseCase


def test_clean_google_keeps_gclid_and_pii():
    event = {
        "type": "page",
        "properties": {"gclid": "G", "wbraid": "W"},
        "context": {"traits": {"email": "a@b.c"}},
    }

    outcome = CleanGoogleEventsUseCase().run(event, PluginSettings())

    assert isinstance(outcome, Enriched)
    assert outcome.details == {"survivor": "gclid"}
    assert event["properties"] == {"gclid": "G"}
    assert event["context"]["traits"] == {"email": "a@b.c"}


def test_clean_google_wbraid_drops_pii():
    event = {"type": "track", "properties": {"wbraid": "W"}, "context": {"traits": {"phone": "1", "plan": "x"}}}

    CleanGoogleEventsUseCase().run(event, PluginSettings())

    assert event["context"]["traits"] == {"plan": "x"}
