from inserts.domain.attribution.attribution_set import AttributionSet
from inserts.domain.attribution.google_ads import GoogleAdsExclusivityFilter, select_google_click_id
from inserts.domain.attribution.merge import ReconciledProfile


def _reconciled(click_ids: dict, traits: dict | None = None) -> ReconciledProfile:
    return ReconciledProfile(attribution=AttributionSet.from_properties(click_ids), traits=dict(traits or {}))


def test_priority_order():
    assert select_google_click_id({"gclid": "a", "gbraid": "b", "wbraid": "c"}) == "gclid"
    assert select_google_click_id({"gbraid": "b", "wbraid": "c"}) == "gbraid"
    assert select_google_click_id({"wbraid": "c", "gclid": ""}) == "wbraid"
    assert select_google_click_id({}) is None


def test_gclid_survives_and_keeps_pii():
    reconciled = _reconciled({"gclid": "G", "gbraid": "B", "wbraid": "W"}, {"email": "a@b.c", "phone": "1"})

    decision = GoogleAdsExclusivityFilter().apply(reconciled)

    assert decision.survivor == "gclid"
    assert reconciled.attribution.values() == {"gclid": "G"}
    assert set(reconciled.attribution.cleared()) == {"gbraid", "wbraid"}
    assert reconciled.traits == {"email": "a@b.c", "phone": "1"}
    assert decision.pii_removed is False


def test_gbraid_survives_and_strips_pii():
    reconciled = _reconciled({"gbraid": "B", "wbraid": "W"}, {"email": "a@b.c", "phone": "1", "firstName": "Ann"})

    decision = GoogleAdsExclusivityFilter().apply(reconciled)

    assert decision.survivor == "gbraid"
    assert reconciled.attribution.values() == {"gbraid": "B"}
    assert reconciled.traits == {"firstName": "Ann"}
    assert reconciled.cleared_traits == {"email", "phone"}


def test_no_click_id_strips_pii_only_when_configured():
    strict = _reconciled({}, {"email": "a@b.c"})
    lenient = _reconciled({}, {"email": "a@b.c"})

    GoogleAdsExclusivityFilter(strip_pii_without_click_id=True).apply(strict)
    GoogleAdsExclusivityFilter(strip_pii_without_click_id=False).apply(lenient)

    assert strict.traits == {}
    assert lenient.traits == {"email": "a@b.c"}


def test_apply_to_event_removes_keys_in_place():
    event = {
        "type": "track",
        "properties": {"gbraid": "B", "wbraid": "W", "revenue": 10},
        "context": {"traits": {"email": "a@b.c", "phone": "1", "lastName": "Doe"}},
    }

    decision = GoogleAdsExclusivityFilter(strip_pii_without_click_id=False).apply_to_event(event)

    assert decision.survivor == "gbraid"
    assert event["properties"] == {"gbraid": "B", "revenue": 10}
    assert event["context"]["traits"] == {"lastName": "Doe"}


def test_apply_to_event_without_google_ids_is_noop():
    event = {"type": "track", "properties": {"fbc": "x"}, "context": {"traits": {"email": "a@b.c"}}}

    GoogleAdsExclusivityFilter(strip_pii_without_click_id=False).apply_to_event(event)

    assert event == {"type": "track", "properties": {"fbc": "x"}, "context": {"traits": {"email": "a@b.c"}}}
