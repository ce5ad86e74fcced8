from inserts.domain.attribution.click_capture import (
    build_click_traits,
    camel_case,
    facebook_browser_id,
    flatten_traits,
)

MILLIS = 1705314600000


def test_camel_case():
    assert camel_case("last_li_fat_id") == "lastLiFatId"
    assert camel_case("last_userAgent") == "lastUserAgent"
    assert camel_case("last_campaign_name") == "lastCampaignName"


def test_flatten_skips_none_and_keeps_empty_strings():
    assert flatten_traits({"last": {"gclid": "", "ip": None, "campaign": {"name": "spring"}}}) == {
        "lastGclid": "",
        "lastCampaignName": "spring",
    }


def test_facebook_browser_id():
    assert facebook_browser_id(MILLIS, "0000-00ff") == f"{MILLIS}.255"
    assert facebook_browser_id(MILLIS, "anon-456") is None


def test_build_click_traits_from_page():
    event = {
        "type": "page",
        "anonymousId": "abc",
        "context": {
            "page": {"search": "?fbclid=F1&gbraid=B1&ttclid=T1"},
            "campaign": {"name": "spring", "source": "fb"},
            "ip": "1.2.3.4",
            "userAgent": "UA",
        },
    }

    traits = build_click_traits(event, MILLIS)

    assert traits == {
        "lastFbclid": "F1",
        "lastFbc": f"fb.1.{MILLIS}.F1",
        "lastGclid": "",
        "lastGbraid": "B1",
        "lastWbraid": "",
        "lastTtclid": "T1",
        "lastCampaignName": "spring",
        "lastCampaignSource": "fb",
        "lastCampaignMedium": "",
        "lastCampaignContent": "",
        "lastCampaignTerm": "",
        "lastFbp": f"{MILLIS}.{0xabc}",
        "lastRdtUuid": f"{MILLIS}.abc",
        "lastIp": "1.2.3.4",
        "lastUserAgent": "UA",
    }


def test_build_click_traits_without_params_or_anonymous_id():
    traits = build_click_traits({"type": "page", "userId": "u", "context": {}}, MILLIS)

    assert traits == {}
