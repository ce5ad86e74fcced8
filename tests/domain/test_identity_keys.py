import pytest

from inserts.domain.exceptions import MissingIdentityError
from inserts.domain.identity_keys import LookupKind, format_identity_key, resolve_lookup_key


def test_user_id_wins_over_anonymous_id():
    key = resolve_lookup_key({"userId": "u-1", "anonymousId": "a-1"})
    assert key.kind is LookupKind.USER
    assert str(key) == "user_id:u-1"


def test_anonymous_id_used_when_user_id_empty():
    key = resolve_lookup_key({"userId": "", "anonymousId": "anon-456"})
    assert key.kind is LookupKind.ANONYMOUS
    assert str(key) == "anonymous_id:anon-456"


def test_missing_identity_raises():
    with pytest.raises(MissingIdentityError) as exc:
        resolve_lookup_key({"type": "track", "userId": None, "anonymousId": ""})
    assert str(exc.value) == "User ID or Anonymous ID is required"


def test_format_identity_key():
    assert format_identity_key("user_id", "42") == "user_id:42"
