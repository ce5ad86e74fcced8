import pytest

from inserts.timeUtils import getDurationMs, parseEpochMillis


@pytest.mark.parametrize(
    "timestamp, expected",
    [
        ("2024-01-15T10:30:00Z", 1705314600000),
        ("2024-01-15T10:30:00.1Z", 1705314600100),
        ("2024-01-15T10:30:00.1234Z", 1705314600123),
        ("2024-01-15T10:30:00.123456789+02:00", 1705307400123),
        (" 2024-01-15T10:30:00.5z ", 1705314600500),
        ("2024-01-15T10:30:00", 1705314600000),
    ],
)
def test_parse_epoch_millis_accepts_iso_variants(timestamp, expected):
    assert parseEpochMillis(timestamp) == expected


@pytest.mark.parametrize("timestamp", [None, "", "   ", "yesterday", 1705314600000])
def test_parse_epoch_millis_rejects_non_iso(timestamp):
    assert parseEpochMillis(timestamp) is None


def test_duration_in_milliseconds():
    assert getDurationMs(10.0, 10.25) == 250
