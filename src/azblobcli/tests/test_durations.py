from datetime import timedelta

import pytest

from azblobcli import parse_duration


@pytest.mark.parametrize(
    "text, expected",
    [
        ("60s", timedelta(seconds=60)),
        ("1h", timedelta(hours=1)),
        ("60m", timedelta(minutes=60)),
        ("3600s", timedelta(hours=1)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5h", timedelta(minutes=90)),
        ("2h45m30s", timedelta(hours=2, minutes=45, seconds=30)),
        ("500ms", timedelta(milliseconds=500)),
        ("1m500ms", timedelta(minutes=1, milliseconds=500)),
        ("250us", timedelta(microseconds=250)),
        ("250µs", timedelta(microseconds=250)),
        ("250μs", timedelta(microseconds=250)),
        (".5s", timedelta(milliseconds=500)),
        ("0", timedelta(0)),
        ("0s", timedelta(0)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "",
        "60",
        "s",
        "1d",
        "1h 30m",
        "-1h",
        "1hh",
        "abc",
        "1.2.3s",
        "h1",
        "9999999999999h",
    ],
)
def test_parse_duration_rejects(text):
    with pytest.raises(ValueError, match="invalid duration"):
        parse_duration(text)
