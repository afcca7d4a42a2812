"""Postcode normalisation and metric parsing."""

import pytest

from core.errors import InputInvalid
from hydration.postcode import normalize_postcode, parse_metric, require_postcode


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("sw1a 1aa", "SW1A 1AA"),
        ("  SW1A   1AA ", "SW1A 1AA"),
        ("sw1a\t\n1aa", "SW1A 1AA"),
        ("SW1A 1AA", "SW1A 1AA"),
    ],
)
def test_normalize_postcode(raw: str, expected: str) -> None:
    assert normalize_postcode(raw) == expected


def test_normalize_postcode_is_idempotent() -> None:
    once = normalize_postcode("  ec1a   1bb ")
    assert normalize_postcode(once) == once


@pytest.mark.parametrize("raw", [None, "", "   ", "\t"])
def test_require_postcode_rejects_blank(raw) -> None:
    with pytest.raises(InputInvalid) as exc:
        require_postcode(raw)
    assert exc.value.status_code == 400
    assert exc.value.message == "Postcode is required."


def test_parse_metric_accepts_known_ids() -> None:
    assert parse_metric("crime") == "crime"
    assert parse_metric(" Price ") == "price"
    assert parse_metric("FLOOD") == "flood"


@pytest.mark.parametrize("raw", [None, "", "schools", "crimes"])
def test_parse_metric_rejects_unknown(raw) -> None:
    with pytest.raises(InputInvalid) as exc:
        parse_metric(raw)
    assert exc.value.message == "Metric must be one of: crime, price, flood."
