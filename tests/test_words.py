from __future__ import annotations

from decimal import Decimal

import pytest

from quotekit.core.words import WordsPolicy, amount_to_words, group_to_words, int_to_words


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "Zero Rupees Only"),
        (100, "One Hundred Rupees Only"),
        (100000, "One Lakh Rupees Only"),
        (1234567.89, "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Rupees and Eighty Nine Paise Only"),
        ("1234567.89", "Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Rupees and Eighty Nine Paise Only"),
        (10_000_000, "One Crore Rupees Only"),
        (25_05_00_011, "Twenty Five Crore Five Lakh Eleven Rupees Only"),
        (Decimal("0.50"), "Zero Rupees and Fifty Paise Only"),
    ],
)
def test_amount_to_words_indian_grouping(amount, expected) -> None:
    assert amount_to_words(amount) == expected


def test_crore_count_above_999_is_spelled_recursively() -> None:
    assert amount_to_words(1000 * 10_000_000) == "One Thousand Crore Rupees Only"
    assert int_to_words(123_45_67_890) == "One Hundred Twenty Three Crore Forty Five Lakh Sixty Seven Thousand Eight Hundred Ninety"


def test_every_amount_mentions_rupees_and_ends_with_only() -> None:
    for amount in (0, 1, 19, 20, 99, 101, 999, 1000, 99999, 100001, 9999999.99):
        words = amount_to_words(amount)
        assert words.endswith("Only")
        assert "Rupees" in words


def test_group_to_words_bounds() -> None:
    assert group_to_words(0) == ""
    assert group_to_words(115) == "One Hundred Fifteen"
    assert group_to_words(990) == "Nine Hundred Ninety"
    with pytest.raises(ValueError):
        group_to_words(1000)


def test_paise_rounding_carries_into_rupees() -> None:
    assert amount_to_words("1.999") == "Two Rupees Only"
    assert amount_to_words("10.005") == "Ten Rupees and One Paise Only"


def test_policies() -> None:
    assert amount_to_words("99.5", WordsPolicy("round_rupee")) == "One Hundred Rupees Only"
    assert amount_to_words("99.99", WordsPolicy("drop_paise")) == "Ninety Nine Rupees Only"
    assert amount_to_words("99.99", WordsPolicy("exact")) == "Ninety Nine Rupees and Ninety Nine Paise Only"
    with pytest.raises(ValueError):
        WordsPolicy("banker")


@pytest.mark.parametrize("bad", [-1, "-0.01", "abc", None, float("nan")])
def test_rejects_negative_and_non_numeric(bad) -> None:
    with pytest.raises(ValueError):
        amount_to_words(bad)
