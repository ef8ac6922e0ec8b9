from datetime import date

import pytest

from saju.create_chart import compute_four_pillars
from saju.generate_context import build_daily_fortune
from saju.lucky_numbers import (
    LCG_INCREMENT,
    LCG_MODULUS,
    LCG_MULTIPLIER,
    build_seed_string,
    create_seed,
    random_sequence,
    recommend_lucky_numbers,
)


@pytest.fixture(scope="module")
def chart():
    return compute_four_pillars("1990-05-15", "14:30", "male")


@pytest.mark.parametrize("value, expected", [
    ("", 1),
    ("a", 97),
    ("ab", 97 * 31 + 98),
])
def test_create_seed(value, expected):
    assert create_seed(value) == expected


def test_seed_hashes_utf16_code_units():
    # U+1F600 contributes its high surrogate only
    assert create_seed("\U0001F600") == 0xD83D


def test_seed_wraps_to_32_bits():
    assert 0 < create_seed("사주" * 50) < LCG_MODULUS


def test_random_sequence():
    values = random_sequence(1)
    assert next(values) == (LCG_MULTIPLIER + LCG_INCREMENT) / LCG_MODULUS
    assert all(0 <= next(values) < 1 for _ in range(1000))


def test_seed_string_fields(chart):
    fortune = build_daily_fortune(chart, date(2000, 1, 1))
    parts = build_seed_string(chart, fortune).split("|")
    assert parts[:6] == ["1990년 5월 15일 (화요일)", "male", "경진", "금", "2000년 1월 1일 토요일", "무오"]
    assert len(parts) == 9


@pytest.mark.parametrize("day", [date(2000, 1, 1), date(2024, 2, 4), date(2026, 10, 19)])
def test_recommendation_shape(chart, day):
    lucky = recommend_lucky_numbers(chart, build_daily_fortune(chart, day))
    assert len(lucky.numbers) == 6
    assert len(set(lucky.numbers)) == 6
    assert lucky.numbers == sorted(lucky.numbers)
    assert all(1 <= n <= 45 for n in lucky.numbers)
    assert 1 <= lucky.bonus <= 45
    assert lucky.bonus not in lucky.numbers


def test_recommendation_is_deterministic(chart):
    fortune = build_daily_fortune(chart, date(2000, 1, 1))
    assert recommend_lucky_numbers(chart, fortune) == recommend_lucky_numbers(chart, fortune)


def test_recommendation_changes_with_day(chart):
    first = recommend_lucky_numbers(chart, build_daily_fortune(chart, date(2000, 1, 1)))
    second = recommend_lucky_numbers(chart, build_daily_fortune(chart, date(2000, 1, 2)))
    assert first != second


def test_public_signatures_are_annotated():
    for func in (build_seed_string, recommend_lucky_numbers):
        assert func.__annotations__["result"] == "FourPillarsResult"
        assert func.__annotations__["fortune"] == "DailyFortune"
