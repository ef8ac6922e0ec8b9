from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from saju.astro_calendar import (
    full_date_label,
    get_timezone,
    lunar_date_parts,
    parse_birth_input,
    resolve_month_boundary,
    resolve_year_pillar,
    solar_date_label,
    western_zodiac,
)
from saju.errors import SajuInputError, SolarTermDataError
from saju.solar_terms import LI_CHUN, find_term

SEOUL = ZoneInfo("Asia/Seoul")


def test_parse_with_time():
    birth = parse_birth_input("1990-05-15", "14:30")
    assert birth.has_time
    assert birth.moment == datetime(1990, 5, 15, 14, 30, tzinfo=SEOUL)


@pytest.mark.parametrize("birth_time", [None, "", "  "])
def test_parse_without_time_uses_noon(birth_time):
    birth = parse_birth_input("1990-05-15", birth_time)
    assert not birth.has_time
    assert (birth.moment.hour, birth.moment.minute) == (12, 0)


def test_parse_respects_timezone():
    birth = parse_birth_input("1990-05-15", "09:00", tz="UTC")
    assert birth.moment.utcoffset() == timedelta(0)


@pytest.mark.parametrize("birth_date, birth_time", [
    ("", None),
    ("1990/05/15", None),
    ("1990-05", None),
    ("19x0-05-15", None),
    ("1990-02-30", None),
    ("1990-13-01", None),
    ("1990-05-15", "25:00"),
    ("1990-05-15", "12:60"),
    ("1990-05-15", "ab:cd"),
])
def test_parse_rejects_bad_input(birth_date, birth_time):
    with pytest.raises(SajuInputError):
        parse_birth_input(birth_date, birth_time)


def test_unknown_timezone():
    with pytest.raises(SajuInputError):
        get_timezone("Mars/Olympus_Mons")


def test_year_changes_exactly_at_li_chun():
    li_chun = find_term(2024, LI_CHUN).instant

    before = resolve_year_pillar(li_chun - timedelta(seconds=1))
    at = resolve_year_pillar(li_chun)

    assert before.year == 2023
    assert (before.stem.chinese, before.branch.chinese) == ("癸", "卯")
    assert at.year == 2024
    assert (at.stem.chinese, at.branch.chinese) == ("甲", "辰")


def test_january_belongs_to_previous_pillar_year():
    info = resolve_year_pillar(datetime(1990, 1, 20, 12, tzinfo=SEOUL))
    assert info.year == 1989


@pytest.mark.parametrize("moment", [
    datetime(1899, 12, 31, 12, tzinfo=SEOUL),
    datetime(2101, 1, 1, 12, tzinfo=SEOUL),
])
def test_year_outside_supported_range(moment):
    with pytest.raises(SajuInputError):
        resolve_year_pillar(moment)


def test_month_changes_exactly_at_li_chun():
    li_chun = find_term(2024, LI_CHUN).instant

    before = resolve_month_boundary(li_chun - timedelta(seconds=1))
    at = resolve_month_boundary(li_chun)

    assert before.term == "小寒"
    assert before.month_index == 11
    assert before.branch.chinese == "丑"
    assert at.term == LI_CHUN
    assert at.month_index == 0
    assert at.branch.chinese == "寅"
    assert at.starts_at == li_chun


def test_early_january_uses_previous_da_xue():
    boundary = resolve_month_boundary(datetime(1990, 1, 2, 12, tzinfo=SEOUL))
    assert boundary.term == "大雪"
    assert boundary.month_index == 10
    assert boundary.branch.chinese == "子"
    assert boundary.starts_at.year == 1989


def test_mid_may_is_snake_month():
    boundary = resolve_month_boundary(datetime(1990, 5, 15, 14, 30, tzinfo=SEOUL))
    assert boundary.term == "立夏"
    assert boundary.month_index == 3
    assert boundary.branch.chinese == "巳"


def test_month_boundary_outside_table():
    with pytest.raises(SolarTermDataError):
        resolve_month_boundary(datetime(2150, 6, 1, tzinfo=timezone.utc))


def test_lunar_leap_month():
    parts = lunar_date_parts(date(2023, 4, 1))
    assert parts.is_leap_month
    assert parts.lunar_month == 2
    assert parts.month_label == "윤2월"
    assert parts.label.startswith("윤2월 ")


def test_lunar_regular_month():
    parts = lunar_date_parts(date(1990, 5, 15))
    assert not parts.is_leap_month
    assert parts.related_year == 1990
    assert parts.label == f"{parts.lunar_month}월 {parts.lunar_day}일"
    assert 1 <= parts.lunar_day <= 30


def test_date_labels():
    assert solar_date_label(date(1990, 5, 15)) == "1990년 5월 15일 (화요일)"
    assert full_date_label(date(2000, 1, 1)) == "2000년 1월 1일 토요일"


@pytest.mark.parametrize("month, day, expected", [
    (1, 10, "염소자리"),
    (1, 20, "물병자리"),
    (5, 15, "황소자리"),
    (12, 25, "염소자리"),
])
def test_western_zodiac(month, day, expected):
    assert western_zodiac(month, day) == expected
