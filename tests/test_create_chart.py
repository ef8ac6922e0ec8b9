import pytest

from saju.bazi import Element, Polarity
from saju.create_chart import compute_four_pillars
from saju.errors import SajuInputError


@pytest.fixture(scope="module")
def chart():
    return compute_four_pillars("1990-05-15", "14:30", "male")


def test_pillars_with_time(chart):
    pillars = chart.pillars
    assert pillars.names() == ["경오", "신사", "경진", "계미"]
    assert pillars.hour.hour_range == "13:00 ~ 14:59"
    assert pillars.month.lunar_month is not None
    assert pillars.day.focus == "성향·배우자"


def test_summary_with_time(chart):
    summary = chart.summary
    assert summary.total_elements == 8
    assert summary.element_counts == {
        Element.WOOD: 0,
        Element.FIRE: 2,
        Element.EARTH: 2,
        Element.METAL: 3,
        Element.WATER: 1,
    }
    assert summary.strongest.element == Element.METAL
    assert summary.weakest.element == Element.WOOD
    assert summary.polarity_counts == {Polarity.YANG: 4, Polarity.YIN: 4}


def test_meta_with_time(chart):
    meta = chart.meta
    assert meta.has_time
    assert meta.time_label == "14:30"
    assert meta.solar_date_label == "1990년 5월 15일 (화요일)"
    assert meta.western_zodiac == "황소자리"
    assert meta.gender_label == "남성"


@pytest.mark.parametrize("birth_time", [None, ""])
def test_without_time(birth_time):
    result = compute_four_pillars("1990-05-15", birth_time, "female")
    assert result.pillars.hour is None
    assert result.pillars.names() == ["경오", "신사", "경진"]
    assert result.summary.total_elements == 6
    assert sum(result.summary.element_counts.values()) == 6
    assert result.summary.polarity_counts == {Polarity.YANG: 4, Polarity.YIN: 2}
    assert result.summary.weakest.element == Element.WOOD
    assert result.meta.time_label == "미입력"
    assert result.meta.gender_label == "여성"


def test_late_evening_keeps_calendar_day():
    evening = compute_four_pillars("1990-05-15", "23:30")
    assert evening.pillars.day.name == "경진"
    assert evening.pillars.hour.branch.chinese == "子"


def test_deterministic():
    first = compute_four_pillars("1984-02-04", "11:00", "female")
    second = compute_four_pillars("1984-02-04", "11:00", "female")
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_timezone_changes_boundary_comparison():
    # Li Chun 2024 is 16:27 in Seoul, 08:27 in London
    seoul = compute_four_pillars("2024-02-04", "12:00", tz="Asia/Seoul")
    london = compute_four_pillars("2024-02-04", "12:00", tz="Europe/London")
    assert seoul.pillars.year.name == "계묘"
    assert london.pillars.year.name == "갑진"


def test_to_dict_shape(chart):
    data = chart.to_dict()
    assert set(data) == {"pillars", "summary", "meta"}
    assert set(data["pillars"]) == {"year", "month", "day", "hour"}
    assert data["pillars"]["year"]["name"] == "경오"
    assert data["summary"]["element_counts"]["metal"] == 3
    assert data["summary"]["strongest"]["element"] == "metal"
    assert data["meta"]["has_time"] is True


@pytest.mark.parametrize("kwargs", [
    {"birth_date": "1990-02-30"},
    {"birth_date": "1899-12-31"},
    {"birth_date": "2101-01-01"},
    {"birth_date": "1990-05-15", "birth_time": "24:00"},
    {"birth_date": "1990-05-15", "gender": "other"},
    {"birth_date": "1990-05-15", "tz": "Nowhere/City"},
])
def test_invalid_input(kwargs):
    with pytest.raises(SajuInputError):
        compute_four_pillars(**kwargs)
