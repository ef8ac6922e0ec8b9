"""
Calendar utilities for saju calculations.
Handles birth input parsing, solar term boundary lookups (year and month
pillars), lunar date conversion and the Korean date labels shown with a chart.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lunar_python import Solar

from saju import settings
from saju.bazi import EARTHLY_BRANCHES, HEAVENLY_STEMS, EarthlyBranch, HeavenlyStem, year_stem_branch
from saju.errors import SajuInputError, SolarTermDataError
from saju.solar_terms import (
    LI_CHUN,
    TERM_BY_NAME,
    SolarTermEntry,
    find_term,
    resolve_solar_term_table,
    solar_term_year_range,
)

WEEKDAYS_KOREAN = ["월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일"]

# (sign, (month, day) on which it starts)
WESTERN_ZODIAC = [
    ("염소자리", (1, 1)),
    ("물병자리", (1, 20)),
    ("물고기자리", (2, 19)),
    ("양자리", (3, 21)),
    ("황소자리", (4, 20)),
    ("쌍둥이자리", (5, 21)),
    ("게자리", (6, 22)),
    ("사자자리", (7, 23)),
    ("처녀자리", (8, 23)),
    ("천칭자리", (9, 24)),
    ("전갈자리", (10, 24)),
    ("사수자리", (11, 23)),
    ("염소자리", (12, 22)),
]


@dataclass(frozen=True)
class BirthInput:
    moment: datetime  # aware, in the birth timezone
    has_time: bool


@dataclass(frozen=True)
class YearPillarInfo:
    year: int
    stem: HeavenlyStem
    branch: EarthlyBranch
    stem_index: int
    branch_index: int


@dataclass(frozen=True)
class MonthBoundary:
    term: str
    branch: EarthlyBranch
    month_index: int
    starts_at: datetime


@dataclass(frozen=True)
class LunarDateParts:
    lunar_month: int
    lunar_day: int
    related_year: Optional[int]
    month_label: str
    day_label: str
    year_name: str
    is_leap_month: bool

    @property
    def label(self) -> str:
        return f"{self.month_label} {self.day_label}".strip()


# ============================================================
# INPUT PARSING
# ============================================================

def get_timezone(name: Optional[str] = None) -> ZoneInfo:
    name = name or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise SajuInputError(f"알 수 없는 시간대입니다: {name}") from exc


def parse_birth_input(birth_date: str, birth_time: Optional[str] = None,
                      tz: Optional[str] = None) -> BirthInput:
    """
    Parse ``YYYY-MM-DD`` and optional ``HH:MM`` into an aware datetime.

    Without a time, 12:00 local is used for the solar term comparisons.
    """
    parts = (birth_date or "").split("-")
    if len(parts) != 3 or not all(p.strip() for p in parts):
        raise SajuInputError("생년월일을 정확히 입력해 주세요.")
    try:
        year, month, day = (int(p) for p in parts)
    except ValueError as exc:
        raise SajuInputError("생년월일 형식을 확인해 주세요.") from exc

    has_time = bool(birth_time)
    hour, minute = 12, 0
    if has_time:
        h_str, _, min_str = birth_time.partition(":")
        if not h_str.strip():
            has_time = False
        else:
            try:
                hour = int(h_str)
                minute = int(min_str) if min_str.strip() else 0
            except ValueError as exc:
                raise SajuInputError("시간 형식을 확인해 주세요.") from exc
            if not (0 <= hour <= 23 and 0 <= minute <= 59):
                raise SajuInputError("시간 형식을 확인해 주세요.")

    zone = get_timezone(tz)
    try:
        moment = datetime(year, month, day, hour, minute, tzinfo=zone)
    except ValueError as exc:
        raise SajuInputError("유효하지 않은 날짜입니다.") from exc

    return BirthInput(moment=moment, has_time=has_time)


# ============================================================
# SOLAR TERM BOUNDARIES
# ============================================================

def resolve_year_pillar(moment: datetime) -> YearPillarInfo:
    """
    Year pillar for an aware datetime.

    The saju year starts at Li Chun (立春). Instants strictly before that
    year's Li Chun belong to the previous pillar year; the Li Chun instant
    itself already belongs to the new one.
    """
    year = moment.year
    if year < settings.SUPPORTED_YEAR_MIN or year > settings.SUPPORTED_YEAR_MAX:
        raise SajuInputError(
            f"지원하는 생년월일은 {settings.SUPPORTED_YEAR_MIN}년부터 "
            f"{settings.SUPPORTED_YEAR_MAX}년까지입니다."
        )

    try:
        li_chun = find_term(year, LI_CHUN)
    except SolarTermDataError as exc:
        raise SolarTermDataError("입춘 정보를 찾을 수 없습니다.") from exc

    pillar_year = year - 1 if moment < li_chun.instant else year
    stem_index, branch_index = year_stem_branch(pillar_year)

    return YearPillarInfo(
        year=pillar_year,
        stem=HEAVENLY_STEMS[stem_index],
        branch=EARTHLY_BRANCHES[branch_index],
        stem_index=stem_index,
        branch_index=branch_index,
    )


def _entries_around(year: int) -> list[SolarTermEntry]:
    first, last = solar_term_year_range()
    entries = []
    for y in (year - 1, year, year + 1):
        if first <= y <= last:
            entries.extend(resolve_solar_term_table(y))
    entries.sort(key=lambda entry: entry.instant)
    return entries


def resolve_month_boundary(moment: datetime) -> MonthBoundary:
    """
    Find the latest Jie at or before ``moment``.

    Terms of the previous, current and next Gregorian year are searched so
    that early-January dates see the previous December's Da Xue.
    """
    year = moment.year
    first, last = solar_term_year_range()
    if year < first - 1 or year > last + 1:
        raise SolarTermDataError("절기 데이터를 찾을 수 없는 날짜입니다.")

    entries = _entries_around(year)
    if not entries:
        raise SolarTermDataError("절기 데이터를 불러올 수 없습니다.")

    selected = None
    for entry in entries:
        if moment >= entry.instant:
            selected = entry
        else:
            break

    if selected is None:
        raise SolarTermDataError("해당 날짜보다 이전의 절기 경계를 찾을 수 없습니다.")

    definition = TERM_BY_NAME.get(selected.term)
    if definition is None:
        raise SolarTermDataError("절기 매핑 정보가 없습니다.")

    return MonthBoundary(
        term=selected.term,
        branch=EARTHLY_BRANCHES[definition.branch_index],
        month_index=definition.month_index,
        starts_at=selected.instant,
    )


# ============================================================
# LUNAR DATE AND LABELS
# ============================================================

def lunar_date_parts(day: Union[date, datetime]) -> LunarDateParts:
    """Chinese lunisolar date of a civil day (leap months are labelled 윤)."""
    lunar = Solar.fromYmd(day.year, day.month, day.day).getLunar()
    month = lunar.getMonth()  # negative for a leap month
    is_leap = month < 0
    lunar_month = abs(month)
    lunar_day = lunar.getDay()

    return LunarDateParts(
        lunar_month=lunar_month,
        lunar_day=lunar_day,
        related_year=lunar.getYear(),
        month_label=f"{'윤' if is_leap else ''}{lunar_month}월",
        day_label=f"{lunar_day}일",
        year_name=lunar.getYearInGanZhi(),
        is_leap_month=is_leap,
    )


def day_of_week(day: Union[date, datetime]) -> str:
    return WEEKDAYS_KOREAN[day.weekday()]


def solar_date_label(day: Union[date, datetime]) -> str:
    """e.g. ``1990년 5월 15일 (화요일)``"""
    return f"{day.year}년 {day.month}월 {day.day}일 ({day_of_week(day)})"


def full_date_label(day: Union[date, datetime]) -> str:
    """e.g. ``2026년 10월 19일 월요일``"""
    return f"{day.year}년 {day.month}월 {day.day}일 {day_of_week(day)}"


def western_zodiac(month: int, day: int) -> str:
    target = month * 100 + day
    selected = WESTERN_ZODIAC[0][0]
    for name, (m, d) in WESTERN_ZODIAC:
        if target >= m * 100 + d:
            selected = name
    return selected


def today(tz: Optional[str] = None) -> date:
    """The current civil date in the configured timezone."""
    return datetime.now(timezone.utc).astimezone(get_timezone(tz)).date()
