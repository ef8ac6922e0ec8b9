"""
Solar term (節氣) table.

The 12 Jie (节) solar terms mark saju month boundaries. Each Jie is the moment
the Sun's apparent ecliptic longitude reaches a multiple of 30 degrees:

Xiao Han (285°) → Chou (Ox) month, month index 11
Li Chun (315°)  → Yin (Tiger) month, month index 0
Jing Zhe (345°) → Mao (Rabbit) month, month index 1
...
Da Xue (255°)   → Zi (Rat) month, month index 10

Instants are found with a low-precision solar theory (mean longitude, three
term equation of centre, nutation/aberration) and a piecewise polynomial ΔT
model, refined with a fixed number of linear correction steps. The generated
table is the reference used for month and year boundaries; Swiss Ephemeris is
only used to cross-check it.
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Optional

import swisseph as swe

from saju import settings
from saju.errors import SolarTermDataError

LOG = logging.getLogger(__name__)

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
JD_UNIX_EPOCH = 2440587.5
J2000 = 2451545.0

# Mean solar motion used for the correction step, degrees per day
DEGREES_PER_DAY = 0.98564736629

ITERATIONS = 8


@dataclass(frozen=True)
class SolarTermDefinition:
    term: str  # traditional name, also the serialised key
    pinyin: str
    longitude: int  # target apparent ecliptic longitude, degrees
    approx_month: int  # seed date for the search (UTC)
    approx_day: int
    branch_index: int  # month branch that starts at this term
    month_index: int  # 0 = Li Chun (Tiger month)


# Ordered as they fall in a Gregorian year
TERM_DEFINITIONS = (
    SolarTermDefinition("小寒", "Xiao Han", 285, 1, 5, 1, 11),
    SolarTermDefinition("立春", "Li Chun", 315, 2, 4, 2, 0),
    SolarTermDefinition("驚蟄", "Jing Zhe", 345, 3, 5, 3, 1),
    SolarTermDefinition("清明", "Qing Ming", 15, 4, 5, 4, 2),
    SolarTermDefinition("立夏", "Li Xia", 45, 5, 5, 5, 3),
    SolarTermDefinition("芒種", "Mang Zhong", 75, 6, 6, 6, 4),
    SolarTermDefinition("小暑", "Xiao Shu", 105, 7, 7, 7, 5),
    SolarTermDefinition("立秋", "Li Qiu", 135, 8, 7, 8, 6),
    SolarTermDefinition("白露", "Bai Lu", 165, 9, 7, 9, 7),
    SolarTermDefinition("寒露", "Han Lu", 195, 10, 8, 10, 8),
    SolarTermDefinition("立冬", "Li Dong", 225, 11, 7, 11, 9),
    SolarTermDefinition("大雪", "Da Xue", 255, 12, 7, 0, 10),
)

TERM_BY_NAME = {d.term: d for d in TERM_DEFINITIONS}

LI_CHUN = "立春"


@dataclass(frozen=True)
class SolarTermEntry:
    term: str
    instant: datetime  # aware, UTC

    @property
    def iso(self) -> str:
        return format_iso(self.instant)

    def to_dict(self):
        return {"term": self.term, "iso": self.iso}


# ============================================================
# JULIAN DAY CONVERSIONS
# ============================================================

def julian_day_from_datetime(moment: datetime) -> float:
    """Julian Day (UT) of an aware datetime."""
    return (moment - UNIX_EPOCH).total_seconds() / 86400 + JD_UNIX_EPOCH


def julian_day_to_datetime(jd: float) -> datetime:
    """
    Convert a Julian Day to a UTC datetime (Meeus, Astronomical Algorithms ch. 7).

    The fractional day is expanded to hours, minutes, seconds and rounded
    milliseconds; a rounded 1000 ms carries into the next second.
    """
    z = math.floor(jd + 0.5)
    f = jd + 0.5 - z
    a = z
    if z >= 2299161:
        alpha = math.floor((z - 1867216.25) / 36524.25)
        a = z + 1 + alpha - math.floor(alpha / 4)
    b = a + 1524
    c = math.floor((b - 122.1) / 365.25)
    d = math.floor(365.25 * c)
    e = math.floor((b - d) / 30.6001)
    day = b - d - math.floor(30.6001 * e) + f
    month = e - 1 if e < 14 else e - 13
    year = c - 4716 if month > 2 else c - 4715

    day_int = math.floor(day)
    hours = (day - day_int) * 24
    hour = math.floor(hours)
    minutes = (hours - hour) * 60
    minute = math.floor(minutes)
    seconds = (minutes - minute) * 60
    second = math.floor(seconds)
    millisecond = round((seconds - second) * 1000)

    return datetime(year, month, day_int, hour, minute, second, tzinfo=timezone.utc) + timedelta(
        milliseconds=millisecond
    )


def format_iso(moment: datetime) -> str:
    """ISO-8601 UTC string with milliseconds, e.g. ``1990-02-04T04:14:12.345Z``."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


# ============================================================
# ΔT AND SOLAR POSITION
# ============================================================

def delta_t_seconds(year_decimal: float) -> float:
    """
    ΔT = TT - UT in seconds (Espenak & Meeus polynomial expressions).
    """
    y = year_decimal

    if y < 1900:
        u = y - 1860
        return (
            7.62
            + 0.5737 * u
            - 0.251754 * u * u
            + 0.01680668 * u ** 3
            - 0.0004473624 * u ** 4
            + u ** 5 / 233174
        )

    if y < 1920:
        t = y - 1900
        return -2.79 + 1.494119 * t - 0.0598939 * t ** 2 + 0.0061966 * t ** 3 - 0.000197 * t ** 4

    if y < 1941:
        t = y - 1920
        return 21.20 + 0.84493 * t - 0.076100 * t ** 2 + 0.0020936 * t ** 3

    if y < 1961:
        t = y - 1950
        return 29.07 + 0.407 * t - t ** 2 / 233 + t ** 3 / 2547

    if y < 1986:
        t = y - 1975
        return 45.45 + 1.067 * t - t ** 2 / 260 - t ** 3 / 718

    if y < 2005:
        t = y - 2000
        return (
            63.86
            + 0.3345 * t
            - 0.060374 * t ** 2
            + 0.0017275 * t ** 3
            + 0.000651814 * t ** 4
            + 0.00002373599 * t ** 5
        )

    if y < 2050:
        t = y - 2000
        return 62.92 + 0.32217 * t + 0.005589 * t ** 2

    if y < 2150:
        t = (y - 1820) / 100
        return -20 + 32 * t ** 2 - 0.5628 * (2150 - y)

    u = (y - 1820) / 100
    return -20 + 32 * u ** 2


def delta_t_seconds_from_jd(jd: float) -> float:
    moment = julian_day_to_datetime(jd)
    return delta_t_seconds(moment.year + (moment.month - 0.5) / 12)


def normalize_angle(angle: float) -> float:
    return angle % 360


def angle_difference(target: float, current: float) -> float:
    """Signed difference target - current, normalised to [-180, 180)."""
    return (target - current + 180) % 360 - 180


def solar_longitude(jde: float) -> float:
    """Apparent ecliptic longitude of the Sun (degrees) at a TT Julian Day."""
    t = (jde - J2000) / 36525
    l0 = normalize_angle(280.46646 + 36000.76983 * t + 0.0003032 * t ** 2)
    m = normalize_angle(357.52911 + 35999.05029 * t - 0.0001537 * t ** 2 - 0.00000048 * t ** 3)

    m_rad = math.radians(m)
    center = (
        (1.914602 - 0.004817 * t - 0.000014 * t ** 2) * math.sin(m_rad)
        + (0.019993 - 0.000101 * t) * math.sin(2 * m_rad)
        + 0.000289 * math.sin(3 * m_rad)
    )

    true_longitude = l0 + center
    omega = 125.04 - 1934.136 * t
    apparent = true_longitude - 0.00569 - 0.00478 * math.sin(math.radians(omega))
    return normalize_angle(apparent)


def _longitude_error(jd_ut: float, target: float) -> float:
    jde = jd_ut + delta_t_seconds_from_jd(jd_ut) / 86400
    return angle_difference(target, solar_longitude(jde))


# ============================================================
# GENERATOR
# ============================================================

def find_solar_term_jd(year: int, definition: SolarTermDefinition) -> float:
    """
    Julian Day (UT) at which the Sun reaches ``definition.longitude`` in ``year``.

    Runs exactly ITERATIONS linear correction steps from the seed date. A final
    error above the tolerance is logged, the estimate is still returned.
    """
    guess = datetime(year, definition.approx_month, definition.approx_day, tzinfo=timezone.utc)
    jd_ut = julian_day_from_datetime(guess)

    for _ in range(ITERATIONS):
        jd_ut += _longitude_error(jd_ut, definition.longitude) / DEGREES_PER_DAY

    final_error = abs(_longitude_error(jd_ut, definition.longitude))
    if final_error > settings.CONVERGENCE_TOLERANCE_DEG:
        LOG.warning("Convergence issue for %d %s: diff=%.4f°", year, definition.term, final_error)

    return jd_ut


def generate_year(year: int) -> tuple[SolarTermEntry, ...]:
    """The 12 Jie instants of a Gregorian year, in chronological order."""
    return tuple(
        SolarTermEntry(term=d.term, instant=julian_day_to_datetime(find_solar_term_jd(year, d)))
        for d in TERM_DEFINITIONS
    )


def build_dataset(start: int, end: int) -> dict[int, tuple[SolarTermEntry, ...]]:
    return {year: generate_year(year) for year in range(start, end + 1)}


def dump_dataset(dataset: dict[int, tuple[SolarTermEntry, ...]], path: Path) -> None:
    payload = {str(year): [entry.to_dict() for entry in entries] for year, entries in sorted(dataset.items())}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
        f.write("\n")


def _parse_year(year_key: str, items) -> tuple[int, tuple[SolarTermEntry, ...]]:
    try:
        year = int(year_key)
        entries = tuple(SolarTermEntry(term=item["term"], instant=parse_iso(item["iso"])) for item in items)
    except (KeyError, TypeError, ValueError) as exc:
        raise SolarTermDataError(f"{year_key}년 절기 데이터 형식이 올바르지 않습니다.") from exc
    if sorted(e.term for e in entries) != sorted(TERM_BY_NAME):
        raise SolarTermDataError(f"{year_key}년 절기 데이터가 올바르지 않습니다.")
    if any(a.instant >= b.instant for a, b in zip(entries, entries[1:])):
        raise SolarTermDataError(f"{year_key}년 절기 순서가 올바르지 않습니다.")
    return year, entries


def load_dataset(path: Path) -> dict[int, tuple[SolarTermEntry, ...]]:
    """
    Read a table written by dump_dataset.

    Raises SolarTermDataError if the file is unreadable, the years are not
    contiguous, or a year does not list the 12 canonical terms in increasing
    time order.
    """
    if not path.exists():
        raise SolarTermDataError(f"절기 데이터 파일을 찾을 수 없습니다: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except ValueError as exc:
            raise SolarTermDataError(f"절기 데이터 파일을 읽을 수 없습니다: {path}") from exc

    if not isinstance(raw, dict) or not raw:
        raise SolarTermDataError(f"절기 데이터 파일이 비어 있습니다: {path}")

    dataset = dict(_parse_year(year_key, items) for year_key, items in raw.items())

    years = sorted(dataset)
    if years != list(range(years[0], years[-1] + 1)):
        missing = sorted(set(range(years[0], years[-1] + 1)) - set(years))
        raise SolarTermDataError(f"절기 데이터에 빠진 연도가 있습니다: {missing}")

    LOG.debug("Loaded solar terms for %d years from %s", len(dataset), path)
    return dataset


# ============================================================
# RUNTIME TABLE
# ============================================================

@lru_cache(maxsize=1)
def _file_table() -> Optional[dict[int, tuple[SolarTermEntry, ...]]]:
    if settings.SOLAR_TERMS_PATH is None:
        return None
    return load_dataset(settings.SOLAR_TERMS_PATH)


@lru_cache(maxsize=None)
def _generated_year(year: int) -> tuple[SolarTermEntry, ...]:
    LOG.debug("Generating solar terms for %d", year)
    return generate_year(year)


def clear_cache() -> None:
    """Forget loaded and generated terms (after changing settings)."""
    _file_table.cache_clear()
    _generated_year.cache_clear()


def solar_term_year_range() -> tuple[int, int]:
    table = _file_table()
    if table is None:
        return settings.SOLAR_TERM_YEAR_START, settings.SOLAR_TERM_YEAR_END
    return min(table), max(table)


def resolve_solar_term_table(year: int) -> tuple[SolarTermEntry, ...]:
    """
    The 12 solar terms of ``year``.

    Raises SolarTermDataError outside the table range.
    """
    first, last = solar_term_year_range()
    if year < first or year > last:
        raise SolarTermDataError(f"{year}년 절기 데이터가 없습니다. ({first}~{last}년 지원)")

    table = _file_table()
    if table is None:
        return _generated_year(year)
    entries = table.get(year)
    if entries is None:
        raise SolarTermDataError(f"{year}년 절기 데이터가 없습니다.")
    return entries


def find_term(year: int, term: str) -> SolarTermEntry:
    for entry in resolve_solar_term_table(year):
        if entry.term == term:
            return entry
    raise SolarTermDataError(f"{year}년 {term} 정보를 찾을 수 없습니다.")


# ============================================================
# SWISS EPHEMERIS CROSS-CHECK
# ============================================================

def ephemeris_term_instants(year: int) -> list[SolarTermEntry]:
    """
    The same 12 crossings computed with Swiss Ephemeris (Moshier theory,
    no data files needed).
    """
    results = []
    for d in TERM_DEFINITIONS:
        jd_start = swe.julday(year, d.approx_month, d.approx_day, 0) - 15
        jd_cross = swe.solcross_ut(float(d.longitude), jd_start, swe.FLG_MOSEPH)
        y, m, day, hour = swe.revjul(jd_cross, swe.GREG_CAL)
        instant = datetime(y, m, day, tzinfo=timezone.utc) + timedelta(hours=hour)
        results.append(SolarTermEntry(term=d.term, instant=instant))
    return results


def compare_with_ephemeris(year: int, entries: Optional[tuple[SolarTermEntry, ...]] = None) -> float:
    """
    Largest absolute deviation, in seconds, between ``entries`` (default: the
    runtime table for ``year``) and Swiss Ephemeris.
    """
    if entries is None:
        entries = resolve_solar_term_table(year)
    table = {entry.term: entry.instant for entry in entries}
    deviations = [
        abs((table[entry.term] - entry.instant).total_seconds())
        for entry in ephemeris_term_instants(year)
    ]
    return max(deviations)
