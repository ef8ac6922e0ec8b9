"""
Chart creation library.
Computes the four pillars and elemental summary from birth data.

Usage from Python:
    from saju.create_chart import compute_four_pillars
    result = compute_four_pillars("1990-05-15", "14:30", gender="male")
    result.to_dict()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from saju.astro_calendar import (
    lunar_date_parts,
    parse_birth_input,
    resolve_month_boundary,
    resolve_year_pillar,
    solar_date_label,
    western_zodiac,
)
from saju.bazi import (
    FourPillars,
    Summary,
    day_pillar,
    hour_pillar,
    make_summary,
    month_pillar,
    year_pillar,
)
from saju.errors import SajuInputError
from saju.texts import GENDER_LABELS

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartMeta:
    solar_date_label: str
    lunar_date_label: str
    lunar_related_year: Optional[int]
    western_zodiac: str
    has_time: bool
    time_label: str
    gender: str
    gender_label: str

    def to_dict(self):
        return {
            "solar_date_label": self.solar_date_label,
            "lunar_date_label": self.lunar_date_label,
            "lunar_related_year": self.lunar_related_year,
            "western_zodiac": self.western_zodiac,
            "has_time": self.has_time,
            "time_label": self.time_label,
            "gender": self.gender,
            "gender_label": self.gender_label,
        }


@dataclass(frozen=True)
class FourPillarsResult:
    pillars: FourPillars
    summary: Summary
    meta: ChartMeta

    def to_dict(self):
        return {
            "pillars": self.pillars.to_dict(),
            "summary": self.summary.to_dict(),
            "meta": self.meta.to_dict(),
        }


def compute_four_pillars(birth_date: str, birth_time: Optional[str] = None,
                         gender: str = "male", tz: Optional[str] = None) -> FourPillarsResult:
    """
    Compute the four pillars for a birth date and optional clock time.

    Args:
        birth_date: "YYYY-MM-DD"
        birth_time: "HH:MM" (24h, local clock time) or None / "" when unknown
        gender: "male" or "female"; only affects interpretation text
        tz: IANA timezone of the birth clock time (default settings.DEFAULT_TIMEZONE)

    Raises:
        SajuInputError: malformed or out-of-range input
        SolarTermDataError: no solar term data for the resolved boundary
    """
    if gender not in GENDER_LABELS:
        raise SajuInputError(f"성별은 {', '.join(GENDER_LABELS)} 중 하나여야 합니다.")

    birth = parse_birth_input(birth_date, birth_time, tz)
    moment = birth.moment

    # Year and month pillars from solar term boundaries
    year_info = resolve_year_pillar(moment)
    boundary = resolve_month_boundary(moment)

    lunar = lunar_date_parts(moment)

    yp = year_pillar(year_info.year)
    mp = month_pillar(
        year_info.stem_index, boundary.month_index, boundary.branch.index,
        lunar_month=lunar.lunar_month,
        is_leap_month=lunar.is_leap_month,
        month_label=lunar.month_label,
    )
    dp = day_pillar(moment.year, moment.month, moment.day)
    hp = hour_pillar(dp.stem.index, moment.hour + moment.minute / 60) if birth.has_time else None

    pillars = FourPillars(year=yp, month=mp, day=dp, hour=hp)
    summary = make_summary(pillars.solid(), hp is not None)

    LOG.debug("Computed pillars %s for %s (term %s)", pillars.names(), moment.isoformat(), boundary.term)

    meta = ChartMeta(
        solar_date_label=solar_date_label(moment),
        lunar_date_label=lunar.label,
        lunar_related_year=lunar.related_year,
        western_zodiac=western_zodiac(moment.month, moment.day),
        has_time=hp is not None,
        time_label=f"{moment.hour:02d}:{moment.minute:02d}" if birth.has_time else "미입력",
        gender=gender,
        gender_label=GENDER_LABELS[gender],
    )

    return FourPillarsResult(pillars=pillars, summary=summary, meta=meta)
