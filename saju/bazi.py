"""
Saju (Four Pillars) computation engine.

Handles:
- Heavenly Stem / Earthly Branch lookup tables
- Year, month, day and hour pillar arithmetic
- Element and yin-yang aggregation (elemental summary)
- Element relations (production / control cycles)
- Branch relations (six harmonies / six clashes)

Design principle: this module is pure index arithmetic. Solar term boundaries
are resolved in saju.astro_calendar and passed in as plain indices.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


# ============================================================
# FUNDAMENTAL DATA STRUCTURES
# ============================================================

class Polarity(Enum):
    YANG = "yang"
    YIN = "yin"

    @property
    def korean(self) -> str:
        return POLARITY_KOREAN[self]


class Element(Enum):
    # Declaration order is the canonical order used for tie-breaks
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"

    @property
    def korean(self) -> str:
        return ELEMENT_KOREAN[self]

    @property
    def label(self) -> str:
        return ELEMENT_LABELS[self]


POLARITY_KOREAN = {
    Polarity.YANG: "양",
    Polarity.YIN: "음",
}

ELEMENT_KOREAN = {
    Element.WOOD: "목",
    Element.FIRE: "화",
    Element.EARTH: "토",
    Element.METAL: "금",
    Element.WATER: "수",
}

ELEMENT_LABELS = {
    Element.WOOD: "목(木)",
    Element.FIRE: "화(火)",
    Element.EARTH: "토(土)",
    Element.METAL: "금(金)",
    Element.WATER: "수(水)",
}


@dataclass(frozen=True)
class HeavenlyStem:
    chinese: str
    pinyin: str
    korean: str
    element: Element
    polarity: Polarity
    index: int  # 0-9 in the cycle

    def __str__(self):
        return f"{self.korean} {self.pinyin} ({self.polarity.value} {self.element.value})"


@dataclass(frozen=True)
class EarthlyBranch:
    chinese: str
    pinyin: str
    korean: str
    animal: str
    animal_korean: str
    element: Element
    polarity: Polarity
    index: int  # 0-11 in the cycle

    def __str__(self):
        return f"{self.korean} {self.pinyin} ({self.animal})"


@dataclass(frozen=True)
class Pillar:
    stem: HeavenlyStem
    branch: EarthlyBranch
    position: str  # "year", "month", "day", "hour"
    focus: Optional[str] = None
    lunar_month: Optional[int] = None
    is_leap_month: Optional[bool] = None
    month_label: Optional[str] = None
    hour_range: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.stem.korean}{self.branch.korean}"

    @property
    def stem_element(self) -> Element:
        return self.stem.element

    @property
    def branch_element(self) -> Element:
        return self.branch.element

    @property
    def stem_polarity(self) -> Polarity:
        return self.stem.polarity

    @property
    def branch_polarity(self) -> Polarity:
        return self.branch.polarity

    @property
    def animal(self) -> str:
        return self.branch.animal_korean

    def __str__(self):
        return f"{self.name} ({self.stem.pinyin} {self.branch.pinyin}, {self.branch.animal})"

    def to_dict(self):
        data = {
            "position": self.position,
            "name": self.name,
            "stem": {
                "chinese": self.stem.chinese,
                "pinyin": self.stem.pinyin,
                "korean": self.stem.korean,
                "element": self.stem.element.value,
                "polarity": self.stem.polarity.value,
            },
            "branch": {
                "chinese": self.branch.chinese,
                "pinyin": self.branch.pinyin,
                "korean": self.branch.korean,
                "animal": self.branch.animal,
                "element": self.branch.element.value,
                "polarity": self.branch.polarity.value,
            },
            "animal": self.animal,
            "description": str(self),
        }
        extras = {
            "focus": self.focus,
            "lunar_month": self.lunar_month,
            "is_leap_month": self.is_leap_month,
            "month_label": self.month_label,
            "hour_range": self.hour_range,
        }
        data.update({key: value for key, value in extras.items() if value is not None})
        return data


@dataclass(frozen=True)
class FourPillars:
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Optional[Pillar] = None  # only when a birth time was given

    def solid(self) -> list[Pillar]:
        """Pillars that are present, in year, month, day, hour order."""
        return [p for p in (self.year, self.month, self.day, self.hour) if p is not None]

    def names(self) -> list[str]:
        return [p.name for p in self.solid()]

    def to_dict(self):
        return {
            "year": self.year.to_dict(),
            "month": self.month.to_dict(),
            "day": self.day.to_dict(),
            "hour": self.hour.to_dict() if self.hour else None,
        }


# ============================================================
# STEM AND BRANCH DEFINITIONS
# ============================================================

HEAVENLY_STEMS = (
    HeavenlyStem("甲", "Jia", "갑", Element.WOOD, Polarity.YANG, 0),
    HeavenlyStem("乙", "Yi", "을", Element.WOOD, Polarity.YIN, 1),
    HeavenlyStem("丙", "Bing", "병", Element.FIRE, Polarity.YANG, 2),
    HeavenlyStem("丁", "Ding", "정", Element.FIRE, Polarity.YIN, 3),
    HeavenlyStem("戊", "Wu", "무", Element.EARTH, Polarity.YANG, 4),
    HeavenlyStem("己", "Ji", "기", Element.EARTH, Polarity.YIN, 5),
    HeavenlyStem("庚", "Geng", "경", Element.METAL, Polarity.YANG, 6),
    HeavenlyStem("辛", "Xin", "신", Element.METAL, Polarity.YIN, 7),
    HeavenlyStem("壬", "Ren", "임", Element.WATER, Polarity.YANG, 8),
    HeavenlyStem("癸", "Gui", "계", Element.WATER, Polarity.YIN, 9),
)

EARTHLY_BRANCHES = (
    EarthlyBranch("子", "Zi", "자", "Rat", "쥐", Element.WATER, Polarity.YANG, 0),
    EarthlyBranch("丑", "Chou", "축", "Ox", "소", Element.EARTH, Polarity.YIN, 1),
    EarthlyBranch("寅", "Yin", "인", "Tiger", "호랑이", Element.WOOD, Polarity.YANG, 2),
    EarthlyBranch("卯", "Mao", "묘", "Rabbit", "토끼", Element.WOOD, Polarity.YIN, 3),
    EarthlyBranch("辰", "Chen", "진", "Dragon", "용", Element.EARTH, Polarity.YANG, 4),
    EarthlyBranch("巳", "Si", "사", "Snake", "뱀", Element.FIRE, Polarity.YIN, 5),
    EarthlyBranch("午", "Wu", "오", "Horse", "말", Element.FIRE, Polarity.YANG, 6),
    EarthlyBranch("未", "Wei", "미", "Goat", "양", Element.EARTH, Polarity.YIN, 7),
    EarthlyBranch("申", "Shen", "신", "Monkey", "원숭이", Element.METAL, Polarity.YANG, 8),
    EarthlyBranch("酉", "You", "유", "Rooster", "닭", Element.METAL, Polarity.YIN, 9),
    EarthlyBranch("戌", "Xu", "술", "Dog", "개", Element.EARTH, Polarity.YANG, 10),
    EarthlyBranch("亥", "Hai", "해", "Pig", "돼지", Element.WATER, Polarity.YIN, 11),
)

HOUR_RANGES = (
    "23:00 ~ 00:59",
    "01:00 ~ 02:59",
    "03:00 ~ 04:59",
    "05:00 ~ 06:59",
    "07:00 ~ 08:59",
    "09:00 ~ 10:59",
    "11:00 ~ 12:59",
    "13:00 ~ 14:59",
    "15:00 ~ 16:59",
    "17:00 ~ 18:59",
    "19:00 ~ 20:59",
    "21:00 ~ 22:59",
)

PILLAR_FOCUS = {
    "year": "초년·부모",
    "month": "청년기·형제",
    "day": "성향·배우자",
    "hour": "말년·자녀",
}


def _check_tables() -> None:
    """Every stem and branch must carry exactly one element, polarity (and animal)."""
    if [s.index for s in HEAVENLY_STEMS] != list(range(10)):
        raise RuntimeError("Heavenly stem table is not indexed 0-9")
    if [b.index for b in EARTHLY_BRANCHES] != list(range(12)):
        raise RuntimeError("Earthly branch table is not indexed 0-11")
    for item in HEAVENLY_STEMS + EARTHLY_BRANCHES:
        if not isinstance(item.element, Element) or not isinstance(item.polarity, Polarity):
            raise RuntimeError(f"Incomplete element/polarity mapping for {item.pinyin}")
    if len({b.animal for b in EARTHLY_BRANCHES}) != 12 or any(not b.animal_korean for b in EARTHLY_BRANCHES):
        raise RuntimeError("Every branch needs exactly one animal")
    if set(ELEMENT_KOREAN) != set(Element) or set(POLARITY_KOREAN) != set(Polarity):
        raise RuntimeError("Missing Korean label for an element or polarity")


_check_tables()


# ============================================================
# PILLAR COMPUTATION
# ============================================================

# Five Tigers Escape: stem of the Tiger (first) month, indexed by year stem
FIRST_MONTH_STEM_INDEX = (2, 4, 6, 8, 0, 2, 4, 6, 8, 0)


def year_stem_branch(pillar_year: int) -> tuple[int, int]:
    """
    Stem and branch index of a pillar year.

    The pillar year is the Gregorian year, minus one for instants before
    Li Chun (resolved by saju.astro_calendar). Year 4 CE was Jia Zi.
    """
    return (pillar_year - 4) % 10, (pillar_year - 4) % 12


def month_stem_index(year_stem_index: int, month_index: int) -> int:
    """
    Month stem from the year stem and the solar month index.

    Args:
        year_stem_index: index of the pillar year's heavenly stem (0-9)
        month_index: 0 for the Li Chun (Tiger) month up to 11 for Xiao Han (Ox)
    """
    return (FIRST_MONTH_STEM_INDEX[year_stem_index] + month_index) % 10


def day_stem_branch(year: int, month: int, day: int) -> tuple[int, int]:
    """
    Closed-form day pillar for a proleptic Gregorian date.

    January and February count as months 13 and 14 of the previous year.
    The classic formula yields 1-based stem/branch numbers and needs +6 on
    the branch for even months; both are folded into the constants below so
    the result is a 0-based index (1949-10-01 -> Jia Zi, 2000-01-01 -> Wu Wu).
    No solar term dependency.
    """
    y = year
    m = month
    if m in (1, 2):
        y -= 1
        m += 12

    century = y // 100
    y2 = y % 100
    term = (3 * (m + 1)) // 5
    even_month = 6 if m % 2 == 0 else 0

    stem_index = (4 * century + century // 4 + 5 * y2 + y2 // 4 + term + day - 4) % 10
    branch_index = (8 * century + century // 4 + 5 * y2 + y2 // 4 + term + day + 6 + even_month) % 12
    return stem_index, branch_index


def hour_stem_branch(day_stem_index: int, hour_decimal: Optional[float]) -> Optional[tuple[int, int]]:
    """
    Hour pillar indices (Five Rats Escape).

    Double-hours start at 23:00: 23:00-00:59 = Zi, 01:00-02:59 = Chou, ...
    Returns None when no birth time was supplied.
    """
    if hour_decimal is None:
        return None
    branch_index = int((hour_decimal + 1) // 2) % 12
    stem_index = (day_stem_index * 2 + branch_index) % 10
    return stem_index, branch_index


def build_pillar(stem_index: int, branch_index: int, position: str, **extras) -> Pillar:
    return Pillar(
        stem=HEAVENLY_STEMS[stem_index % 10],
        branch=EARTHLY_BRANCHES[branch_index % 12],
        position=position,
        **extras,
    )


def year_pillar(pillar_year: int) -> Pillar:
    stem_index, branch_index = year_stem_branch(pillar_year)
    return build_pillar(stem_index, branch_index, "year", focus=PILLAR_FOCUS["year"])


def month_pillar(year_stem_index: int, month_index: int, branch_index: int, **extras) -> Pillar:
    stem_index = month_stem_index(year_stem_index, month_index)
    return build_pillar(stem_index, branch_index, "month", focus=PILLAR_FOCUS["month"], **extras)


def day_pillar(year: int, month: int, day: int) -> Pillar:
    stem_index, branch_index = day_stem_branch(year, month, day)
    return build_pillar(stem_index, branch_index, "day", focus=PILLAR_FOCUS["day"])


def hour_pillar(day_stem_index: int, hour_decimal: Optional[float]) -> Optional[Pillar]:
    indices = hour_stem_branch(day_stem_index, hour_decimal)
    if indices is None:
        return None
    stem_index, branch_index = indices
    return build_pillar(
        stem_index, branch_index, "hour",
        focus=PILLAR_FOCUS["hour"],
        hour_range=HOUR_RANGES[branch_index],
    )


def compute_daily_reference_pillar(day: date) -> tuple[HeavenlyStem, EarthlyBranch]:
    """Today's day pillar, a pure function of the calendar date."""
    stem_index, branch_index = day_stem_branch(day.year, day.month, day.day)
    return HEAVENLY_STEMS[stem_index], EARTHLY_BRANCHES[branch_index]


# ============================================================
# ELEMENT RELATIONS
# ============================================================

# Production cycle: Wood → Fire → Earth → Metal → Water → Wood
PRODUCTION_CYCLE = {
    Element.WOOD: Element.FIRE,
    Element.FIRE: Element.EARTH,
    Element.EARTH: Element.METAL,
    Element.METAL: Element.WATER,
    Element.WATER: Element.WOOD,
}

PRODUCED_BY = {child: parent for parent, child in PRODUCTION_CYCLE.items()}

# Control cycle: Wood → Earth → Water → Fire → Metal → Wood
CONTROL_CYCLE = {
    Element.WOOD: Element.EARTH,
    Element.EARTH: Element.WATER,
    Element.WATER: Element.FIRE,
    Element.FIRE: Element.METAL,
    Element.METAL: Element.WOOD,
}

CONTROLLED_BY = {target: source for source, target in CONTROL_CYCLE.items()}

ELEMENT_RELATION_KEYS = ("aligned", "output", "resource", "authority", "pressure", "neutral")


def element_relation(reference: Element, candidate: Element) -> str:
    """
    Relation of ``candidate`` as seen from ``reference``.

    Checked in priority order: aligned, output (reference produces candidate),
    resource (candidate produces reference), authority (reference controls
    candidate), pressure (candidate controls reference), neutral.
    """
    if candidate == reference:
        return "aligned"
    if PRODUCTION_CYCLE[reference] == candidate:
        return "output"
    if PRODUCED_BY[reference] == candidate:
        return "resource"
    if CONTROL_CYCLE[reference] == candidate:
        return "authority"
    if CONTROLLED_BY[reference] == candidate:
        return "pressure"
    return "neutral"


# ============================================================
# BRANCH RELATIONS
# ============================================================

# Six Combinations (六合)
SIX_COMBINATIONS = [
    (0, 1),   # Zi-Chou
    (2, 11),  # Yin-Hai
    (3, 10),  # Mao-Xu
    (4, 9),   # Chen-You
    (5, 8),   # Si-Shen
    (6, 7),   # Wu-Wei
]

# Six Clashes (六冲)
SIX_CLASHES = [
    (0, 6),   # Zi-Wu (Rat-Horse)
    (1, 7),   # Chou-Wei (Ox-Goat)
    (2, 8),   # Yin-Shen (Tiger-Monkey)
    (3, 9),   # Mao-You (Rabbit-Rooster)
    (4, 10),  # Chen-Xu (Dragon-Dog)
    (5, 11),  # Si-Hai (Snake-Pig)
]


def _partner_table(pairs: list[tuple[int, int]]) -> dict[int, int]:
    table = {}
    for a, b in pairs:
        table[a] = b
        table[b] = a
    if sorted(table) != list(range(12)):
        raise RuntimeError("Branch pair table must give every branch exactly one partner")
    return table


BRANCH_HARMONY_PARTNER = _partner_table(SIX_COMBINATIONS)
BRANCH_CLASH_PARTNER = _partner_table(SIX_CLASHES)

BRANCH_RELATION_KEYS = ("same", "harmony", "clash", "neutral")


def branch_relation(reference: EarthlyBranch, candidate: EarthlyBranch) -> str:
    """Relation of ``candidate`` to ``reference``: same, harmony, clash or neutral."""
    if candidate.index == reference.index:
        return "same"
    if BRANCH_HARMONY_PARTNER[reference.index] == candidate.index:
        return "harmony"
    if BRANCH_CLASH_PARTNER[reference.index] == candidate.index:
        return "clash"
    return "neutral"


# ============================================================
# ELEMENT DISTRIBUTION SUMMARY
# ============================================================

@dataclass(frozen=True)
class ElementCount:
    element: Element
    count: int

    def to_dict(self):
        return {"element": self.element.value, "label": self.element.korean, "count": self.count}


@dataclass(frozen=True)
class Summary:
    element_counts: dict[Element, int]
    polarity_counts: dict[Polarity, int]
    strongest: ElementCount
    weakest: ElementCount
    balance_message: str
    elements: tuple[ElementCount, ...]  # sorted by count, descending (stable)
    total_elements: int

    def to_dict(self):
        return {
            "element_counts": {e.value: c for e, c in self.element_counts.items()},
            "polarity_counts": {p.value: c for p, c in self.polarity_counts.items()},
            "strongest": self.strongest.to_dict(),
            "weakest": self.weakest.to_dict(),
            "balance_message": self.balance_message,
            "elements": [item.to_dict() for item in self.elements],
            "total_elements": self.total_elements,
        }


def balance_message(yang: int, yin: int) -> str:
    if yang == yin:
        return "음양의 균형이 비교적 잘 맞습니다."
    if yang > yin:
        return f"양({yang})의 기운이 더 강합니다."
    return f"음({yin})의 기운이 더 강합니다."


def make_summary(pillars: list[Pillar], has_hour: bool) -> Summary:
    """
    Count element and polarity presence across the pillars.

    Each pillar contributes its stem and its branch once, so the element
    counts sum to 2 x (3 or 4). Without an hour only the first three pillars
    are read. Ties for strongest/weakest go to the first element in
    canonical order (Wood, Fire, Earth, Metal, Water).
    """
    element_counts = {e: 0 for e in Element}
    polarity_counts = {Polarity.YANG: 0, Polarity.YIN: 0}

    active = pillars if has_hour else pillars[:3]

    for pillar in active:
        element_counts[pillar.stem_element] += 1
        element_counts[pillar.branch_element] += 1
        polarity_counts[pillar.stem_polarity] += 1
        polarity_counts[pillar.branch_polarity] += 1

    # sorted() is stable, equal counts keep canonical order
    ranked = sorted(
        (ElementCount(element, count) for element, count in element_counts.items()),
        key=lambda item: -item.count,
    )
    max_count = ranked[0].count
    min_count = ranked[-1].count
    strongest = next(item for item in ranked if item.count == max_count)
    weakest = next(item for item in ranked if item.count == min_count)

    return Summary(
        element_counts=element_counts,
        polarity_counts=polarity_counts,
        strongest=strongest,
        weakest=weakest,
        balance_message=balance_message(polarity_counts[Polarity.YANG], polarity_counts[Polarity.YIN]),
        elements=tuple(ranked),
        total_elements=len(active) * 2,
    )
