"""
Generate date-dependent reading content for a computed chart.

Combines the elemental summary and today's day pillar with the static text
tables in saju.texts:
- daily fortune (today's pillar against the natal day pillar)
- interpretation categories (temperament, flow, relationships, career, ...)
- element bars (count and percentage per element)

Usage:
    python -m saju.generate_context --birth-date 1990-05-15 --birth-time 14:30 --date 2026-10-19
"""

import argparse
import json
import logging
import math
import sys
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from saju import settings
from saju.astro_calendar import full_date_label, today
from saju.bazi import (
    Element,
    Polarity,
    branch_relation,
    compute_daily_reference_pillar,
    element_relation,
)
from saju.create_chart import FourPillarsResult, compute_four_pillars
from saju.errors import SajuError
from saju.lucky_numbers import recommend_lucky_numbers
from saju import texts

LOG = logging.getLogger(__name__)

# Polarity difference at which the daily text switches to an imbalance message
IMBALANCE_THRESHOLD = 2


@dataclass(frozen=True)
class DailyFortune:
    date_label: str
    pillar_name: str
    element_label: str
    polarity: str
    energy_text: str
    action_text: str
    caution_text: str
    element_relation: str
    branch_relation: str
    alignment: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class InterpretationCategory:
    key: str
    title: str
    description: str

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ElementBar:
    element: str
    label: str
    count: int
    ratio: int

    def to_dict(self):
        return asdict(self)


# ============================================================
# DAILY FORTUNE
# ============================================================

def _alignment(result: FourPillarsResult, element: Element) -> str:
    summary = result.summary
    average = summary.total_elements / len(Element)
    if element == summary.strongest.element:
        return "strong"
    if element == summary.weakest.element:
        return "weak"
    if summary.element_counts[element] >= average:
        return "supportive"
    return "neutral"


def polarity_balance_text(yang: int, yin: int, today_polarity: Polarity) -> str:
    if yang - yin >= IMBALANCE_THRESHOLD:
        if today_polarity == Polarity.YANG:
            return texts.BALANCE_YANG_HEAVY_SAME
        return texts.BALANCE_YANG_HEAVY_OPPOSITE
    if yin - yang >= IMBALANCE_THRESHOLD:
        if today_polarity == Polarity.YIN:
            return texts.BALANCE_YIN_HEAVY_SAME
        return texts.BALANCE_YIN_HEAVY_OPPOSITE
    return texts.BALANCE_EVEN


def build_daily_fortune(result: FourPillarsResult, reference_date: Optional[date] = None) -> DailyFortune:
    """
    Today's fortune for a natal chart.

    Today's stem element is compared with the natal day stem element, and
    today's branch with the natal day branch.
    """
    day = reference_date or today()
    stem, branch = compute_daily_reference_pillar(day)
    element = stem.element
    polarity = stem.polarity

    natal_day = result.pillars.day
    relation_key = element_relation(natal_day.stem_element, element)
    branch_key = branch_relation(natal_day.branch, branch)
    alignment = _alignment(result, element)

    counts = result.summary.polarity_counts
    balance_text = polarity_balance_text(counts[Polarity.YANG], counts[Polarity.YIN], polarity)

    branch_positive = texts.DAILY_BRANCH_MESSAGES[branch_key] if branch_key in ("same", "harmony") else ""
    branch_caution = texts.DAILY_BRANCH_MESSAGES[branch_key] if branch_key == "clash" else ""

    energy_text = f"{texts.DAILY_RELATION_MESSAGES[relation_key]} {texts.DAILY_ELEMENT_ALIGNMENT[alignment]}".strip()
    action_parts = [texts.DAILY_ACTIVITY_BY_ELEMENT[element], branch_positive]
    caution_parts = [balance_text, texts.DAILY_CARE_BY_ELEMENT[element], branch_caution]

    return DailyFortune(
        date_label=full_date_label(day),
        pillar_name=f"{stem.korean}{branch.korean}",
        element_label=element.label,
        polarity=polarity.korean,
        energy_text=energy_text,
        action_text=" ".join(part for part in action_parts if part),
        caution_text=" ".join(part for part in caution_parts if part),
        element_relation=relation_key,
        branch_relation=branch_key,
        alignment=alignment,
    )


# ============================================================
# INTERPRETATION
# ============================================================

def build_interpretation(result: FourPillarsResult) -> list[InterpretationCategory]:
    pillars = result.pillars
    summary = result.summary
    strongest = summary.strongest.element
    weakest = summary.weakest.element
    strong_name = strongest.korean
    weak_name = weakest.korean
    max_count = summary.strongest.count
    min_count = summary.weakest.count
    even = max_count == min_count
    tone = texts.GENDER_TONE[result.meta.gender]
    strong_routine = texts.ROUTINE_TIPS_BY_ELEMENT[strongest]
    weak_routine = texts.ROUTINE_TIPS_BY_ELEMENT[weakest]
    day = pillars.day
    month = pillars.month

    categories = [
        InterpretationCategory(
            key="temperament",
            title="타고난 기질과 성격",
            description=" ".join([
                f"사주의 중심이 되는 {day.name} 일주에서 {day.stem.korean}({day.stem_element.label}) 기운과 "
                f"{day.branch.korean} 지지가 겹쳐 {texts.TEMPERAMENT_BY_ELEMENT[day.stem_element]} 성향이 두드러집니다.",
                f"이 결과의 의미는? 강한 {strong_name} 기운이 {max_count}개 쌓여 자신의 주도권을 확보하기 쉬운 흐름을 만든다는 뜻입니다.",
                f"삶에 적용하는 팁: 강한 {strong_name} 기운은 자신감이 필요한 자리에서 쓰고, 부족한 {weak_name} 기운은 {weak_routine}",
            ]),
        )
    ]

    element_gap = max_count - min_count
    flow_message = texts.FLOW_BALANCED if element_gap <= 1 else texts.flow_focused(strong_name)

    yin = summary.polarity_counts[Polarity.YIN]
    yang = summary.polarity_counts[Polarity.YANG]
    polarity_gap = abs(yin - yang)
    if yin > yang and polarity_gap >= IMBALANCE_THRESHOLD:
        flow_message += f" {texts.flow_yin_dominant(polarity_gap)}"
    elif yang > yin and polarity_gap >= IMBALANCE_THRESHOLD:
        flow_message += f" {texts.flow_yang_dominant(polarity_gap)}"

    categories.append(InterpretationCategory(
        key="fortune",
        title="운의 흐름",
        description=" ".join([
            f"{strong_name} 기운과 {weak_name} 기운의 차이가 {element_gap}개라 흐름이 한쪽으로 기울어 있습니다.",
            f"이 결과의 의미는? {tone} {flow_message}",
            f"삶에 적용하는 팁: {strong_routine} 부족한 {weak_name} 영역은 하루 10분이라도 {weak_routine}",
        ]),
    ))

    categories.append(InterpretationCategory(
        key="relationship",
        title="관계운",
        description=" ".join([
            f"일주({day.branch.korean})와 연주({pillars.year.branch.korean})의 관계가 "
            f"{texts.RELATIONSHIP_BY_BRANCH[pillars.year.branch.index]} 흐름과 연결되기 때문입니다.",
            f"이 결과의 의미는? {texts.RELATIONSHIP_BY_BRANCH[day.branch.index]} 영향으로 자신이 주도하는 인간관계 스타일이 형성된다는 뜻입니다.",
            f"삶에 적용하는 팁: 강한 {strong_name} 기운을 만남과 협업에 활용하고, 부족한 {weak_name} 감각은 "
            "일정에 휴식과 경청 시간을 배치해 보완하세요.",
        ]),
    ))

    categories.append(InterpretationCategory(
        key="career",
        title="직업·적성",
        description=" ".join([
            f"월주({month.name})에서 {month.stem.korean}({month.stem_element.label}) 기운이 직업 환경을 설계하는 축을 담당하기 때문입니다.",
            f"이 결과의 의미는? {texts.CAREER_BY_ELEMENT[month.stem_element]}",
            f"삶에 적용하는 팁: 강한 {strong_name} 기운을 프로젝트의 추진력으로 삼고, 부족한 {weak_name} 기운은 {weak_routine}",
        ]),
    ))

    if even:
        wealth_tip = "오행 균형이 좋아 계획적인 저축과 투자가 빛을 발합니다."
    else:
        wealth_tip = f"부족한 {weak_name} 기운은 {weak_routine}"
    categories.append(InterpretationCategory(
        key="wealth",
        title="재물운",
        description=" ".join([
            f"{strong_name} 기운이 {summary.element_counts[strongest]}개로 가장 높아 재물 흐름을 끌어오는 열쇠가 됩니다.",
            f"이 결과의 의미는? {texts.WEALTH_FOCUS_BY_ELEMENT[strongest]}",
            f"삶에 적용하는 팁: {wealth_tip}",
        ]),
    ))

    honor_extra = " 오행 균형이 좋아 다양한 영역에서 신뢰를 얻기 좋은 구조입니다." if even else ""
    if even:
        honor_tip = "꾸준한 약속 이행과 기록 관리로 명성을 쌓아보세요."
    else:
        honor_tip = f"부족한 {weak_name} 기운을 보완하면 인정 폭이 더욱 넓어집니다."
    categories.append(InterpretationCategory(
        key="honor",
        title="명예·사회적 인정",
        description=" ".join([
            f"{strong_name} 기운이 주축이 되어 사회적 평가가 해당 기운과 연결되기 쉽습니다.",
            f"이 결과의 의미는? {texts.HONOR_FOCUS_BY_ELEMENT[strongest]}{honor_extra}",
            f"삶에 적용하는 팁: {honor_tip}",
        ]),
    ))

    if even:
        health_tip = "현재의 생활 리듬을 유지하면서 주기적인 컨디션 점검을 이어가세요."
    else:
        health_tip = f"{weak_routine} 강한 {strong_name} 기운은 무리하지 않도록 속도를 조절하세요."
    categories.append(InterpretationCategory(
        key="health",
        title="건강 포인트",
        description=" ".join([
            f"{weak_name} 기운이 {summary.element_counts[weakest]}개로 가장 낮아 몸이 해당 부위를 먼저 신호로 보냅니다.",
            f"이 결과의 의미는? {texts.HEALTH_TIPS_BY_ELEMENT[weakest]}",
            f"삶에 적용하는 팁: {health_tip}",
        ]),
    ))

    return categories


# ============================================================
# ELEMENT BARS
# ============================================================

def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def build_element_bars(result: Optional[FourPillarsResult]) -> list[ElementBar]:
    """Count and percentage of each element, in canonical element order."""
    if result is None:
        return []
    total = result.summary.total_elements
    return [
        ElementBar(
            element=element.value,
            label=element.label,
            count=count,
            ratio=_round_half_up(count / total * 100) if total else 0,
        )
        for element, count in result.summary.element_counts.items()
    ]


# ============================================================
# FULL CONTEXT
# ============================================================

def generate_reading_context(result: FourPillarsResult, reference_date: Optional[date] = None) -> dict:
    """Chart plus every derived block, as one JSON-ready payload."""
    fortune = build_daily_fortune(result, reference_date)
    lucky = recommend_lucky_numbers(result, fortune)
    return {
        "chart": result.to_dict(),
        "element_bars": [bar.to_dict() for bar in build_element_bars(result)],
        "interpretation": [c.to_dict() for c in build_interpretation(result)],
        "daily_fortune": fortune.to_dict(),
        "lucky_numbers": lucky.to_dict(),
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate saju reading content for a date")
    parser.add_argument("--birth-date", required=True, dest="birth_date", help="YYYY-MM-DD")
    parser.add_argument("--birth-time", dest="birth_time", default=None, help="HH:MM (optional)")
    parser.add_argument("--gender", default="male", choices=sorted(texts.GENDER_LABELS))
    parser.add_argument("--timezone", default=None, help=f"IANA zone (default {settings.DEFAULT_TIMEZONE})")
    parser.add_argument("--date", default=None, help="Reference date YYYY-MM-DD (default: today)")
    args = parser.parse_args(argv)

    settings.configure_logging()

    try:
        reference = date.fromisoformat(args.date) if args.date else None
    except ValueError:
        print(f"Invalid --date: {args.date}", file=sys.stderr)
        return 1

    try:
        result = compute_four_pillars(args.birth_date, args.birth_time, args.gender, args.timezone)
        context = generate_reading_context(result, reference)
    except SajuError as exc:
        LOG.debug("Reading generation failed", exc_info=True)
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(context, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
