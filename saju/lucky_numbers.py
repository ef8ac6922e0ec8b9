"""
Deterministic lucky-number recommendation (6 numbers + bonus, 1-45).

The generator is seeded from the chart and today's fortune text, so the same
person gets the same numbers for the whole day and different numbers tomorrow.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from saju.create_chart import FourPillarsResult
    from saju.generate_context import DailyFortune

LCG_MODULUS = 0x100000000
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223

NUMBER_MAX = 45
PICK_COUNT = 6


@dataclass(frozen=True)
class LuckyNumbers:
    numbers: list[int]
    bonus: int

    def to_dict(self):
        return {"numbers": list(self.numbers), "bonus": self.bonus}


def _first_code_unit(char: str) -> int:
    """First UTF-16 code unit of a code point (high surrogate above U+FFFF)."""
    code = ord(char)
    if code > 0xFFFF:
        return 0xD800 + ((code - 0x10000) >> 10)
    return code


def create_seed(value: str) -> int:
    """31-multiplier string hash modulo 2**32; never 0."""
    h = 0
    for char in value:
        h = (h * 31 + _first_code_unit(char)) % LCG_MODULUS
    return h or 1


def random_sequence(seed: int):
    """Linear congruential generator yielding floats in [0, 1)."""
    state = seed % LCG_MODULUS
    while True:
        state = (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        yield state / LCG_MODULUS


def build_seed_string(result: "FourPillarsResult", fortune: "DailyFortune") -> str:
    parts = [
        result.meta.solar_date_label,
        result.meta.gender,
        result.pillars.day.name,
        result.summary.strongest.element.korean,
        fortune.date_label,
        fortune.pillar_name,
        fortune.energy_text,
        fortune.action_text,
        fortune.caution_text,
    ]
    return "|".join(parts)


def recommend_lucky_numbers(result: "FourPillarsResult", fortune: "DailyFortune") -> LuckyNumbers:
    """
    Six distinct sorted numbers and a bonus number not among them.

    Args:
        result: FourPillarsResult from saju.create_chart
        fortune: DailyFortune from saju.generate_context
    """
    random = random_sequence(create_seed(build_seed_string(result, fortune)))

    def draw() -> int:
        return int(next(random) * NUMBER_MAX) + 1

    selected = []
    while len(selected) < PICK_COUNT:
        number = draw()
        if number not in selected:
            selected.append(number)

    bonus = draw()
    while bonus in selected:
        bonus = draw()

    return LuckyNumbers(numbers=sorted(selected), bonus=bonus)
