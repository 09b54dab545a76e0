"""
FitScore Engine - Display-Consistency Formatter.

============================================================
PURPOSE
============================================================
Derives the single "displayed" number for a pillar. The
breakdown widget and every generated narrative read pillar
values from here and nowhere else, so the two never disagree.

============================================================
RULE
============================================================
- entry_count == 1 (Nutrition / Training): round to integer
- entry_count != 1: exactly one decimal place
- Recovery: always one decimal place (no entry count)

Rounding is half-up on the decimal representation of the
value, so 6.5 displays as "7" and 6.45 as "6.5".

============================================================
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from .types import CompositeScore, Pillar, PillarScore


_QUANTS = {0: Decimal("1"), 1: Decimal("0.1")}


def round_half_up(value: Union[float, int], places: int = 0) -> Decimal:
    """
    Round half away from zero on the value's decimal repr.

    Args:
        value: Number to round
        places: Decimal places to keep (0 or 1)

    Returns:
        Rounded Decimal
    """
    quant = _QUANTS.get(places) or Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP)


def format_integer(value: Union[float, int]) -> str:
    """Format as a rounded integer string, e.g. 6.5 -> "7"."""
    return str(int(round_half_up(value, 0)))


def format_one_decimal(value: Union[float, int]) -> str:
    """Format with exactly one decimal digit, e.g. 6 -> "6.0"."""
    return f"{round_half_up(value, 1):.1f}"


def display_value(pillar: Pillar, raw_score: float, entry_count: int = 0) -> str:
    """
    The displayed value of a pillar score.

    This is the one shared display rule; do not reimplement it.
    """
    if pillar.counts_entries and entry_count == 1:
        return format_integer(raw_score)
    return format_one_decimal(raw_score)


def display_pillar(score: PillarScore) -> str:
    return display_value(score.pillar, score.raw_score, score.entry_count)


def display_number(display: str) -> float:
    """Numeric value of a displayed string, used for display-side zoning."""
    return float(display)


def format_score_summary(score: CompositeScore) -> str:
    """
    Format a human-readable FitScore summary.

    Useful for logging and dashboards. Pillar values use the
    same display rule as the breakdown widget.
    """
    lines = [
        "=" * 50,
        f"FITSCORE SUMMARY {score.date.isoformat()}",
        "=" * 50,
        f"FitScore: {format_one_decimal(score.fit_score)}/10 ({score.zone.name})",
        f"All Green: {'yes' if score.all_green else 'no'}",
        "",
        "Pillar Breakdown:",
    ]
    for pillar in Pillar.all_pillars():
        pillar_score = score.pillar(pillar)
        lines.append(
            f"  {pillar.display_name + ':':<11}{display_pillar(pillar_score)}/10 "
            f"({pillar_score.zone.name})"
        )
    lines.append("=" * 50)
    return "\n".join(lines)
