"""HNT amounts: the API reports integer bones, payments take 8 decimal places."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

HNT_DECIMAL_PLACES = 8
BONES_PER_HNT = Decimal(10) ** HNT_DECIMAL_PLACES
HNT_QUANTUM = Decimal(1).scaleb(-HNT_DECIMAL_PLACES)  # 0.00000001


def from_bones(bones: Union[int, str]) -> Decimal:
    return (Decimal(bones) / BONES_PER_HNT).quantize(HNT_QUANTUM)


def round_hnt(value: Decimal) -> Decimal:
    return Decimal(value).quantize(HNT_QUANTUM, rounding=ROUND_HALF_UP)


def format_hnt(value: Union[Decimal, int, str]) -> str:
    return f"{round_hnt(Decimal(value)):.{HNT_DECIMAL_PLACES}f}"
