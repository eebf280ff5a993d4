import math


def round_half_up(value: float) -> int:
    # halves go up (2.5 -> 3), unlike round()
    return int(math.floor(value + 0.5))


def round2(value: float) -> float:
    return round_half_up(value * 100) / 100
