"""
Rounding helpers for Search Console metrics.
Half values round up, matching the dashboard's existing numbers.
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up"""
    return int(math.floor(value + 0.5))


def round_to_2(value: float) -> float:
    """Round to 2 decimals, .005 going up"""
    return round_half_up(value * 100) / 100
