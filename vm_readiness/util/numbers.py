"""
Numeric helpers shared by checks, scoring and wave planning.
"""

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves rounded up.

    Unlike the built-in ``round``, a half never goes to the even neighbour.

    Example:
        >>> round_half_up(92.5)
        93
        >>> round_half_up(250.5)
        251
    """
    return math.floor(value + 0.5)
