"""Gamification counters derived from donations."""

import math
from datetime import date
from decimal import Decimal

from giving.schemas.values import Gamification


POINTS_PER_DOLLAR = 1
DOLLARS_PER_LEVEL = 100


def level_for(total_donated: float) -> int:
    return int(total_donated // DOLLARS_PER_LEVEL) + 1


def credit_donation(current: Gamification, amount: Decimal, on: date) -> Gamification:
    """
    Return new counters after crediting one donation.

    Only the donor's own contribution counts, never the employer match.
    """
    total_donated = round(current.total_donated + float(amount), 2)
    return current.model_copy(
        update={
            "total_points": current.total_points + math.floor(amount) * POINTS_PER_DOLLAR,
            "total_donated": total_donated,
            "level": level_for(total_donated),
            "last_donation_date": on,
        }
    )
