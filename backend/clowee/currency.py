# Overview: Presentation helpers for BDT amounts and percentages.

from __future__ import annotations

import math

BDT_SYMBOL = "৳"


def _finite(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def format_currency_bdt(amount) -> str:
    """
    Render an amount as Bangladeshi Taka with two decimals.

    Non-finite or non-numeric input renders as zero. Negative amounts keep
    their sign in front of the symbol: -50 -> "-৳50.00".
    """
    value = _finite(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{BDT_SYMBOL}{abs(value):,.2f}"


def format_percentage(value) -> str:
    return f"{_finite(value):.2f}%"
