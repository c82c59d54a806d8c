from __future__ import annotations

import math
from typing import Any

from finadvisor.schemas.sip import SipResult


class SipInputError(ValueError):
    pass


MISSING_FIELDS = "Please provide monthlyInvestment, rate, and years"
INVALID_VALUES = "Invalid input values. All values must be positive."


def _parse(value: Any) -> float:
    if isinstance(value, bool):
        raise SipInputError(INVALID_VALUES)
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise SipInputError(INVALID_VALUES) from exc
    if not math.isfinite(number):
        raise SipInputError(INVALID_VALUES)
    return number


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def calculate_sip(monthly_investment: Any, rate: Any, years: Any) -> SipResult:
    """Maturity of a monthly SIP: M = P * ((1 + r)^n - 1) / r * (1 + r).

    ``rate`` is the annual percentage; r is the monthly rate and n the
    number of monthly instalments.
    """
    if any(_is_missing(v) for v in (monthly_investment, rate, years)):
        raise SipInputError(MISSING_FIELDS)

    principal = _parse(monthly_investment)
    annual_rate = _parse(rate)
    year_count = _parse(years)

    r = annual_rate / 100 / 12
    n = year_count * 12
    if principal <= 0 or r < 0 or n <= 0:
        raise SipInputError(INVALID_VALUES)

    if r == 0:
        maturity = principal * n
    else:
        maturity = principal * ((math.pow(1 + r, n) - 1) / r) * (1 + r)

    invested = principal * n
    return SipResult(
        monthlyInvestment=principal,
        annualRate=annual_rate,
        years=year_count,
        totalInvested=round(invested, 2),
        estimatedReturns=round(maturity - invested, 2),
        finalAmount=round(maturity, 2),
    )
