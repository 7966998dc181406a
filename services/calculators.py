# services/calculators.py

"""
Dashboard utilities: land-area conversion and EMI estimation.
Pure functions, no persistence.
"""

import math
from decimal import Decimal, ROUND_HALF_UP


# Square feet per unit
AREA_UNITS = {
    "Square Feet": 1,
    "Square Yard": 9,
    "Square Meter": 10.76,
    "Acre": 43560,
    "Hectare": 107639,
    "Gaj": 9,
    "Bigha (Pucca)": 27225,
    "Ground": 2400,
}


def convert_area(amount: float, from_unit: str, to_unit: str) -> float:
    """amount × factor(from) / factor(to)"""
    for unit in (from_unit, to_unit):
        if unit not in AREA_UNITS:
            raise ValueError(f"Unknown area unit: {unit}")
    if not math.isfinite(amount):
        raise ValueError("Amount must be a finite number")
    return amount * AREA_UNITS[from_unit] / AREA_UNITS[to_unit]


def format_indian(value: float, max_fraction_digits: int = 4) -> str:
    """
    Group digits the Indian way (12,34,567.89) and trim trailing zeros.
    """
    rounded = Decimal(str(value)).quantize(
        Decimal(1).scaleb(-max_fraction_digits), rounding=ROUND_HALF_UP
    )
    sign = "-" if rounded < 0 else ""
    text = format(abs(rounded), "f")
    whole, _, fraction = text.partition(".")
    fraction = fraction.rstrip("0")

    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return sign + whole + (f".{fraction}" if fraction else "")


def describe_conversion(amount: float, from_unit: str, to_unit: str) -> dict:
    result = convert_area(amount, from_unit, to_unit)
    return {
        "amount": amount,
        "from_unit": from_unit,
        "to_unit": to_unit,
        "result": result,
        "summary": f"{format_indian(amount)} {from_unit} = {format_indian(result)} {to_unit}",
    }


# ============================================================
# EMI
# ============================================================

def monthly_payment(principal: float, annual_rate_pct: float, years: float) -> float:
    """
    Standard annuity payment with r = R/12/100 and n = T×12.
    A zero rate spreads the principal evenly over the n payments.
    """
    if principal < 0:
        raise ValueError("Principal must not be negative")
    if annual_rate_pct < 0:
        raise ValueError("Interest rate must not be negative")

    n = years * 12
    if n <= 0:
        raise ValueError("Tenure must be positive")

    r = annual_rate_pct / 12 / 100
    if r == 0:
        return principal / n

    f = (1 + r) ** n
    return principal * r * f / (f - 1)


def round_rupee(amount: float) -> int:
    return int(Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def estimate_emi(principal: float, annual_rate_pct: float, years: float) -> dict:
    emi = monthly_payment(principal, annual_rate_pct, years)
    payments = years * 12
    total = emi * payments
    return {
        "emi": round_rupee(emi),
        "payments": int(payments),
        "total_payment": round_rupee(total),
        "total_interest": round_rupee(total - principal),
    }
