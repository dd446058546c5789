from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pandas as pd


def safe_rate(numerator, denominator) -> Optional[float]:
    """
    numerator / denominator, or None when the denominator is 0 or missing.
    """
    if denominator is None or pd.isna(denominator) or denominator == 0:
        return None
    if numerator is None or pd.isna(numerator):
        return None
    return float(numerator) / float(denominator)


def safe_divide(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """
    Element-wise division with NULLIF semantics: a zero denominator gives <NA>.
    """
    num = numerator.astype("Float64")
    den = denominator.astype("Float64")
    zero = den.eq(0).fillna(False).astype(bool)
    den = den.mask(zero, pd.NA)
    return num / den


def round_half_up(value, precision: int) -> Optional[float]:
    """
    Decimal rounding with ties away from zero, as decimal(p, s) casts do.
    Accepts a Decimal (exact) or a float (rounded from its shortest repr).
    """
    if value is None or pd.isna(value):
        return None
    exact = value if isinstance(value, Decimal) else Decimal(repr(float(value)))
    quantum = Decimal(1).scaleb(-precision)
    return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))


def round_ratio(
    numerator: pd.Series,
    denominator: pd.Series,
    precision: Optional[int],
) -> pd.Series:
    """
    numerator / denominator rounded half-up on the exact quotient.
    A zero or missing denominator gives <NA>.
    """
    if precision is None:
        return safe_divide(numerator, denominator)

    values = []
    for num, den in zip(numerator, denominator):
        if pd.isna(num) or pd.isna(den) or den == 0:
            values.append(pd.NA)
            continue
        exact = Decimal(str(num)) / Decimal(str(den))
        values.append(round_half_up(exact, precision))
    return pd.Series(pd.array(values, dtype="Float64"), index=numerator.index)
