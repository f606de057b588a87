"""
Zero-substitution arithmetic shared by the KPI and diesel calculations.
"""
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce Decimal/str/None to a finite float, falling back to ``default``."""
    if value is None:
        return default
    try:
        result = float(Decimal(str(value))) if not isinstance(value, float) else value
    except (InvalidOperation, ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def to_optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    result = to_float(value, default=math.nan)
    return None if math.isnan(result) else result


def safe_divide(numerator: Any, denominator: Any, default: float = 0.0) -> float:
    """
    Divide, substituting ``default`` for missing operands, a zero denominator
    or a non-finite result.
    """
    num = to_optional_float(numerator)
    den = to_optional_float(denominator)
    if num is None or den is None or den == 0:
        return default
    result = num / den
    return result if math.isfinite(result) else default


def exact_sum(values: Iterable[Any]) -> float:
    # fsum is correctly rounded, so the total does not depend on input order
    return math.fsum(to_float(v) for v in values)
