# handlers/validation.py

import math
import re

from handlers.errors import BelowMinimum, InvalidAmount, InvalidRange, PrecisionError

MIN_AMOUNT = 0.01
PRECISION_TOLERANCE = 1e-6

_RANGE_RE = re.compile(r"(\d+)(?:-(\d+))?", re.ASCII)


def validate_amount(raw) -> float:
    """
    Turn caller input into the amount to store.

    '200'   → 200.0
    '200.5' → 200.5
    '0.001' → BelowMinimum
    '10.005'→ PrecisionError
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount()
    if isinstance(raw, str):
        raw = raw.strip()
        # float() also takes '1_000'; chat input must be a plain number
        if "_" in raw:
            raise InvalidAmount()
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidAmount()
    if not math.isfinite(value):
        raise InvalidAmount()

    if value < MIN_AMOUNT:
        raise BelowMinimum()

    scaled = value * 100
    if not math.isfinite(scaled):
        raise PrecisionError()
    rounded = round(scaled) / 100
    if abs(value - rounded) > PRECISION_TOLERANCE:
        raise PrecisionError()
    return rounded


def parse_range(token: str | None) -> range:
    """'3' → range(3, 4); '2-4' → range(2, 5); '4-2' → InvalidRange."""
    if not token:
        raise InvalidRange(token)
    match = _RANGE_RE.fullmatch(token.strip())
    if not match:
        raise InvalidRange(token)
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else start
    if start > end:
        raise InvalidRange(token)
    return range(start, end + 1)
