# facetagger/utils/guard.py
import math

from facetagger.errors import InvalidGeometry


def in01(x: float, name: str = "value"):
    """Raise InvalidGeometry unless a value is normalized between 0 and 1"""
    if not isinstance(x, (int, float)) or math.isnan(x) or not 0.0 <= x <= 1.0:
        raise InvalidGeometry(f"{name} not normalized [0,1]", value=x)


def positive(x: float, name: str = "value"):
    """Raise InvalidGeometry unless a value is strictly positive"""
    if not x > 0:
        raise InvalidGeometry(f"{name} must be positive", value=x)

