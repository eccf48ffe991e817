"""
Tri-state numeric values for statistics that may be legitimately undefined.

A statistic is either a finite number, explicitly undefined (e.g. a Z-score
whose standard deviation is zero) or positive infinity (e.g. the
over-representation index of a cluster that never occurs in the background).
The state is carried explicitly so no code has to compare IEEE special values.

Example:
    >>> from tfbs_enrichment.utils.numeric import Numeric, UNDEFINED, neg_log
    >>> neg_log(Numeric.defined(1.0)).value
    0.0
    >>> format(UNDEFINED, '.4g')
    'NA'
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class NumericKind(Enum):
    """State of a :class:`Numeric` value."""

    DEFINED = "defined"
    UNDEFINED = "undefined"
    POSITIVE_INFINITY = "positive_infinity"


@dataclass(frozen=True)
class Numeric:
    """
    Immutable numeric value with an explicit defined/undefined/infinite state.

    Attributes:
        kind: State of the value
        value: The finite value when ``kind`` is DEFINED, otherwise None
    """
    kind: NumericKind
    value: Optional[float] = None

    def __post_init__(self):
        if self.kind is NumericKind.DEFINED:
            if self.value is None or not math.isfinite(self.value):
                raise ValueError(f"Defined numeric requires a finite value, got {self.value!r}")
        elif self.value is not None:
            raise ValueError(f"{self.kind.value} numeric cannot carry a value")

    @classmethod
    def defined(cls, value: float) -> 'Numeric':
        """Create a defined value from a finite number."""
        return cls(NumericKind.DEFINED, float(value))

    @property
    def is_defined(self) -> bool:
        return self.kind is NumericKind.DEFINED

    @property
    def is_undefined(self) -> bool:
        return self.kind is NumericKind.UNDEFINED

    @property
    def is_infinite(self) -> bool:
        return self.kind is NumericKind.POSITIVE_INFINITY

    @property
    def is_set(self) -> bool:
        """True for defined values and positive infinity."""
        return self.kind is not NumericKind.UNDEFINED

    def magnitude(self) -> float:
        """
        Return a float usable for ordering and threshold comparisons.

        Raises:
            ValueError: If the value is undefined
        """
        if self.kind is NumericKind.DEFINED:
            return self.value
        if self.kind is NumericKind.POSITIVE_INFINITY:
            return math.inf
        raise ValueError("Undefined numeric has no magnitude")

    def to_float(self) -> float:
        """Convert for export (e.g. into a DataFrame): NaN for undefined."""
        if self.kind is NumericKind.UNDEFINED:
            return math.nan
        return self.magnitude()

    def __format__(self, format_spec: str) -> str:
        if self.kind is NumericKind.UNDEFINED:
            return "NA"
        if self.kind is NumericKind.POSITIVE_INFINITY:
            return "Inf"
        return format(self.value, format_spec)

    def __str__(self) -> str:
        return format(self, "")


UNDEFINED = Numeric(NumericKind.UNDEFINED)
POSITIVE_INFINITY = Numeric(NumericKind.POSITIVE_INFINITY)

NumberLike = Union[Numeric, int, float, None]


def as_numeric(value: NumberLike) -> Numeric:
    """
    Coerce a plain number, None or Numeric into a Numeric.

    NaN maps to UNDEFINED and +inf to POSITIVE_INFINITY; this is only meant
    for values entering from a statistics provider or a parsed file.

    Raises:
        ValueError: For negative infinity, which has no meaning here
    """
    if isinstance(value, Numeric):
        return value
    if value is None:
        return UNDEFINED
    value = float(value)
    if math.isnan(value):
        return UNDEFINED
    if math.isinf(value):
        if value > 0:
            return POSITIVE_INFINITY
        raise ValueError("Negative infinity is not a supported statistic value")
    return Numeric.defined(value)


def neg_log(p_value: NumberLike) -> Numeric:
    """
    Natural-log significance score -ln(p).

    A p-value of exactly zero yields POSITIVE_INFINITY and an undefined
    p-value stays undefined.
    """
    p_value = as_numeric(p_value)
    if not p_value.is_defined:
        return UNDEFINED
    if p_value.value < 0:
        raise ValueError(f"p-value must be non-negative, got {p_value.value}")
    if p_value.value == 0:
        return POSITIVE_INFINITY
    return Numeric.defined(-math.log(p_value.value))


_UNDEFINED_TOKENS = {"", "na", "nan", "none", "null"}
_INFINITY_TOKENS = {"inf", "+inf", "infinity", "+infinity"}


def parse_numeric(text: str) -> Numeric:
    """
    Parse a numeric token written by :func:`format` back into a Numeric.

    Raises:
        ValueError: If the token is not a number, NA or Inf
    """
    token = text.strip()
    if token.lower() in _UNDEFINED_TOKENS:
        return UNDEFINED
    if token.lower() in _INFINITY_TOKENS:
        return POSITIVE_INFINITY
    return as_numeric(float(token))
