"""
Utility functions for TFBS cluster enrichment analysis.
"""

from .numeric import (
    Numeric,
    NumericKind,
    UNDEFINED,
    POSITIVE_INFINITY,
    as_numeric,
    neg_log,
    parse_numeric,
)

__all__ = [
    'Numeric',
    'NumericKind',
    'UNDEFINED',
    'POSITIVE_INFINITY',
    'as_numeric',
    'neg_log',
    'parse_numeric',
]
