"""
Count and value storage for TFBS cluster enrichment analysis.

Key Components:
    - CountsMatrix: Per-(gene, cluster) hit counts and covered lengths
    - ValuesMatrix: Per-(sequence, cluster) numeric observations
    - read_counts / write_counts: Counts exchange formats
    - read_values / write_values: Values exchange format
"""

from .counts import CountsMatrix
from .values import ValuesMatrix
from .loaders import (
    COUNTS_FORMATS,
    read_counts,
    write_counts,
    read_values,
    write_values
)

__all__ = [
    'CountsMatrix',
    'ValuesMatrix',
    'COUNTS_FORMATS',
    'read_counts',
    'write_counts',
    'read_values',
    'write_values'
]
