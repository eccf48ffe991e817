"""
Statistics providers for the exact enrichment tests.
"""

from .providers import (
    REFERENCE_DISTRIBUTIONS,
    ContingencyTable,
    KSRequest,
    StatisticsProvider,
    ScipyStatisticsProvider,
    RScriptStatisticsProvider,
    resolve_distribution
)

__all__ = [
    'REFERENCE_DISTRIBUTIONS',
    'ContingencyTable',
    'KSRequest',
    'StatisticsProvider',
    'ScipyStatisticsProvider',
    'RScriptStatisticsProvider',
    'resolve_distribution'
]
