"""
Result records, result sets and result exchange formats.

Key Components:
    - FisherResult, ZscoreResult, KSResult, ORIResult: Per-test records
    - ResultSet and its per-test subclasses: Filtered, sorted retrieval
    - CombinedResultSet: One merged record per cluster
    - ResultField, Cutoff, Comparison: Sort and filter criteria

Example Usage:
    >>> from tfbs_enrichment.results import CombinedResultSet, Cutoff, ResultField
    >>> combined = CombinedResultSet.merge(fisher_set=fisher, zscore_set=zscore)
    >>> top = combined.get_list(num_results=20, sort_by=ResultField.ZSCORE, reverse=True)
"""

from .records import (
    CombinedResult,
    DataAbsence,
    FisherResult,
    KSResult,
    ORIResult,
    ResultField,
    ZscoreResult
)
from .result_set import (
    Comparison,
    Cutoff,
    FisherResultSet,
    KSResultSet,
    ORIResultSet,
    ResultSet,
    ZscoreResultSet,
    resolve_field
)
from .combined import CombinedResultSet
from .writers import (
    read_fisher_results,
    write_fisher_results,
    write_zscore_results,
    read_ks_results,
    write_ks_results,
    read_ori_results,
    write_ori_results
)

__all__ = [
    'CombinedResult',
    'DataAbsence',
    'FisherResult',
    'KSResult',
    'ORIResult',
    'ResultField',
    'ZscoreResult',
    'Comparison',
    'Cutoff',
    'FisherResultSet',
    'KSResultSet',
    'ORIResultSet',
    'ResultSet',
    'ZscoreResultSet',
    'resolve_field',
    'CombinedResultSet',
    'read_fisher_results',
    'write_fisher_results',
    'write_zscore_results',
    'read_ks_results',
    'write_ks_results',
    'read_ori_results',
    'write_ori_results'
]
