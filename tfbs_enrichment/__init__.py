"""
TFBS Cluster Enrichment Package

Statistical over-representation of transcription factor binding site (TFBS)
clusters in a target set of genes or sequences compared with a background set.
"""

__version__ = "0.1.0"
__author__ = "TFBS Enrichment Team"

from .config import AnalysisConfig, create_statistics_provider
from .data import CountsMatrix, ValuesMatrix, read_counts, write_counts
from .analysis import (
    FisherAnalyzer,
    ZscoreAnalyzer,
    KSAnalyzer,
    ORIAnalyzer,
    run_cluster_analysis,
    run_ori_analysis
)
from .results import CombinedResultSet, Cutoff, Comparison, ResultField
from .exceptions import (
    TFBSEnrichmentError,
    ValidationError,
    FileFormatError,
    ExternalProviderFailure
)

__all__ = [
    'AnalysisConfig',
    'create_statistics_provider',
    'CountsMatrix',
    'ValuesMatrix',
    'read_counts',
    'write_counts',
    'FisherAnalyzer',
    'ZscoreAnalyzer',
    'KSAnalyzer',
    'ORIAnalyzer',
    'run_cluster_analysis',
    'run_ori_analysis',
    'CombinedResultSet',
    'Cutoff',
    'Comparison',
    'ResultField',
    'TFBSEnrichmentError',
    'ValidationError',
    'FileFormatError',
    'ExternalProviderFailure'
]
