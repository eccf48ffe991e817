"""
Enrichment analyzers for TFBS clusters.

Key Components:
    - FisherAnalyzer: Gene-level one-tailed Fisher exact test
    - ZscoreAnalyzer: Nucleotide-level Z-score test
    - KSAnalyzer: Kolmogorov-Smirnov test of per-cluster values
    - ORIAnalyzer: Over-representation index
    - run_cluster_analysis: Fisher + Z-score (+ KS) merged into one result set
    - report_cluster_results / write_cluster_results: Apply the configured
      reporting options
"""

from .fisher import FisherAnalyzer
from .zscore import ZscoreAnalyzer
from .ks import KSAnalyzer
from .ori import ORIAnalyzer
from .pipeline import (report_cluster_results, run_cluster_analysis, run_ori_analysis,
                       write_cluster_results)

__all__ = [
    'FisherAnalyzer',
    'ZscoreAnalyzer',
    'KSAnalyzer',
    'ORIAnalyzer',
    'run_cluster_analysis',
    'run_ori_analysis',
    'report_cluster_results',
    'write_cluster_results'
]
