"""
Configuration for TFBS cluster enrichment analysis.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .exceptions import InvalidParameterError
from .stats.providers import (PROVIDERS, RScriptStatisticsProvider,
                              ScipyStatisticsProvider, StatisticsProvider,
                              resolve_distribution)

logger = logging.getLogger(__name__)

CORRECTION_METHODS = [
    'bonferroni', 'sidak', 'holm-sidak', 'holm', 'simes-hochberg',
    'hommel', 'fdr_bh', 'fdr_by', 'fdr_tsbh', 'fdr_tsbky',
]


@dataclass
class AnalysisConfig:
    """
    Configuration for enrichment analysis.

    Attributes:
        provider: Statistics provider for the exact tests ('scipy' or 'rscript')
        rscript_path: Rscript executable used by the 'rscript' provider
        scratch_dir: Parent directory for the 'rscript' provider's scratch
            files (default: system temporary directory)
        ks_distribution: Reference distribution for one-sample KS tests
            ('uniform', 'normal' or 'exponential'; R names are accepted)
        exclude_single_hits: Leave clusters found in a single target gene
            out of reported and written results (see
            :func:`~tfbs_enrichment.analysis.pipeline.report_cluster_results`
            and :func:`~tfbs_enrichment.analysis.pipeline.write_cluster_results`)
        correction_method: statsmodels multiple testing correction method
            (default: 'fdr_bh')
        num_results: Number of top results returned by
            :func:`~tfbs_enrichment.analysis.pipeline.report_cluster_results`,
            or 'all'

    Example:
        >>> config = AnalysisConfig(provider='rscript', ks_distribution='punif')
        >>> config.ks_distribution
        'uniform'
    """
    provider: str = "scipy"
    rscript_path: str = "Rscript"
    scratch_dir: Optional[str] = None
    ks_distribution: str = "uniform"
    exclude_single_hits: bool = False
    correction_method: str = "fdr_bh"
    num_results: Union[int, str] = "all"

    def __post_init__(self):
        if self.provider not in PROVIDERS:
            raise InvalidParameterError('provider', self.provider, f"one of {sorted(PROVIDERS)}")
        self.ks_distribution = resolve_distribution(self.ks_distribution)
        if self.correction_method not in CORRECTION_METHODS:
            raise InvalidParameterError(
                'correction_method', self.correction_method, f"one of {CORRECTION_METHODS}"
            )
        if isinstance(self.num_results, str):
            if self.num_results.lower() != 'all':
                raise InvalidParameterError('num_results', self.num_results, "an integer >= 0 or 'all'")
        elif isinstance(self.num_results, bool) or self.num_results < 0:
            raise InvalidParameterError('num_results', self.num_results, "an integer >= 0 or 'all'")


def create_statistics_provider(config: Optional[AnalysisConfig] = None) -> StatisticsProvider:
    """
    Create the statistics provider named in a configuration.

    Args:
        config: Analysis configuration (default: scipy provider)

    Returns:
        A new StatisticsProvider owned by the caller
    """
    config = config or AnalysisConfig()
    if config.provider == RScriptStatisticsProvider.name:
        if not RScriptStatisticsProvider.is_available(config.rscript_path):
            logger.warning(f"{config.rscript_path} not found on PATH; R calls will fail")
        logger.info(f"Using R statistics provider ({config.rscript_path})")
        return RScriptStatisticsProvider(
            rscript_path=config.rscript_path, scratch_root=config.scratch_dir
        )
    logger.debug("Using scipy statistics provider")
    return ScipyStatisticsProvider()
