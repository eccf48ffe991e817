"""
End-to-end convenience functions running the analyzers together.
"""

import logging
import os
from typing import Dict, List, Optional

from ..config import AnalysisConfig, create_statistics_provider
from ..data.counts import CountsMatrix
from ..data.values import ValuesMatrix
from ..results.combined import CombinedResultSet
from ..results.records import CombinedResult, ResultField
from ..results.result_set import (Comparison, Cutoff, FieldLike, FisherResultSet,
                                  KSResultSet, ORIResultSet, ZscoreResultSet)
from ..results.writers import (write_fisher_results, write_ks_results,
                               write_ori_results, write_zscore_results)
from ..stats.providers import StatisticsProvider
from .fisher import FisherAnalyzer
from .ks import KSAnalyzer
from .ori import ORIAnalyzer
from .zscore import ZscoreAnalyzer

logger = logging.getLogger(__name__)


def run_cluster_analysis(
    bg_counts: CountsMatrix,
    t_counts: CountsMatrix,
    bg_values: Optional[ValuesMatrix] = None,
    t_values: Optional[ValuesMatrix] = None,
    config: Optional[AnalysisConfig] = None,
    provider: Optional[StatisticsProvider] = None,
) -> CombinedResultSet:
    """
    Run the Fisher, Z-score and (optionally) KS tests and merge the results.

    The KS test runs when target values are given: as a two-sample test when
    background values are given too, otherwise as a one-sample test against
    ``config.ks_distribution``.

    Args:
        bg_counts: Background counts
        t_counts: Target counts
        bg_values: Background observations for the KS test
        t_values: Target observations for the KS test
        config: Analysis configuration
        provider: Statistics provider to use instead of creating one

    Returns:
        CombinedResultSet with one record per cluster; the adjusted Fisher
        p-values are stored in ``params['fisher_p_adjusted']``

    Example:
        >>> combined = run_cluster_analysis(bg_counts, t_counts)
        >>> top = combined.get_list(num_results=10, sort_by='zscore', reverse=True)
    """
    config = config or AnalysisConfig()
    owns_provider = provider is None
    if owns_provider:
        provider = create_statistics_provider(config)

    try:
        logger.info("Starting TFBS cluster enrichment analysis")
        fisher_set = FisherAnalyzer(provider=provider, config=config).calculate(bg_counts, t_counts)
        zscore_set = ZscoreAnalyzer().calculate(bg_counts, t_counts)

        ks_set = None
        if t_values is not None:
            ks = KSAnalyzer(provider=provider, config=config)
            if bg_values is not None:
                ks_set = ks.calculate(bg_values, t_values)
            else:
                ks_set = ks.calculate_with_distribution(config.ks_distribution, t_values)
        elif bg_values is not None:
            logger.warning("Background values given without target values; skipping KS test")
    finally:
        if owns_provider:
            provider.close()

    combined = CombinedResultSet.merge(fisher_set=fisher_set, zscore_set=zscore_set, ks_set=ks_set)
    combined.params['fisher_p_adjusted'] = fisher_set.adjusted_p_values(config.correction_method)
    logger.info(f"Analysis complete: {len(combined)} clusters")
    return combined


def run_ori_analysis(bg_counts: CountsMatrix, t_counts: CountsMatrix) -> ORIResultSet:
    """Compute the over-representation index for every target cluster."""
    return ORIAnalyzer().calculate(bg_counts, t_counts)


def report_cluster_results(combined: CombinedResultSet,
                           config: Optional[AnalysisConfig] = None,
                           sort_by: FieldLike = ResultField.ZSCORE,
                           reverse: bool = True,
                           zscore_cutoff: Optional[float] = None,
                           fisher_cutoff: Optional[float] = None,
                           ks_cutoff: Optional[float] = None) -> List[CombinedResult]:
    """
    Select the combined results to report.

    Clusters found in a single target gene are left out when
    ``config.exclude_single_hits`` is set, and at most ``config.num_results``
    records are returned.

    Args:
        combined: Merged results from :func:`run_cluster_analysis`
        config: Analysis configuration
        sort_by: Field to rank on (default: Z-score)
        reverse: Rank in descending order
        zscore_cutoff: Keep only results whose Z-score is at least this value
        fisher_cutoff: Keep only results whose Fisher p-value is at most this value
        ks_cutoff: Keep only results whose KS p-value is at most this value

    Returns:
        List of CombinedResult records
    """
    config = config or AnalysisConfig()
    extra = []
    if config.exclude_single_hits:
        extra.append(Cutoff(ResultField.T_GENE_HITS, 1, Comparison.GT))
    return combined.get_list(
        num_results=config.num_results, sort_by=sort_by, reverse=reverse,
        cutoffs=extra, zscore_cutoff=zscore_cutoff, fisher_cutoff=fisher_cutoff,
        ks_cutoff=ks_cutoff
    )


def write_cluster_results(output_dir: str,
                          fisher_set: Optional[FisherResultSet] = None,
                          zscore_set: Optional[ZscoreResultSet] = None,
                          ks_set: Optional[KSResultSet] = None,
                          ori_set: Optional[ORIResultSet] = None,
                          config: Optional[AnalysisConfig] = None) -> Dict[str, str]:
    """
    Write every supplied result set to ``output_dir``.

    Files are named ``fisher.txt``, ``zscore.txt``, ``ks.txt`` and
    ``ori.txt``; ``config.exclude_single_hits`` is passed on to the writers.

    Returns:
        Dictionary mapping the test name to the written file path
    """
    config = config or AnalysisConfig()
    os.makedirs(output_dir, exist_ok=True)
    exclude = config.exclude_single_hits
    written = {}

    if fisher_set is not None:
        written['fisher'] = os.path.join(output_dir, 'fisher.txt')
        write_fisher_results(fisher_set, written['fisher'], exclude_single_hits=exclude)
    if zscore_set is not None:
        written['zscore'] = os.path.join(output_dir, 'zscore.txt')
        write_zscore_results(zscore_set, written['zscore'], exclude_single_hits=exclude)
    if ks_set is not None:
        written['ks'] = os.path.join(output_dir, 'ks.txt')
        write_ks_results(ks_set, written['ks'])
    if ori_set is not None:
        written['ori'] = os.path.join(output_dir, 'ori.txt')
        write_ori_results(ori_set, written['ori'], exclude_single_hits=exclude)

    logger.info(f"Wrote {len(written)} result files to {output_dir}")
    return written
