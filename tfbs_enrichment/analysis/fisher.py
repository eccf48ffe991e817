"""
Fisher exact test for over-representation of TFBS clusters by gene.

For every cluster a 2x2 table of target/background genes with and without
sites is tested with a one-tailed exact test (target enriched over
background). The p-values of all clusters are computed in one batched call
to the statistics provider.

Example:
    >>> with FisherAnalyzer() as fisher:
    ...     results = fisher.calculate(bg_counts, t_counts)
    >>> results.get_list(num_results=10, sort_by='p_value')
"""

import logging

from ..data.counts import CountsMatrix
from ..results.records import FisherResult
from ..results.result_set import FisherResultSet
from ..stats.providers import ContingencyTable
from .base import ProviderBackedAnalyzer, check_input, check_p_values, check_same_clusters

logger = logging.getLogger(__name__)


class FisherAnalyzer(ProviderBackedAnalyzer):
    """Gene-level Fisher exact test for each TFBS cluster."""

    def calculate(self, bg_counts: CountsMatrix, t_counts: CountsMatrix) -> FisherResultSet:
        """
        Test every cluster for over-representation in the target genes.

        Args:
            bg_counts: Counts for the background genes
            t_counts: Counts for the target genes

        Returns:
            FisherResultSet with one result per cluster, including clusters
            with no target hits

        Raises:
            ValidationError: If the inputs are not counts matrices or do not
                share the same ordered cluster IDs
            ExternalProviderFailure: If the statistics provider fails
        """
        check_input('background counts', bg_counts, CountsMatrix)
        check_input('target counts', t_counts, CountsMatrix)
        check_same_clusters(bg_counts.cluster_ids, t_counts.cluster_ids)

        t_num_genes = t_counts.num_genes()
        bg_num_genes = bg_counts.num_genes()

        tables = []
        for cluster_id in t_counts.cluster_ids:
            t_hits = t_counts.cluster_gene_count(cluster_id)
            bg_hits = bg_counts.cluster_gene_count(cluster_id)
            tables.append(ContingencyTable(
                id=cluster_id,
                t_hits=t_hits,
                t_no_hits=t_num_genes - t_hits,
                bg_hits=bg_hits,
                bg_no_hits=bg_num_genes - bg_hits,
            ))

        logger.info(
            f"Running Fisher exact test for {len(tables)} clusters "
            f"({t_num_genes} target / {bg_num_genes} background genes)"
        )
        p_values = self.provider.fisher_p_values(tables)
        check_p_values(p_values, len(tables), self.provider)

        results = FisherResultSet()
        for table, p_value in zip(tables, p_values):
            results.add(FisherResult(
                id=table.id,
                t_hits=table.t_hits,
                t_no_hits=table.t_no_hits,
                bg_hits=table.bg_hits,
                bg_no_hits=table.bg_no_hits,
                p_value=float(p_value),
            ))

        logger.info(f"Fisher exact test complete: {len(results)} results")
        return results
