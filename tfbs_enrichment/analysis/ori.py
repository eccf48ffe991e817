"""
Over-representation index (ORI) of TFBS clusters.

    ORI = (Dt / Db) * (Pt / Pb)

where D is a cluster's site density (sites per search-region nucleotide) and
P the proportion of genes with at least one site, in the target (t) and
background (b) sets. A cluster that never occurs in the background has an
infinite index.
"""

import logging

from ..data.counts import CountsMatrix
from ..results.records import ORIResult
from ..results.result_set import ORIResultSet
from ..utils.numeric import POSITIVE_INFINITY, Numeric
from .base import check_input, check_total_length

logger = logging.getLogger(__name__)


class ORIAnalyzer:
    """Over-representation index for each TFBS cluster."""

    def calculate(self, bg_counts: CountsMatrix, t_counts: CountsMatrix) -> ORIResultSet:
        """
        Compute the over-representation index of the target set's clusters.

        Args:
            bg_counts: Counts for the background genes
            t_counts: Counts for the target genes

        Returns:
            ORIResultSet; clusters absent from the background are recorded
            in its ``skipped`` list

        Raises:
            ValidationError: If an input is not a counts matrix or has no
                search-region length
        """
        check_input('background counts', bg_counts, CountsMatrix)
        check_input('target counts', t_counts, CountsMatrix)
        bg_total_length = check_total_length('bg_total_length', bg_counts.total_length())
        t_total_length = check_total_length('t_total_length', t_counts.total_length())

        bg_num_genes = bg_counts.num_genes()
        t_num_genes = t_counts.num_genes()

        results = ORIResultSet()
        for cluster_id in t_counts.cluster_ids:
            if not bg_counts.cluster_exists(cluster_id):
                results.record_absence(cluster_id, "cluster does not exist in background set")
                continue

            t_gene_hits = t_counts.cluster_gene_count(cluster_id)
            t_density = t_counts.cluster_count(cluster_id) / t_total_length
            bg_density = bg_counts.cluster_count(cluster_id) / bg_total_length
            t_prop = t_gene_hits / t_num_genes
            bg_prop = bg_counts.cluster_gene_count(cluster_id) / bg_num_genes

            if bg_density != 0 and bg_prop != 0:
                ori = Numeric.defined((t_density / bg_density) * (t_prop / bg_prop))
            else:
                ori = POSITIVE_INFINITY

            results.add(ORIResult(
                id=cluster_id,
                t_rate=t_density,
                bg_rate=bg_density,
                t_gene_prop=t_prop,
                bg_gene_prop=bg_prop,
                ori=ori,
                t_gene_hits=t_gene_hits,
            ))

        results.params['bg_total_length'] = bg_total_length
        results.params['t_total_length'] = t_total_length
        logger.info(
            f"ORI analysis complete: {len(results)} results, "
            f"{len(results.skipped)} clusters skipped"
        )
        return results
