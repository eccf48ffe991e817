"""
Z-score test for over-representation of TFBS cluster nucleotides.

The number of target nucleotides covered by a cluster's sites, Nt, is
compared with the number expected from the background rate:

    Rb = Nb / bg_total_length
    Ne = Nb * t_total_length / bg_total_length
    S  = sqrt(t_total_length * Rb * (1 - Rb))
    Z  = (Nt - Ne - 0.5) / S

with a continuity correction of 0.5. The p-value is the upper tail of the
standard normal distribution at Z. When S is zero the Z-score and p-value
are undefined.
"""

import logging
import math
from typing import Optional

from scipy import stats

from ..data.counts import CountsMatrix
from ..results.records import ZscoreResult
from ..results.result_set import ZscoreResultSet
from ..utils.numeric import UNDEFINED, Numeric
from .base import check_input, check_total_length

logger = logging.getLogger(__name__)


class ZscoreAnalyzer:
    """Nucleotide-level Z-score test for each TFBS cluster."""

    def calculate(self,
                  bg_counts: CountsMatrix,
                  t_counts: CountsMatrix,
                  bg_total_length: Optional[int] = None,
                  t_total_length: Optional[int] = None) -> ZscoreResultSet:
        """
        Compute Z-scores for the clusters of the target set.

        Args:
            bg_counts: Counts for the background genes
            t_counts: Counts for the target genes
            bg_total_length: Background search-region length
                (default: bg_counts.total_length())
            t_total_length: Target search-region length
                (default: t_counts.total_length())

        Returns:
            ZscoreResultSet; clusters absent from the background are
            recorded in its ``skipped`` list

        Raises:
            ValidationError: If an input is not a counts matrix or a total
                length is not positive
        """
        check_input('background counts', bg_counts, CountsMatrix)
        check_input('target counts', t_counts, CountsMatrix)
        if bg_total_length is None:
            bg_total_length = bg_counts.total_length()
        if t_total_length is None:
            t_total_length = t_counts.total_length()
        bg_total_length = check_total_length('bg_total_length', bg_total_length)
        t_total_length = check_total_length('t_total_length', t_total_length)

        ratio = t_total_length / bg_total_length
        results = ZscoreResultSet()

        for cluster_id in t_counts.cluster_ids:
            if not bg_counts.cluster_exists(cluster_id):
                results.record_absence(cluster_id, "cluster does not exist in background set")
                continue

            t_hits = t_counts.cluster_count(cluster_id)
            bg_hits = bg_counts.cluster_count(cluster_id)
            t_nucleotides = min(t_counts.cluster_length(cluster_id), t_total_length)
            bg_nucleotides = min(bg_counts.cluster_length(cluster_id), bg_total_length)

            t_rate = t_nucleotides / t_total_length
            bg_rate = bg_nucleotides / bg_total_length
            expected = bg_nucleotides * ratio
            std_dev = math.sqrt(t_total_length * bg_rate * (1 - bg_rate))

            z_score: Numeric = UNDEFINED
            p_value: Numeric = UNDEFINED
            if std_dev != 0:
                z = (t_nucleotides - expected - 0.5) / std_dev
                z_score = Numeric.defined(z)
                p_value = Numeric.defined(float(stats.norm.sf(z)))
            else:
                logger.debug(f"Z-score undefined for cluster {cluster_id}: zero standard deviation")

            results.add(ZscoreResult(
                id=cluster_id,
                t_hits=t_hits,
                bg_hits=bg_hits,
                t_rate=t_rate,
                bg_rate=bg_rate,
                t_gene_hits=t_counts.cluster_gene_count(cluster_id),
                bg_gene_hits=bg_counts.cluster_gene_count(cluster_id),
                z_score=z_score,
                p_value=p_value,
            ))

        results.params['bg_total_length'] = bg_total_length
        results.params['t_total_length'] = t_total_length
        logger.info(
            f"Z-score analysis complete: {len(results)} results, "
            f"{len(results.skipped)} clusters skipped"
        )
        return results
