"""
Merge of Fisher, Z-score and KS results into one record per cluster.

The reporting layer shows every cluster on one line with the gene-level
Fisher statistics, the site-level Z-score statistics and, for sequence based
analyses, the KS statistics next to each other. :meth:`CombinedResultSet.merge`
builds those records from whichever per-test result sets are available.

Example:
    >>> combined = CombinedResultSet.merge(fisher_set=fisher, zscore_set=zscore)
    >>> combined.get_list(zscore_cutoff=10, fisher_cutoff=0.01,
    ...                   sort_by='zscore', reverse=True)
"""

import logging
from typing import List, Optional, Sequence, Union

from ..utils.numeric import as_numeric
from .records import CombinedResult, ResultField
from .result_set import (Comparison, Cutoff, FieldLike, FisherResultSet,
                         KSResultSet, ResultSet, ZscoreResultSet)

logger = logging.getLogger(__name__)


class CombinedResultSet(ResultSet[CombinedResult]):
    """Per-cluster combined Fisher, Z-score and KS results."""

    result_type = CombinedResult

    @classmethod
    def merge(cls,
              fisher_set: Optional[FisherResultSet] = None,
              zscore_set: Optional[ZscoreResultSet] = None,
              ks_set: Optional[KSResultSet] = None) -> 'CombinedResultSet':
        """
        Combine per-test result sets into one record per cluster.

        The merged set holds the union of the cluster IDs of all supplied
        sets. A test that has no result for a cluster leaves the
        corresponding fields of the combined record unset.

        Args:
            fisher_set: Fisher exact test results
            zscore_set: Z-score test results
            ks_set: KS test results

        Returns:
            CombinedResultSet with one CombinedResult per cluster ID
        """
        combined = cls()
        supplied = [s for s in (fisher_set, zscore_set, ks_set) if s is not None]
        if not supplied:
            logger.warning("No result sets supplied to merge")
            return combined

        if (fisher_set is not None and zscore_set is not None
                and len(fisher_set) != len(zscore_set)):
            logger.warning(
                f"Fisher and Z-score result set sizes differ "
                f"({len(fisher_set)} != {len(zscore_set)})"
            )

        ids: List[str] = []
        seen = set()
        for result_set in supplied:
            for result_id in result_set.ids():
                if result_id not in seen:
                    seen.add(result_id)
                    ids.append(result_id)

        for result_set in supplied:
            combined.params.update(result_set.params)
            combined.skipped.extend(result_set.skipped)

        for result_id in ids:
            fields = {}

            if fisher_set is not None:
                fresult = fisher_set.get_result(result_id)
                if fresult is None:
                    logger.debug(f"No Fisher result for ID {result_id}")
                else:
                    fields.update(
                        t_gene_hits=fresult.t_hits,
                        t_gene_no_hits=fresult.t_no_hits,
                        bg_gene_hits=fresult.bg_hits,
                        bg_gene_no_hits=fresult.bg_no_hits,
                        fisher_p_value=as_numeric(fresult.p_value),
                    )

            if zscore_set is not None:
                zresult = zscore_set.get_result(result_id)
                if zresult is None:
                    logger.debug(f"No Z-score result for ID {result_id}")
                else:
                    fields.update(
                        t_cluster_hits=zresult.t_hits,
                        bg_cluster_hits=zresult.bg_hits,
                        t_cluster_rate=zresult.t_rate,
                        bg_cluster_rate=zresult.bg_rate,
                        zscore=zresult.z_score,
                        zscore_p_value=zresult.p_value,
                    )

            if ks_set is not None:
                ksresult = ks_set.get_result(result_id)
                if ksresult is None:
                    logger.debug(f"No KS result for ID {result_id}")
                else:
                    fields.update(
                        ks_p_value=as_numeric(ksresult.p_value),
                        ks_bg_distribution=ksresult.bg_distribution,
                    )

            combined.add(CombinedResult(id=result_id, **fields))

        logger.info(f"Merged results for {len(combined)} clusters")
        return combined

    def get_list(self,
                 num_results: Union[int, str, None] = None,
                 sort_by: FieldLike = ResultField.ID,
                 reverse: bool = False,
                 cutoffs: Sequence[Cutoff] = (),
                 zscore_cutoff: Optional[float] = None,
                 fisher_cutoff: Optional[float] = None,
                 ks_cutoff: Optional[float] = None) -> List[CombinedResult]:
        """
        Get a filtered, sorted and truncated list of combined results.

        Args:
            num_results: Maximum number of results to return (None or 'all'
                for no limit)
            sort_by: Field to sort on, e.g. 'zscore' or 'fisher_p_value'
            reverse: Sort in descending order
            cutoffs: Additional cutoffs on any combined field
            zscore_cutoff: Keep only results whose Z-score is at least this value
            fisher_cutoff: Keep only results whose Fisher p-value is at most
                this value
            ks_cutoff: Keep only results whose KS p-value is at most this value

        Returns:
            List of CombinedResult records
        """
        cutoffs = list(cutoffs)
        if zscore_cutoff is not None:
            cutoffs.append(Cutoff(ResultField.ZSCORE, zscore_cutoff, Comparison.GE))
        if fisher_cutoff is not None:
            cutoffs.append(Cutoff(ResultField.FISHER_P_VALUE, fisher_cutoff, Comparison.LE))
        if ks_cutoff is not None:
            cutoffs.append(Cutoff(ResultField.KS_P_VALUE, ks_cutoff, Comparison.LE))

        return super().get_list(
            num_results=num_results, sort_by=sort_by, reverse=reverse, cutoffs=cutoffs
        )
