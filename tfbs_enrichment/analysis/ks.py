"""
Kolmogorov-Smirnov test of per-cluster value distributions.

The observations of a cluster (e.g. distances of its sites from peak
summits) in the target sequences are compared either with the cluster's
observations in the background sequences (two-sample test) or with a named
reference distribution (one-sample test). All clusters are tested in one
batched call to the statistics provider.

Example:
    >>> with KSAnalyzer() as ks:
    ...     results = ks.calculate_with_distribution('uniform', t_values)
"""

import logging
from typing import List, Optional

from ..data.values import ValuesMatrix
from ..results.records import KSResult
from ..results.result_set import KSResultSet
from ..stats.providers import KSRequest, resolve_distribution
from .base import ProviderBackedAnalyzer, check_input, check_p_values, check_same_clusters

logger = logging.getLogger(__name__)


class KSAnalyzer(ProviderBackedAnalyzer):
    """Kolmogorov-Smirnov test for each TFBS cluster."""

    def calculate(self, bg_values: ValuesMatrix, t_values: ValuesMatrix) -> KSResultSet:
        """
        Two-sample test of target against background observations.

        Clusters without observations on either side are skipped and
        recorded in the result set's ``skipped`` list.

        Raises:
            ValidationError: If the inputs are not values matrices or do not
                share the same ordered cluster IDs
            ExternalProviderFailure: If the statistics provider fails
        """
        check_input('background values', bg_values, ValuesMatrix)
        check_input('target values', t_values, ValuesMatrix)
        check_same_clusters(bg_values.cluster_ids, t_values.cluster_ids)

        results = KSResultSet()
        requests: List[KSRequest] = []
        for cluster_id in t_values.cluster_ids:
            t_obs = t_values.all_cluster_values(cluster_id)
            bg_obs = bg_values.all_cluster_values(cluster_id)
            if len(t_obs) == 0:
                results.record_absence(cluster_id, "no target values")
                continue
            if len(bg_obs) == 0:
                results.record_absence(cluster_id, "no background values")
                continue
            requests.append(KSRequest(id=cluster_id, t_values=t_obs, bg_values=bg_obs))

        return self._run(requests, results)

    def calculate_with_distribution(self,
                                    distribution: Optional[str],
                                    t_values: ValuesMatrix) -> KSResultSet:
        """
        One-sample test of target observations against a reference distribution.

        Args:
            distribution: 'uniform', 'normal' or 'exponential' (R names such
                as 'punif' are accepted); None uses the configured default
            t_values: Target observations

        Raises:
            ValidationError: If the distribution is unknown or t_values is
                not a values matrix
            ExternalProviderFailure: If the statistics provider fails
        """
        check_input('target values', t_values, ValuesMatrix)
        distribution = resolve_distribution(distribution or self.config.ks_distribution)

        results = KSResultSet()
        requests: List[KSRequest] = []
        for cluster_id in t_values.cluster_ids:
            t_obs = t_values.all_cluster_values(cluster_id)
            if len(t_obs) == 0:
                results.record_absence(cluster_id, "no target values")
                continue
            requests.append(KSRequest(id=cluster_id, t_values=t_obs, distribution=distribution))

        results.params['bg_distribution'] = distribution
        return self._run(requests, results)

    def _run(self, requests: List[KSRequest], results: KSResultSet) -> KSResultSet:
        logger.info(f"Running KS test for {len(requests)} clusters")
        p_values = self.provider.ks_p_values(requests)
        check_p_values(p_values, len(requests), self.provider)

        for request, p_value in zip(requests, p_values):
            results.add(KSResult(
                id=request.id,
                p_value=float(p_value),
                bg_distribution=request.label,
            ))

        logger.info(
            f"KS test complete: {len(results)} results, "
            f"{len(results.skipped)} clusters skipped"
        )
        return results
