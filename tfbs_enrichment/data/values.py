"""
Per-(sequence, cluster) numeric observations used by the KS test.

Each (sequence, cluster) pair holds a list of real values, typically the
distances of the cluster's sites from a reference point such as a peak
summit. Aggregation for a cluster concatenates the lists of all sequences.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from ..exceptions import InvalidParameterError
from .counts import select_ids

logger = logging.getLogger(__name__)


def _check_finite(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError('value', value, "a finite number") from None
    if not np.isfinite(number):
        raise InvalidParameterError('value', value, "a finite number")
    return number


class ValuesMatrix:
    """
    Per-(sequence, cluster) lists of numeric observations.

    Sequence and cluster IDs are registered in first-seen order. Value lists
    are copied on the way in and on the way out, so callers can never alias
    the internal storage.

    Attributes:
        params: Free-form parameters attached to the values
        missing_seq_ids: Sequence IDs requested in :meth:`subset` that did not
            exist in the source
        missing_cluster_ids: Cluster IDs requested in :meth:`subset` that did
            not exist in the source
    """

    def __init__(self,
                 seq_ids: Optional[Iterable[str]] = None,
                 cluster_ids: Optional[Iterable[str]] = None):
        self._seq_ids: List[str] = []
        self._cluster_ids: List[str] = []
        self._seq_index: Set[str] = set()
        self._cluster_index: Set[str] = set()
        self._values: Dict[str, Dict[str, List[float]]] = {}
        self.params: Dict[str, Any] = {}
        self.missing_seq_ids: List[str] = []
        self.missing_cluster_ids: List[str] = []

        for seq_id in seq_ids or []:
            self._add_seq(seq_id)
        for cluster_id in cluster_ids or []:
            self._add_cluster(cluster_id)

    def _add_seq(self, seq_id: str) -> None:
        if seq_id not in self._seq_index:
            self._seq_index.add(seq_id)
            self._seq_ids.append(seq_id)

    def _add_cluster(self, cluster_id: str) -> None:
        if cluster_id not in self._cluster_index:
            self._cluster_index.add(cluster_id)
            self._cluster_ids.append(cluster_id)

    @property
    def seq_ids(self) -> Tuple[str, ...]:
        return tuple(self._seq_ids)

    @property
    def cluster_ids(self) -> Tuple[str, ...]:
        return tuple(self._cluster_ids)

    def num_seqs(self) -> int:
        return len(self._seq_ids)

    def num_clusters(self) -> int:
        return len(self._cluster_ids)

    def seq_exists(self, seq_id: str) -> bool:
        return seq_id in self._seq_index

    def cluster_exists(self, cluster_id: str) -> bool:
        return cluster_id in self._cluster_index

    def add_value(self, seq_id: str, cluster_id: str, value: float) -> int:
        """
        Append one observation for a (sequence, cluster) pair.

        Returns:
            Number of values now stored for the pair

        Raises:
            InvalidParameterError: If the value is not a finite number
        """
        value = _check_finite(value)
        self._add_seq(seq_id)
        self._add_cluster(cluster_id)
        values = self._values.setdefault(seq_id, {}).setdefault(cluster_id, [])
        values.append(value)
        return len(values)

    def set_values(self, seq_id: str, cluster_id: str, values: Iterable[float]) -> None:
        """Replace the observations stored for a (sequence, cluster) pair."""
        checked = [_check_finite(v) for v in values]
        self._add_seq(seq_id)
        self._add_cluster(cluster_id)
        self._values.setdefault(seq_id, {})[cluster_id] = checked

    def values(self, seq_id: str, cluster_id: str) -> List[float]:
        """Copy of the observations for a (sequence, cluster) pair."""
        return list(self._values.get(seq_id, {}).get(cluster_id, []))

    def cluster_seq_ids(self, cluster_id: str) -> List[str]:
        """IDs of the sequences holding at least one value for the cluster."""
        return [
            seq_id for seq_id in self._seq_ids
            if self._values.get(seq_id, {}).get(cluster_id)
        ]

    def all_cluster_values(self, cluster_id: str) -> np.ndarray:
        """All observations for a cluster, concatenated over sequences."""
        collected: List[float] = []
        for seq_id in self._seq_ids:
            collected.extend(self._values.get(seq_id, {}).get(cluster_id, []))
        return np.asarray(collected, dtype=float)

    def num_cluster_values(self, cluster_id: str) -> int:
        return sum(
            len(self._values.get(seq_id, {}).get(cluster_id, []))
            for seq_id in self._seq_ids
        )

    def subset(self,
               seq_ids: Optional[Iterable[str]] = None,
               cluster_ids: Optional[Iterable[str]] = None,
               seq_start: Optional[str] = None,
               seq_end: Optional[str] = None,
               cluster_start: Optional[str] = None,
               cluster_end: Optional[str] = None) -> 'ValuesMatrix':
        """
        Create an independent values matrix restricted to some sequences/clusters.

        Selection works as in :meth:`CountsMatrix.subset`.
        """
        subset_seqs, missing_seqs = select_ids(
            self._seq_ids, seq_ids, seq_start, seq_end, 'sequence'
        )
        subset_clusters, missing_clusters = select_ids(
            self._cluster_ids, cluster_ids, cluster_start, cluster_end, 'cluster'
        )

        subset = ValuesMatrix(seq_ids=subset_seqs, cluster_ids=subset_clusters)
        for seq_id in subset_seqs:
            for cluster_id in subset_clusters:
                stored = self._values.get(seq_id, {}).get(cluster_id)
                if stored is not None:
                    subset.set_values(seq_id, cluster_id, stored)

        subset.params = dict(self.params)
        subset.missing_seq_ids = missing_seqs
        subset.missing_cluster_ids = missing_clusters
        return subset

    def __repr__(self) -> str:
        return (f"ValuesMatrix(num_seqs={self.num_seqs()}, "
                f"num_clusters={self.num_clusters()})")
