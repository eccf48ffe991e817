"""
Sparse gene x TFBS cluster count storage.

A :class:`CountsMatrix` holds, for every (gene, cluster) pair, the number of
times sites of the cluster were detected on the gene and the number of base
pairs those sites cover. It is built once from upstream hit data and then
read by the Fisher, Z-score and ORI analyzers, none of which mutate it.

Example:
    >>> counts = CountsMatrix()
    >>> counts.set('ENSG01', 'MA0001', 2)
    >>> counts.set_length('ENSG01', 'MA0001', 24)
    >>> counts.cluster_count('MA0001')
    2
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from ..exceptions import InvalidParameterError, ValidationError

logger = logging.getLogger(__name__)


def _check_non_negative(param: str, value) -> int:
    """Validate a count/length value and return it as an int."""
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidParameterError(param, value, "a non-negative integer")
    if value < 0:
        raise InvalidParameterError(param, value, "a non-negative integer")
    return int(value)


def select_ids(
    all_ids: Sequence[str],
    requested: Optional[Iterable[str]],
    start: Optional[str],
    end: Optional[str],
    kind: str,
) -> Tuple[List[str], List[str]]:
    """
    Select a subset of IDs either explicitly or by lexicographic range.

    Args:
        all_ids: Ordered IDs of the source matrix
        requested: Explicit IDs to keep, or None to select by range
        start: First ID of the range (inclusive), defaults to the first ID
        end: Last ID of the range (inclusive), defaults to the last ID
        kind: Label used in log messages ('gene', 'cluster', ...)

    Returns:
        Tuple of (selected IDs, requested IDs not present in the source)
    """
    if requested is not None:
        known = set(all_ids)
        selected, missing = [], []
        for item in requested:
            if item in known:
                if item not in selected:
                    selected.append(item)
            else:
                logger.warning(f"{kind} ID {item} not in super set, omitting from subset")
                missing.append(item)
        return selected, missing

    if start is None and end is None:
        return list(all_ids), []

    if not all_ids:
        return [], []
    start = all_ids[0] if start is None else start
    end = all_ids[-1] if end is None else end
    return [item for item in all_ids if start <= item <= end], []


class CountsMatrix:
    """
    Sparse per-(gene, cluster) hit-count and covered-length storage.

    Gene and cluster IDs are registered in first-seen order the first time a
    value is written for them. Besides the per-pair values the matrix records
    each cluster's site width and each gene's search-region length; the sum
    of the latter is the matrix :meth:`total_length`.

    Attributes:
        params: Free-form analysis parameters attached to the counts
            (e.g. conservation level or threshold used upstream)
        missing_gene_ids: Gene IDs requested in :meth:`subset` that did not
            exist in the source matrix
        missing_cluster_ids: Cluster IDs requested in :meth:`subset` that did
            not exist in the source matrix
    """

    def __init__(self,
                 gene_ids: Optional[Iterable[str]] = None,
                 cluster_ids: Optional[Iterable[str]] = None):
        """
        Initialize the counts matrix.

        Args:
            gene_ids: Optional gene IDs to pre-register
            cluster_ids: Optional cluster IDs to pre-register; pairs that are
                never written read as zero
        """
        self._gene_ids: List[str] = []
        self._cluster_ids: List[str] = []
        self._gene_index: Set[str] = set()
        self._cluster_index: Set[str] = set()
        self._counts: Dict[str, Dict[str, int]] = {}
        self._lengths: Dict[str, Dict[str, int]] = {}
        self._cluster_genes: Dict[str, Set[str]] = {}
        self._cluster_widths: Dict[str, int] = {}
        self._gene_lengths: Dict[str, int] = {}
        self.params: Dict[str, Any] = {}
        self.missing_gene_ids: List[str] = []
        self.missing_cluster_ids: List[str] = []

        for gene_id in gene_ids or []:
            self._add_gene(gene_id)
        for cluster_id in cluster_ids or []:
            self._add_cluster(cluster_id)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _add_gene(self, gene_id: str) -> None:
        if gene_id not in self._gene_index:
            self._gene_index.add(gene_id)
            self._gene_ids.append(gene_id)

    def _add_cluster(self, cluster_id: str) -> None:
        if cluster_id not in self._cluster_index:
            self._cluster_index.add(cluster_id)
            self._cluster_ids.append(cluster_id)

    @property
    def gene_ids(self) -> Tuple[str, ...]:
        """Gene IDs in first-seen order."""
        return tuple(self._gene_ids)

    @property
    def cluster_ids(self) -> Tuple[str, ...]:
        """Cluster IDs in first-seen order."""
        return tuple(self._cluster_ids)

    def num_genes(self) -> int:
        return len(self._gene_ids)

    def num_clusters(self) -> int:
        return len(self._cluster_ids)

    def gene_exists(self, gene_id: str) -> bool:
        return gene_id in self._gene_index

    def cluster_exists(self, cluster_id: str) -> bool:
        return cluster_id in self._cluster_index

    def exists(self, gene_id: str, cluster_id: str) -> bool:
        """Return whether both the gene and the cluster are registered."""
        return self.gene_exists(gene_id) and self.cluster_exists(cluster_id)

    # ------------------------------------------------------------------
    # Per-pair values
    # ------------------------------------------------------------------

    def set(self, gene_id: str, cluster_id: str, count: int) -> None:
        """
        Set the number of sites of a cluster detected on a gene.

        Args:
            gene_id: Gene/sequence ID (registered if new)
            cluster_id: Cluster ID (registered if new)
            count: Non-negative hit count

        Raises:
            InvalidParameterError: If count is negative or not an integer
        """
        count = _check_non_negative('count', count)
        self._add_gene(gene_id)
        self._add_cluster(cluster_id)
        self._counts.setdefault(gene_id, {})[cluster_id] = count

        genes = self._cluster_genes.setdefault(cluster_id, set())
        if count > 0:
            genes.add(gene_id)
        else:
            genes.discard(gene_id)

    def set_length(self, gene_id: str, cluster_id: str, length: int) -> None:
        """
        Set the number of base pairs covered by a cluster's sites on a gene.

        Raises:
            InvalidParameterError: If length is negative or not an integer
        """
        length = _check_non_negative('length', length)
        self._add_gene(gene_id)
        self._add_cluster(cluster_id)
        self._lengths.setdefault(gene_id, {})[cluster_id] = length

    def count(self, gene_id: str, cluster_id: str) -> int:
        return self._counts.get(gene_id, {}).get(cluster_id, 0)

    def length(self, gene_id: str, cluster_id: str) -> int:
        return self._lengths.get(gene_id, {}).get(cluster_id, 0)

    # ------------------------------------------------------------------
    # Per-cluster and per-gene attributes
    # ------------------------------------------------------------------

    def set_cluster_width(self, cluster_id: str, width: int) -> None:
        """
        Record the site width of a cluster.

        The width is recorded once; setting the same width again is a no-op
        and a different width is rejected.

        Raises:
            ValidationError: If a different width was already recorded
        """
        width = _check_non_negative('width', width)
        current = self._cluster_widths.get(cluster_id)
        if current is not None and current != width:
            raise ValidationError(
                f"Cluster {cluster_id} already has width {current}, cannot set {width}"
            )
        self._add_cluster(cluster_id)
        self._cluster_widths[cluster_id] = width

    def cluster_width(self, cluster_id: str) -> Optional[int]:
        return self._cluster_widths.get(cluster_id)

    def set_gene_length(self, gene_id: str, length: int) -> None:
        """Set the length of the search region analysed for a gene."""
        length = _check_non_negative('gene length', length)
        self._add_gene(gene_id)
        self._gene_lengths[gene_id] = length

    def gene_length(self, gene_id: str) -> int:
        return self._gene_lengths.get(gene_id, 0)

    def total_length(self) -> int:
        """Total search-region length over all genes in the matrix."""
        return sum(self._gene_lengths.get(gene_id, 0) for gene_id in self._gene_ids)

    # ------------------------------------------------------------------
    # Per-cluster aggregates
    # ------------------------------------------------------------------

    def cluster_gene_ids(self, cluster_id: str) -> List[str]:
        """
        IDs of the genes with at least one site for the cluster.

        Returned in the matrix gene order.
        """
        genes = self._cluster_genes.get(cluster_id)
        if not genes:
            return []
        return [gene_id for gene_id in self._gene_ids if gene_id in genes]

    def cluster_gene_count(self, cluster_id: str) -> int:
        """Number of distinct genes with nonzero hits for the cluster."""
        return len(self._cluster_genes.get(cluster_id, ()))

    def cluster_count(self, cluster_id: str) -> int:
        """Total number of cluster sites over all genes."""
        return sum(
            self.count(gene_id, cluster_id)
            for gene_id in self._cluster_genes.get(cluster_id, ())
        )

    def cluster_length(self, cluster_id: str) -> int:
        """Total length covered by cluster sites over the genes with hits."""
        return sum(
            self.length(gene_id, cluster_id)
            for gene_id in self._cluster_genes.get(cluster_id, ())
        )

    # ------------------------------------------------------------------
    # Derived matrices
    # ------------------------------------------------------------------

    def subset(self,
               gene_ids: Optional[Iterable[str]] = None,
               cluster_ids: Optional[Iterable[str]] = None,
               gene_start: Optional[str] = None,
               gene_end: Optional[str] = None,
               cluster_start: Optional[str] = None,
               cluster_end: Optional[str] = None) -> 'CountsMatrix':
        """
        Create an independent counts matrix restricted to some genes/clusters.

        Genes and clusters may be selected with explicit ID lists or with an
        inclusive lexicographic ID range. Requested IDs that do not exist are
        omitted and listed in the subset's ``missing_gene_ids`` /
        ``missing_cluster_ids``.

        Args:
            gene_ids: Explicit gene IDs to keep
            cluster_ids: Explicit cluster IDs to keep
            gene_start: First gene ID of a range selection
            gene_end: Last gene ID of a range selection
            cluster_start: First cluster ID of a range selection
            cluster_end: Last cluster ID of a range selection

        Returns:
            A new CountsMatrix sharing no state with this one
        """
        subset_genes, missing_genes = select_ids(
            self._gene_ids, gene_ids, gene_start, gene_end, 'gene'
        )
        subset_clusters, missing_clusters = select_ids(
            self._cluster_ids, cluster_ids, cluster_start, cluster_end, 'cluster'
        )

        subset = CountsMatrix(gene_ids=subset_genes, cluster_ids=subset_clusters)
        for gene_id in subset_genes:
            if gene_id in self._gene_lengths:
                subset.set_gene_length(gene_id, self._gene_lengths[gene_id])
            for cluster_id in subset_clusters:
                subset.set(gene_id, cluster_id, self.count(gene_id, cluster_id))
                subset.set_length(gene_id, cluster_id, self.length(gene_id, cluster_id))
        for cluster_id in subset_clusters:
            if cluster_id in self._cluster_widths:
                subset.set_cluster_width(cluster_id, self._cluster_widths[cluster_id])

        subset.params = dict(self.params)
        subset.missing_gene_ids = missing_genes
        subset.missing_cluster_ids = missing_clusters
        return subset

    def to_dataframe(self, values: str = 'counts') -> pd.DataFrame:
        """
        Dense genes x clusters DataFrame of the stored counts or lengths.

        Args:
            values: 'counts' for hit counts, 'lengths' for covered lengths

        Returns:
            DataFrame indexed by gene ID with one integer column per cluster
        """
        if values == 'counts':
            getter = self.count
        elif values == 'lengths':
            getter = self.length
        else:
            raise InvalidParameterError('values', values, "'counts' or 'lengths'")

        data = np.zeros((len(self._gene_ids), len(self._cluster_ids)), dtype=np.int64)
        for i, gene_id in enumerate(self._gene_ids):
            for j, cluster_id in enumerate(self._cluster_ids):
                data[i, j] = getter(gene_id, cluster_id)
        return pd.DataFrame(
            data,
            index=pd.Index(self._gene_ids, name='gene_id'),
            columns=pd.Index(self._cluster_ids, name='cluster_id'),
        )

    @classmethod
    def from_dataframe(cls,
                       counts: pd.DataFrame,
                       lengths: Optional[pd.DataFrame] = None,
                       gene_lengths: Optional[pd.Series] = None,
                       cluster_widths: Optional[pd.Series] = None) -> 'CountsMatrix':
        """
        Build a counts matrix from dense genes x clusters DataFrames.

        Args:
            counts: Hit counts, genes as rows and clusters as columns
            lengths: Optional covered lengths with the same shape as counts
            gene_lengths: Optional search-region length per gene
            cluster_widths: Optional site width per cluster

        Returns:
            A new CountsMatrix
        """
        if lengths is not None and (
            list(lengths.index) != list(counts.index)
            or list(lengths.columns) != list(counts.columns)
        ):
            raise ValidationError("lengths DataFrame must have the same genes and clusters as counts")

        matrix = cls(gene_ids=[str(g) for g in counts.index],
                     cluster_ids=[str(c) for c in counts.columns])
        for gene_id, row in counts.iterrows():
            for cluster_id, value in row.items():
                matrix.set(str(gene_id), str(cluster_id), int(value))
                if lengths is not None:
                    matrix.set_length(str(gene_id), str(cluster_id),
                                      int(lengths.at[gene_id, cluster_id]))
        if gene_lengths is not None:
            for gene_id, value in gene_lengths.items():
                matrix.set_gene_length(str(gene_id), int(value))
        if cluster_widths is not None:
            for cluster_id, value in cluster_widths.items():
                matrix.set_cluster_width(str(cluster_id), int(value))
        return matrix

    def __repr__(self) -> str:
        return (f"CountsMatrix(num_genes={self.num_genes()}, "
                f"num_clusters={self.num_clusters()})")
