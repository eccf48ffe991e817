"""
Result records produced by the enrichment analyzers.

Each record is an immutable dataclass holding the statistics computed for one
TFBS cluster. Statistics that can be legitimately undefined are stored as
:class:`~tfbs_enrichment.utils.numeric.Numeric` values.

Every record type publishes a ``FIELDS`` table mapping the
:class:`ResultField` members it supports to accessor functions. The tables
are built when this module is imported, so the set of sortable and
filterable fields of a record type is fixed and can be inspected up front.
"""

from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional

from ..utils.numeric import UNDEFINED, Numeric, neg_log


class ResultField(Enum):
    """Closed set of record fields usable for sorting and cutoffs."""

    ID = "id"

    # Fisher
    T_HITS = "t_hits"
    T_NO_HITS = "t_no_hits"
    BG_HITS = "bg_hits"
    BG_NO_HITS = "bg_no_hits"
    P_VALUE = "p_value"
    FISHER_SCORE = "fisher_score"

    # Z-score
    T_RATE = "t_rate"
    BG_RATE = "bg_rate"
    T_GENE_HITS = "t_gene_hits"
    BG_GENE_HITS = "bg_gene_hits"
    Z_SCORE = "z_score"

    # KS
    KS_SCORE = "ks_score"

    # ORI
    T_GENE_PROP = "t_gene_prop"
    BG_GENE_PROP = "bg_gene_prop"
    ORI = "ori"

    # Combined
    T_GENE_NO_HITS = "t_gene_no_hits"
    BG_GENE_NO_HITS = "bg_gene_no_hits"
    FISHER_P_VALUE = "fisher_p_value"
    T_CLUSTER_HITS = "t_cluster_hits"
    BG_CLUSTER_HITS = "bg_cluster_hits"
    T_CLUSTER_RATE = "t_cluster_rate"
    BG_CLUSTER_RATE = "bg_cluster_rate"
    ZSCORE = "zscore"
    ZSCORE_P_VALUE = "zscore_p_value"
    KS_P_VALUE = "ks_p_value"


Accessor = Callable[[Any], Any]


def _accessors(*fields: ResultField) -> Mapping[ResultField, Accessor]:
    """Build a field -> accessor table reading same-named attributes."""
    return {field: attrgetter(field.value) for field in fields}


@dataclass(frozen=True)
class DataAbsence:
    """
    A cluster skipped by an analyzer because data was missing.

    Attributes:
        cluster_id: ID of the skipped cluster
        reason: Human-readable description of what was missing
    """
    cluster_id: str
    reason: str


@dataclass(frozen=True)
class FisherResult:
    """
    Fisher exact test result for one cluster.

    Attributes:
        id: Cluster ID
        t_hits: Target genes with at least one site
        t_no_hits: Target genes without sites
        bg_hits: Background genes with at least one site
        bg_no_hits: Background genes without sites
        p_value: One-tailed exact test p-value
    """
    id: str
    t_hits: int
    t_no_hits: int
    bg_hits: int
    bg_no_hits: int
    p_value: float

    FIELDS: ClassVar[Mapping[ResultField, Accessor]]

    @property
    def fisher_score(self) -> Numeric:
        """Significance score -ln(p_value); higher is more significant."""
        return neg_log(self.p_value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary format."""
        return {
            'id': self.id,
            't_hits': self.t_hits,
            't_no_hits': self.t_no_hits,
            'bg_hits': self.bg_hits,
            'bg_no_hits': self.bg_no_hits,
            'p_value': self.p_value,
            'fisher_score': self.fisher_score.to_float(),
        }


@dataclass(frozen=True)
class ZscoreResult:
    """
    Z-score test result for one cluster.

    ``z_score`` and ``p_value`` are UNDEFINED when the standard deviation of
    the expected background rate is zero.
    """
    id: str
    t_hits: int
    bg_hits: int
    t_rate: float
    bg_rate: float
    t_gene_hits: int
    bg_gene_hits: int
    z_score: Numeric = UNDEFINED
    p_value: Numeric = UNDEFINED

    FIELDS: ClassVar[Mapping[ResultField, Accessor]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            't_hits': self.t_hits,
            'bg_hits': self.bg_hits,
            't_rate': self.t_rate,
            'bg_rate': self.bg_rate,
            't_gene_hits': self.t_gene_hits,
            'bg_gene_hits': self.bg_gene_hits,
            'z_score': self.z_score.to_float(),
            'p_value': self.p_value.to_float(),
        }


@dataclass(frozen=True)
class KSResult:
    """
    Kolmogorov-Smirnov test result for one cluster.

    Attributes:
        id: Cluster ID
        p_value: KS test p-value
        bg_distribution: 'data' when tested against background observations,
            otherwise the name of the reference distribution
    """
    id: str
    p_value: float
    bg_distribution: str

    FIELDS: ClassVar[Mapping[ResultField, Accessor]]

    @property
    def ks_score(self) -> Numeric:
        return neg_log(self.p_value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'p_value': self.p_value,
            'ks_score': self.ks_score.to_float(),
            'bg_distribution': self.bg_distribution,
        }


@dataclass(frozen=True)
class ORIResult:
    """
    Over-representation index result for one cluster.

    ``ori`` is POSITIVE_INFINITY when the cluster never occurs in the
    background.
    """
    id: str
    t_rate: float
    bg_rate: float
    t_gene_prop: float
    bg_gene_prop: float
    ori: Numeric
    t_gene_hits: Optional[int] = None

    FIELDS: ClassVar[Mapping[ResultField, Accessor]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            't_rate': self.t_rate,
            'bg_rate': self.bg_rate,
            't_gene_prop': self.t_gene_prop,
            'bg_gene_prop': self.bg_gene_prop,
            'ori': self.ori.to_float(),
            't_gene_hits': self.t_gene_hits,
        }


@dataclass(frozen=True)
class CombinedResult:
    """
    Fisher, Z-score and KS results for one cluster in a single record.

    Parts whose test did not produce a result for the cluster are left
    unset: counts and rates are None and statistics are UNDEFINED.
    """
    id: str

    # Fisher
    t_gene_hits: Optional[int] = None
    t_gene_no_hits: Optional[int] = None
    bg_gene_hits: Optional[int] = None
    bg_gene_no_hits: Optional[int] = None
    fisher_p_value: Numeric = UNDEFINED

    # Z-score
    t_cluster_hits: Optional[int] = None
    bg_cluster_hits: Optional[int] = None
    t_cluster_rate: Optional[float] = None
    bg_cluster_rate: Optional[float] = None
    zscore: Numeric = UNDEFINED
    zscore_p_value: Numeric = UNDEFINED

    # KS
    ks_p_value: Numeric = UNDEFINED
    ks_bg_distribution: Optional[str] = None

    FIELDS: ClassVar[Mapping[ResultField, Accessor]]

    @property
    def fisher_score(self) -> Numeric:
        return neg_log(self.fisher_p_value)

    @property
    def ks_score(self) -> Numeric:
        return neg_log(self.ks_p_value)

    @property
    def has_fisher(self) -> bool:
        return self.t_gene_hits is not None

    @property
    def has_zscore(self) -> bool:
        return self.t_cluster_hits is not None

    @property
    def has_ks(self) -> bool:
        return self.ks_bg_distribution is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            't_gene_hits': self.t_gene_hits,
            't_gene_no_hits': self.t_gene_no_hits,
            'bg_gene_hits': self.bg_gene_hits,
            'bg_gene_no_hits': self.bg_gene_no_hits,
            'fisher_p_value': self.fisher_p_value.to_float(),
            'fisher_score': self.fisher_score.to_float(),
            't_cluster_hits': self.t_cluster_hits,
            'bg_cluster_hits': self.bg_cluster_hits,
            't_cluster_rate': self.t_cluster_rate,
            'bg_cluster_rate': self.bg_cluster_rate,
            'zscore': self.zscore.to_float(),
            'zscore_p_value': self.zscore_p_value.to_float(),
            'ks_p_value': self.ks_p_value.to_float(),
            'ks_score': self.ks_score.to_float(),
            'ks_bg_distribution': self.ks_bg_distribution,
        }


FisherResult.FIELDS = _accessors(
    ResultField.ID,
    ResultField.T_HITS,
    ResultField.T_NO_HITS,
    ResultField.BG_HITS,
    ResultField.BG_NO_HITS,
    ResultField.P_VALUE,
    ResultField.FISHER_SCORE,
)

ZscoreResult.FIELDS = _accessors(
    ResultField.ID,
    ResultField.T_HITS,
    ResultField.BG_HITS,
    ResultField.T_RATE,
    ResultField.BG_RATE,
    ResultField.T_GENE_HITS,
    ResultField.BG_GENE_HITS,
    ResultField.Z_SCORE,
    ResultField.P_VALUE,
)

KSResult.FIELDS = _accessors(
    ResultField.ID,
    ResultField.P_VALUE,
    ResultField.KS_SCORE,
)

ORIResult.FIELDS = _accessors(
    ResultField.ID,
    ResultField.T_RATE,
    ResultField.BG_RATE,
    ResultField.T_GENE_PROP,
    ResultField.BG_GENE_PROP,
    ResultField.ORI,
    ResultField.T_GENE_HITS,
)

CombinedResult.FIELDS = _accessors(
    ResultField.ID,
    ResultField.T_GENE_HITS,
    ResultField.T_GENE_NO_HITS,
    ResultField.BG_GENE_HITS,
    ResultField.BG_GENE_NO_HITS,
    ResultField.FISHER_P_VALUE,
    ResultField.FISHER_SCORE,
    ResultField.T_CLUSTER_HITS,
    ResultField.BG_CLUSTER_HITS,
    ResultField.T_CLUSTER_RATE,
    ResultField.BG_CLUSTER_RATE,
    ResultField.ZSCORE,
    ResultField.ZSCORE_P_VALUE,
    ResultField.KS_P_VALUE,
    ResultField.KS_SCORE,
)
