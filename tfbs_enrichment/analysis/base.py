"""
Shared plumbing for the enrichment analyzers.
"""

import logging
import math
import numbers
from typing import Optional, Sequence

from ..config import AnalysisConfig, create_statistics_provider
from ..exceptions import (ClusterMismatchError, ExternalProviderFailure,
                          InvalidParameterError, ValidationError)
from ..stats.providers import StatisticsProvider

logger = logging.getLogger(__name__)


def check_input(name: str, value, expected: type) -> None:
    """Raise ValidationError unless ``value`` is an instance of ``expected``."""
    if value is None:
        raise ValidationError(f"{name} not specified")
    if not isinstance(value, expected):
        raise ValidationError(
            f"{name} is not a {expected.__name__} (got {type(value).__name__})"
        )


def check_same_clusters(bg_cluster_ids: Sequence[str], t_cluster_ids: Sequence[str]) -> None:
    """
    Require background and target to expose the same ordered cluster IDs.

    Raises:
        ClusterMismatchError: If the ID sequences differ in length, content or order
    """
    if list(bg_cluster_ids) != list(t_cluster_ids):
        raise ClusterMismatchError(bg_cluster_ids, t_cluster_ids)


def check_total_length(param: str, value):
    """Require a positive total search-region length (numpy scalars accepted)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not 0 < value < math.inf:
        raise InvalidParameterError(param, value, "a positive length")
    if isinstance(value, numbers.Integral):
        return int(value)
    return float(value)


def check_p_values(p_values: Sequence[float], expected: int, provider: StatisticsProvider) -> None:
    """Reject provider output that does not hold one probability per request."""
    if len(p_values) != expected:
        raise ExternalProviderFailure(
            f"{provider.name} provider returned {len(p_values)} p-values for {expected} requests"
        )
    bad = [p for p in p_values if not 0.0 <= p <= 1.0]
    if bad:
        raise ExternalProviderFailure(
            f"{provider.name} provider returned invalid p-values {bad[:5]}"
        )


class ProviderBackedAnalyzer:
    """
    Base class for analyzers delegating exact tests to a statistics provider.

    A provider passed in by the caller stays owned by the caller. When no
    provider is given, one is created from ``config`` and released by
    :meth:`close`, which also runs when the analyzer is used as a context
    manager.

    Attributes:
        config: Analysis configuration
        provider: Statistics provider used for the exact tests
    """

    def __init__(self,
                 provider: Optional[StatisticsProvider] = None,
                 config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        if provider is None:
            self.provider = create_statistics_provider(self.config)
            self._owns_provider = True
        else:
            self.provider = provider
            self._owns_provider = False

    def close(self) -> None:
        """Release the provider if this analyzer created it."""
        if self._owns_provider:
            self.provider.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False
