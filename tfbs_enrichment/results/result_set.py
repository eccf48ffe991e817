"""
Result sets with filtered, sorted retrieval.

A :class:`ResultSet` maps cluster IDs to result records of one type. It has no
meaningful iteration order; :meth:`ResultSet.get_list` is the way to get
records out in a defined order:

    1. records failing any active :class:`Cutoff` are dropped
    2. the rest are sorted on one :class:`ResultField`
    3. the list is truncated to the requested number of results

Sorting never raises on missing statistics: records whose sort value is
unset (None or UNDEFINED) always come after every record with a value, in
both ascending and descending order.

Example:
    >>> top = fisher_results.get_list(
    ...     num_results=10,
    ...     sort_by='p_value',
    ...     cutoffs=[Cutoff(ResultField.P_VALUE, 0.05, Comparison.LE)],
    ... )
"""

import logging
import operator
from dataclasses import dataclass
from enum import Enum
from typing import (Any, Callable, Dict, Generic, Iterator, List, Optional,
                    Sequence, Type, TypeVar, Union)

import pandas as pd
from statsmodels.stats.multitest import multipletests

from ..exceptions import DuplicateResultError, InvalidParameterError, ValidationError
from ..utils.numeric import as_numeric
from .records import (DataAbsence, FisherResult, KSResult, ORIResult,
                      ResultField, ZscoreResult)

logger = logging.getLogger(__name__)

T = TypeVar('T')

FieldLike = Union[ResultField, str]


def resolve_field(field: FieldLike) -> ResultField:
    """
    Convert a field name into a :class:`ResultField`.

    Raises:
        ValidationError: If the name is not a known result field
    """
    if isinstance(field, ResultField):
        return field
    try:
        return ResultField(field)
    except ValueError:
        raise InvalidParameterError(
            'field', field, f"one of {[f.value for f in ResultField]}"
        ) from None


class Comparison(Enum):
    """Comparison applied by a :class:`Cutoff`."""

    GE = ">="
    GT = ">"
    LE = "<="
    LT = "<"


_COMPARATORS: Dict[Comparison, Callable[[float, float], bool]] = {
    Comparison.GE: operator.ge,
    Comparison.GT: operator.gt,
    Comparison.LE: operator.le,
    Comparison.LT: operator.lt,
}


@dataclass(frozen=True)
class Cutoff:
    """
    Numeric threshold on one result field.

    A record passes when ``value <comparison> threshold`` holds. Records
    whose value for the field is unset never pass.

    Attributes:
        field: Field compared against the threshold
        threshold: Threshold value
        comparison: Comparison operator (default: >=)
    """
    field: ResultField
    threshold: float
    comparison: Comparison = Comparison.GE

    def __post_init__(self):
        object.__setattr__(self, 'field', resolve_field(self.field))
        if self.field is ResultField.ID:
            raise InvalidParameterError('field', self.field.value, "a numeric result field")
        try:
            threshold = float(self.threshold)
        except (TypeError, ValueError):
            raise InvalidParameterError('threshold', self.threshold, "a number") from None
        if isinstance(self.threshold, bool) or threshold != threshold:
            raise InvalidParameterError('threshold', self.threshold, "a number")
        object.__setattr__(self, 'threshold', threshold)
        if not isinstance(self.comparison, Comparison):
            try:
                object.__setattr__(self, 'comparison', Comparison(self.comparison))
            except ValueError:
                raise InvalidParameterError(
                    'comparison', self.comparison, f"one of {[c.value for c in Comparison]}"
                ) from None

    def passes(self, value: Any) -> bool:
        value = as_numeric(value)
        if not value.is_set:
            return False
        return _COMPARATORS[self.comparison](value.magnitude(), self.threshold)


class ResultSet(Generic[T]):
    """
    Collection of result records keyed by cluster ID.

    Attributes:
        result_type: Record class stored in the set; its ``FIELDS`` table
            defines which fields can be sorted and filtered on
        params: Analysis parameters recorded by the producing analyzer
        skipped: Clusters the analyzer skipped because data was missing
    """

    result_type: Type = None

    def __init__(self, result_type: Optional[Type] = None):
        if result_type is not None:
            self.result_type = result_type
        if self.result_type is None:
            raise ValidationError("a result set requires a result record type")
        self._results: Dict[str, T] = {}
        self.params: Dict[str, Any] = {}
        self.skipped: List[DataAbsence] = []

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def add(self, result: T) -> None:
        """
        Add a result record.

        Raises:
            DuplicateResultError: If a result with the same ID is already stored
            ValidationError: If the record is not of the set's result type
        """
        if not isinstance(result, self.result_type):
            raise ValidationError(
                f"{type(self).__name__} stores {self.result_type.__name__} records, "
                f"got {type(result).__name__}"
            )
        if result.id in self._results:
            raise DuplicateResultError(result.id)
        self._results[result.id] = result

    def record_absence(self, cluster_id: str, reason: str) -> None:
        """Record a cluster skipped because data was missing and log it."""
        self.skipped.append(DataAbsence(cluster_id, reason))
        logger.warning(f"Skipping cluster {cluster_id}: {reason}")

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get_result(self, result_id: str) -> Optional[T]:
        """Return the result with the given ID, or None if there is none."""
        result = self._results.get(result_id)
        if result is None:
            logger.debug(f"No result with ID {result_id} in {type(self).__name__}")
        return result

    def ids(self) -> List[str]:
        return list(self._results)

    def results(self) -> List[T]:
        return list(self._results.values())

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, result_id: str) -> bool:
        return result_id in self._results

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._results.values()))

    def accessor(self, field: FieldLike) -> Callable[[T], Any]:
        """
        Accessor function for a field of the set's record type.

        Raises:
            ValidationError: If the record type has no such field
        """
        field = resolve_field(field)
        try:
            return self.result_type.FIELDS[field]
        except KeyError:
            raise InvalidParameterError(
                'field', field.value,
                f"a field of {self.result_type.__name__}: "
                f"{[f.value for f in self.result_type.FIELDS]}"
            ) from None

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def get_list(self,
                 num_results: Union[int, str, None] = None,
                 sort_by: FieldLike = ResultField.ID,
                 reverse: bool = False,
                 cutoffs: Sequence[Cutoff] = ()) -> List[T]:
        """
        Get a filtered, sorted and truncated list of results.

        Args:
            num_results: Maximum number of results to return; None or 'all'
                returns every result passing the cutoffs
            sort_by: Field to sort on
            reverse: Sort in descending order
            cutoffs: Cutoffs every returned result must pass

        Returns:
            List of result records

        Raises:
            ValidationError: If a field is not supported by the record type
                or num_results is invalid
        """
        limit = self._check_num_results(num_results)
        sort_accessor = self.accessor(sort_by)
        sort_field = resolve_field(sort_by)
        checks = [(cutoff, self.accessor(cutoff.field)) for cutoff in cutoffs]

        selected = [
            result for result in self._results.values()
            if all(cutoff.passes(get(result)) for cutoff, get in checks)
        ]
        ordered = self._sort(selected, sort_field, sort_accessor, reverse)

        if limit is not None:
            ordered = ordered[:limit]
        return ordered

    @staticmethod
    def _check_num_results(num_results: Union[int, str, None]) -> Optional[int]:
        if num_results is None:
            return None
        if isinstance(num_results, str):
            if num_results.lower() == 'all':
                return None
            raise InvalidParameterError('num_results', num_results, "a non-negative integer or 'all'")
        if isinstance(num_results, bool) or not isinstance(num_results, int) or num_results < 0:
            raise InvalidParameterError('num_results', num_results, "a non-negative integer or 'all'")
        return num_results

    @staticmethod
    def _sort(results: List[T],
              field: ResultField,
              get: Callable[[T], Any],
              reverse: bool) -> List[T]:
        if field is ResultField.ID:
            return sorted(results, key=lambda r: r.id, reverse=reverse)

        with_value = []
        without_value = []
        for result in results:
            value = as_numeric(get(result))
            if value.is_set:
                with_value.append((value.magnitude(), result))
            else:
                without_value.append(result)

        # Ties keep ID order in both directions
        with_value.sort(key=lambda item: item[1].id)
        with_value.sort(key=lambda item: item[0], reverse=reverse)
        without_value.sort(key=lambda r: r.id)
        return [result for _, result in with_value] + without_value

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert the results to a DataFrame indexed by cluster ID.

        Undefined statistics become NaN and positive infinity becomes inf.
        """
        rows = [result.to_dict() for result in self.get_list()]
        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows).set_index('id')

    def adjusted_p_values(self,
                          method: str = 'fdr_bh',
                          field: FieldLike = ResultField.P_VALUE) -> Dict[str, float]:
        """
        Multiple-testing adjusted p-values.

        Args:
            method: statsmodels ``multipletests`` method (default: 'fdr_bh')
            field: P-value field to adjust

        Returns:
            Dictionary of cluster ID -> adjusted p-value, for results whose
            p-value is defined
        """
        get = self.accessor(field)
        ids = []
        p_values = []
        for result in self.get_list():
            value = as_numeric(get(result))
            if value.is_defined:
                ids.append(result.id)
                p_values.append(value.value)

        if not p_values:
            return {}

        try:
            _, p_adjusted, _, _ = multipletests(p_values, method=method)
        except ValueError as e:
            raise InvalidParameterError('method', method, str(e)) from e
        return dict(zip(ids, (float(p) for p in p_adjusted)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(num_results={len(self)}, skipped={len(self.skipped)})"


class FisherResultSet(ResultSet[FisherResult]):
    """Fisher exact test results."""

    result_type = FisherResult


class ZscoreResultSet(ResultSet[ZscoreResult]):
    """Z-score test results; ``params`` holds the total lengths used."""

    result_type = ZscoreResult


class KSResultSet(ResultSet[KSResult]):
    """Kolmogorov-Smirnov test results."""

    result_type = KSResult


class ORIResultSet(ResultSet[ORIResult]):
    """Over-representation index results; ``params`` holds the total lengths used."""

    result_type = ORIResult

