"""
Readers and writers for the result exchange formats.

All formats are whitespace-separated tables with one header line:

    Fisher:  TFCluster  bHits  bNoHits  tHits  tNoHits  p-value
    Z-score: TFCluster  bHits  tHits  bRate  tRate  Z-score  p-value
    KS:      TFCluster  p-value  BG_distribution
    ORI:     TFCluster  bRate  tRate  bProp  tProp  ORI

Fisher files written with target columns first
(``TFCluster tHits tNoHits bHits bNoHits p-value``) are also read; the column
order is taken from the header. Undefined statistics are written as ``NA``
and infinite ones as ``Inf``.

Writers skip clusters with no target hits and, with
``exclude_single_hits=True``, clusters found in only one target gene.
"""

import logging
from typing import IO, Callable, Iterator, List, Optional, Tuple

from ..data.loaders import PathOrHandle, open_text
from ..exceptions import FileFormatError, InvalidParameterError
from ..utils.numeric import parse_numeric
from .records import (FisherResult, KSResult, ORIResult, ResultField,
                      ZscoreResult)
from .result_set import (FieldLike, FisherResultSet, KSResultSet,
                         ORIResultSet, ResultSet, ZscoreResultSet)

logger = logging.getLogger(__name__)

FISHER_HEADER = ['TFCluster', 'bHits', 'bNoHits', 'tHits', 'tNoHits', 'p-value']
FISHER_LEGACY_HEADER = ['TFCluster', 'tHits', 'tNoHits', 'bHits', 'bNoHits', 'p-value']
ZSCORE_HEADER = ['TFCluster', 'bHits', 'tHits', 'bRate', 'tRate', 'Z-score', 'p-value']
KS_HEADER = ['TFCluster', 'p-value', 'BG_distribution']
ORI_HEADER = ['TFCluster', 'bRate', 'tRate', 'bProp', 'tProp', 'ORI']

# Older files label the cluster column 'TF'
_ID_COLUMNS = ('TFCluster', 'TF')


def _header_matches(header: List[str], expected: List[str]) -> bool:
    return (len(header) == len(expected)
            and header[0] in _ID_COLUMNS
            and header[1:] == expected[1:])


def _iter_rows(fh: IO[str], num_columns: int) -> Iterator[Tuple[int, List[str]]]:
    """Yield (line number, fields) for the data rows following the header."""
    for line_number, line in enumerate(fh, start=2):
        if not line.strip():
            continue
        fields = line.split()
        if len(fields) != num_columns:
            raise FileFormatError(
                f"expected {num_columns} columns, got {len(fields)}", line_number
            )
        yield line_number, fields


def _read_header(fh: IO[str]) -> List[str]:
    line = fh.readline()
    if not line.strip():
        raise FileFormatError("missing column header line", 1)
    return line.split()


def _parse(convert: Callable, text: str, line_number: int):
    try:
        return convert(text)
    except ValueError:
        raise FileFormatError(f"invalid value {text!r}", line_number) from None


def _write_table(target: PathOrHandle, header: List[str], rows: List[str]) -> int:
    with open_text(target, 'w') as fh:
        fh.write('\t'.join(header) + '\n')
        for row in rows:
            fh.write(row + '\n')
    logger.info(f"Wrote {len(rows)} results")
    return len(rows)


def _ordered(results: ResultSet, sort_by: Optional[FieldLike], reverse: bool) -> list:
    if sort_by is None:
        return results.get_list()
    return results.get_list(sort_by=sort_by, reverse=reverse)


def _keep(target_hits: Optional[int], exclude_single_hits: bool) -> bool:
    if not target_hits:
        return False
    return not (exclude_single_hits and target_hits <= 1)


def _check_type(results: ResultSet, expected: type) -> None:
    if not isinstance(results, expected):
        raise InvalidParameterError('results', type(results).__name__, expected.__name__)


# ============================================================================
# Fisher
# ============================================================================

def write_fisher_results(results: FisherResultSet,
                         target: PathOrHandle,
                         exclude_single_hits: bool = False,
                         sort_by: Optional[FieldLike] = ResultField.P_VALUE,
                         reverse: bool = False) -> int:
    """
    Write Fisher results.

    Args:
        results: Fisher results to write
        target: File path or open text handle
        exclude_single_hits: Skip clusters found in only one target gene
        sort_by: Row order (default: most significant first)
        reverse: Reverse the row order

    Returns:
        Number of result rows written
    """
    _check_type(results, FisherResultSet)
    rows = [
        f"{r.id:<15s} {r.bg_hits:d}\t{r.bg_no_hits:d}\t{r.t_hits:d}\t{r.t_no_hits:d}\t"
        f"{r.p_value:0.4g}"
        for r in _ordered(results, sort_by, reverse)
        if _keep(r.t_hits, exclude_single_hits)
    ]
    return _write_table(target, FISHER_HEADER, rows)


def read_fisher_results(source: PathOrHandle) -> FisherResultSet:
    """
    Read Fisher results in background-first or target-first column order.

    Raises:
        FileFormatError: If the header is not a Fisher results header or a
            row is malformed
    """
    results = FisherResultSet()
    with open_text(source, 'r') as fh:
        header = _read_header(fh)
        if _header_matches(header, FISHER_HEADER):
            background_first = True
        elif _header_matches(header, FISHER_LEGACY_HEADER):
            background_first = False
        else:
            raise FileFormatError(f"incorrect Fisher results column headers {header}", 1)

        for line_number, fields in _iter_rows(fh, len(FISHER_HEADER)):
            first = [_parse(int, v, line_number) for v in fields[1:3]]
            second = [_parse(int, v, line_number) for v in fields[3:5]]
            (bg_hits, bg_no_hits), (t_hits, t_no_hits) = (
                (first, second) if background_first else (second, first)
            )
            results.add(FisherResult(
                id=fields[0],
                t_hits=t_hits,
                t_no_hits=t_no_hits,
                bg_hits=bg_hits,
                bg_no_hits=bg_no_hits,
                p_value=_parse(float, fields[5], line_number),
            ))
    return results


# ============================================================================
# Z-score
# ============================================================================

def write_zscore_results(results: ZscoreResultSet,
                         target: PathOrHandle,
                         exclude_single_hits: bool = False,
                         sort_by: Optional[FieldLike] = ResultField.Z_SCORE,
                         reverse: bool = True) -> int:
    """
    Write Z-score results, highest Z-score first by default.

    Returns:
        Number of result rows written
    """
    _check_type(results, ZscoreResultSet)
    rows = [
        f"{r.id:<15s} {r.bg_hits:d}\t{r.t_hits:d}\t{r.bg_rate:0.5f}\t{r.t_rate:0.5f}\t"
        f"{r.z_score:0.4f}\t{r.p_value:0.4g}"
        for r in _ordered(results, sort_by, reverse)
        if _keep(r.t_gene_hits, exclude_single_hits)
    ]
    return _write_table(target, ZSCORE_HEADER, rows)


# ============================================================================
# KS
# ============================================================================

def write_ks_results(results: KSResultSet,
                     target: PathOrHandle,
                     sort_by: Optional[FieldLike] = ResultField.P_VALUE,
                     reverse: bool = False) -> int:
    """Write KS results, most significant first by default."""
    _check_type(results, KSResultSet)
    rows = [
        f"{r.id}\t{r.p_value:0.4g}\t{r.bg_distribution}"
        for r in _ordered(results, sort_by, reverse)
    ]
    return _write_table(target, KS_HEADER, rows)


def read_ks_results(source: PathOrHandle) -> KSResultSet:
    """
    Read KS results.

    Raises:
        FileFormatError: If the header or a row is malformed
    """
    results = KSResultSet()
    with open_text(source, 'r') as fh:
        header = _read_header(fh)
        if not _header_matches(header, KS_HEADER):
            raise FileFormatError(f"incorrect KS results column headers {header}", 1)
        for line_number, fields in _iter_rows(fh, len(KS_HEADER)):
            results.add(KSResult(
                id=fields[0],
                p_value=_parse(float, fields[1], line_number),
                bg_distribution=fields[2],
            ))
    return results


# ============================================================================
# ORI
# ============================================================================

def write_ori_results(results: ORIResultSet,
                      target: PathOrHandle,
                      exclude_single_hits: bool = False,
                      sort_by: Optional[FieldLike] = ResultField.ORI,
                      reverse: bool = True) -> int:
    """
    Write ORI results, highest index first by default.

    Results that do not record the number of target genes with hits are
    filtered on their target gene proportion instead.
    """
    _check_type(results, ORIResultSet)
    rows = []
    for r in _ordered(results, sort_by, reverse):
        if r.t_gene_hits is not None:
            if not _keep(r.t_gene_hits, exclude_single_hits):
                continue
        elif r.t_gene_prop <= 0:
            continue
        rows.append(
            f"{r.id:<15s} {r.bg_rate:0.4f}\t{r.t_rate:0.4f}\t"
            f"{r.bg_gene_prop:0.4f}\t{r.t_gene_prop:0.4f}\t{r.ori:0.4f}"
        )
    return _write_table(target, ORI_HEADER, rows)


def read_ori_results(source: PathOrHandle) -> ORIResultSet:
    """
    Read ORI results; an ``Inf`` index is read back as positive infinity.

    Raises:
        FileFormatError: If the header or a row is malformed
    """
    results = ORIResultSet()
    with open_text(source, 'r') as fh:
        header = _read_header(fh)
        if not _header_matches(header, ORI_HEADER):
            raise FileFormatError(f"incorrect ORI results column headers {header}", 1)
        for line_number, fields in _iter_rows(fh, len(ORI_HEADER)):
            bg_rate, t_rate, bg_prop, t_prop = (
                _parse(float, v, line_number) for v in fields[1:5]
            )
            results.add(ORIResult(
                id=fields[0],
                t_rate=t_rate,
                bg_rate=bg_rate,
                t_gene_prop=t_prop,
                bg_gene_prop=bg_prop,
                ori=_parse(parse_numeric, fields[5], line_number),
            ))
    return results
