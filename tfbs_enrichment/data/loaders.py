"""
Readers and writers for the counts and values exchange formats.

Formats:
    detail: Full counts dump in three sections marked ``>TFBS``, ``>Genes``
        and ``>Counts``. Readable and writable; a write followed by a read
        reproduces counts, cluster widths and gene lengths.
    fisher: Write-only ``<cluster>\\t<gene hits>\\t<gene no hits>`` rows.
    zscore: Write-only ``<cluster>\\t<width>\\t<total length>\\t<hits>`` rows.
    ks: ``<cluster>\\t<value>`` rows of per-cluster observations.

Example:
    >>> write_counts(counts, 'target.counts', format='detail')
    >>> same_counts = read_counts('target.counts')
"""

import contextlib
import logging
import math
import re
from pathlib import Path
from typing import IO, Iterator, List, Optional, Union

from ..exceptions import FileFormatError, InvalidParameterError
from .counts import CountsMatrix
from .values import ValuesMatrix

logger = logging.getLogger(__name__)

PathOrHandle = Union[str, Path, IO[str]]

COUNTS_FORMATS = ['detail', 'fisher', 'zscore']

_ID_VALUE_RE = re.compile(r'^\s*(\S+)\s+(\d+)\s*$')


@contextlib.contextmanager
def open_text(target: PathOrHandle, mode: str = 'r') -> Iterator[IO[str]]:
    """
    Yield a text handle for a path or pass an already open handle through.

    Handles opened here are closed on exit; handles supplied by the caller
    are left open.
    """
    if isinstance(target, (str, Path)):
        path = Path(target)
        if 'w' in mode or 'a' in mode:
            path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, mode, encoding='utf-8') as fh:
            yield fh
    else:
        yield target


def _check_format(format: str) -> str:
    format = format.lower()
    if format not in COUNTS_FORMATS:
        raise InvalidParameterError('format', format, f"one of {COUNTS_FORMATS}")
    return format


# ============================================================================
# Counts
# ============================================================================

def read_counts(source: PathOrHandle, format: str = 'detail') -> CountsMatrix:
    """
    Read a counts matrix from a file.

    Args:
        source: File path or open text handle
        format: Only 'detail' is readable; 'fisher' and 'zscore' are
            write-only summaries

    Returns:
        CountsMatrix with counts, cluster widths and gene lengths

    Raises:
        FileFormatError: If the file is malformed
        InvalidParameterError: If the format is unknown or write-only
    """
    format = _check_format(format)
    if format != 'detail':
        raise InvalidParameterError('format', format, "'detail' (fisher and zscore are write-only)")

    with open_text(source, 'r') as fh:
        counts = _read_detail_counts(fh)

    logger.info(
        f"Read counts for {counts.num_genes()} genes and {counts.num_clusters()} clusters"
    )
    return counts


def _read_detail_counts(fh: IO[str]) -> CountsMatrix:
    cluster_ids: List[str] = []
    cluster_widths: List[int] = []
    gene_ids: List[str] = []
    gene_lengths: List[int] = []
    rows: List[List[int]] = []
    section = None

    for line_number, line in enumerate(fh, start=1):
        line = line.rstrip('\r\n')
        if line.startswith('>TFBS'):
            section = 'tfbs'
            continue
        if line.startswith('>Genes'):
            section = 'genes'
            continue
        if line.startswith('>Counts'):
            section = 'counts'
            if not cluster_ids:
                raise FileFormatError("no TFBS clusters read before >Counts", line_number)
            if not gene_ids:
                raise FileFormatError("no genes read before >Counts", line_number)
            continue
        if not line.strip():
            continue

        if section == 'tfbs':
            match = _ID_VALUE_RE.match(line)
            if not match:
                raise FileFormatError(f"error reading TFBS line {line!r}", line_number)
            cluster_ids.append(match.group(1))
            cluster_widths.append(int(match.group(2)))
        elif section == 'genes':
            match = _ID_VALUE_RE.match(line)
            if not match:
                raise FileFormatError(f"error reading gene line {line!r}", line_number)
            gene_ids.append(match.group(1))
            gene_lengths.append(int(match.group(2)))
        elif section == 'counts':
            fields = line.strip().split('\t')
            if len(fields) != len(cluster_ids):
                gene_label = gene_ids[len(rows)] if len(rows) < len(gene_ids) else '?'
                raise FileFormatError(
                    f"number of counts read ({len(fields)}) does not match number of "
                    f"TFBS clusters ({len(cluster_ids)}) for gene number "
                    f"{len(rows) + 1} ID {gene_label}",
                    line_number,
                )
            try:
                rows.append([int(field) for field in fields])
            except ValueError:
                raise FileFormatError(f"non-integer count in {line!r}", line_number) from None
        else:
            raise FileFormatError(f"data line outside of any section: {line!r}", line_number)

    if section is None:
        raise FileFormatError("no >TFBS, >Genes or >Counts section found")
    if len(rows) != len(gene_ids):
        raise FileFormatError(
            f"number of gene count rows read ({len(rows)}) does not match "
            f"number of genes ({len(gene_ids)})"
        )

    counts = CountsMatrix(gene_ids=gene_ids, cluster_ids=cluster_ids)
    for cluster_id, width in zip(cluster_ids, cluster_widths):
        counts.set_cluster_width(cluster_id, width)
    for gene_id, gene_length, row in zip(gene_ids, gene_lengths, rows):
        counts.set_gene_length(gene_id, gene_length)
        for cluster_id, value in zip(cluster_ids, row):
            counts.set(gene_id, cluster_id, value)
    return counts


def write_counts(counts: CountsMatrix, target: PathOrHandle, format: str = 'detail') -> None:
    """
    Write a counts matrix in one of the counts exchange formats.

    Args:
        counts: Counts to write
        target: File path or open text handle
        format: 'detail', 'fisher' or 'zscore'

    Raises:
        InvalidParameterError: If the format is unknown
        FileFormatError: If the counts hold no genes or clusters
    """
    format = _check_format(format)
    if not counts.cluster_ids:
        raise FileFormatError("no TFBS cluster IDs in counts")
    if not counts.gene_ids:
        raise FileFormatError("no gene IDs in counts")

    with open_text(target, 'w') as fh:
        if format == 'detail':
            _write_detail_counts(fh, counts)
        elif format == 'fisher':
            _write_fisher_counts(fh, counts)
        else:
            _write_zscore_counts(fh, counts)


def _write_detail_counts(fh: IO[str], counts: CountsMatrix) -> None:
    fh.write('>TFBS\n')
    for cluster_id in counts.cluster_ids:
        fh.write(f"{cluster_id:<20s}\t{counts.cluster_width(cluster_id) or 0:d}\n")
    fh.write('>Genes\n')
    for gene_id in counts.gene_ids:
        fh.write(f"{gene_id:<20s}\t{counts.gene_length(gene_id):d}\n")
    fh.write('>Counts\n')
    for gene_id in counts.gene_ids:
        fh.write('\t'.join(str(counts.count(gene_id, cluster_id))
                           for cluster_id in counts.cluster_ids))
        fh.write('\n')


def _write_fisher_counts(fh: IO[str], counts: CountsMatrix) -> None:
    num_genes = counts.num_genes()
    for cluster_id in counts.cluster_ids:
        hits = counts.cluster_gene_count(cluster_id)
        fh.write(f"{cluster_id}\t{hits}\t{num_genes - hits}\n")


def _write_zscore_counts(fh: IO[str], counts: CountsMatrix) -> None:
    total_length = counts.total_length()
    for cluster_id in counts.cluster_ids:
        fh.write(
            f"{cluster_id}\t{counts.cluster_width(cluster_id) or 0:d}\t"
            f"{total_length:d}\t{counts.cluster_count(cluster_id):d}\n"
        )


# ============================================================================
# Values
# ============================================================================

def write_values(values: ValuesMatrix,
                 target: PathOrHandle,
                 cluster_id: Optional[str] = None) -> int:
    """
    Write per-cluster observations as ``<cluster>\\t<value>`` rows.

    Args:
        values: Values to write
        target: File path or open text handle
        cluster_id: Write only this cluster's values (default: all clusters)

    Returns:
        Number of rows written
    """
    cluster_ids = [cluster_id] if cluster_id is not None else list(values.cluster_ids)
    written = 0
    with open_text(target, 'w') as fh:
        for cid in cluster_ids:
            for value in values.all_cluster_values(cid):
                fh.write(f"{cid}\t{float(value)!r}\n")
                written += 1
    return written


def read_values(source: PathOrHandle, seq_id: str = 'all') -> ValuesMatrix:
    """
    Read ``<cluster>\\t<value>`` rows into a ValuesMatrix.

    The format carries no sequence IDs, so every value is stored under the
    single sequence ``seq_id``.

    Raises:
        FileFormatError: If a row is malformed
    """
    values = ValuesMatrix()
    with open_text(source, 'r') as fh:
        for line_number, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            fields = line.split()
            if len(fields) != 2:
                raise FileFormatError(f"expected 2 columns, got {len(fields)}", line_number)
            try:
                value = float(fields[1])
            except ValueError:
                raise FileFormatError(f"non-numeric value {fields[1]!r}", line_number) from None
            if not math.isfinite(value):
                raise FileFormatError(f"non-finite value {fields[1]!r}", line_number)
            values.add_value(seq_id, fields[0], value)
    return values
