"""
Statistics providers for the exact enrichment tests.

The Fisher and KS analyzers delegate their numeric work to a
:class:`StatisticsProvider`, which exposes exactly two batched operations:

    fisher_p_values: one-tailed (target enriched) exact hypergeometric tail
        probabilities for a batch of 2x2 contingency tables
    ks_p_values: Kolmogorov-Smirnov p-values for a batch of one-sample or
        two-sample comparisons

Two implementations are provided. :class:`ScipyStatisticsProvider` computes
in-process with scipy.stats. :class:`RScriptStatisticsProvider` runs an R
process and exchanges data through files in a private scratch directory that
is created for each call and removed when the call returns.

Example:
    >>> provider = ScipyStatisticsProvider()
    >>> provider.fisher_p_values([ContingencyTable('MA0001', 8, 2, 3, 7)])
    [0.0115...]
"""

import logging
import shutil
import subprocess
import tempfile
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from ..exceptions import ExternalProviderFailure, InvalidParameterError

logger = logging.getLogger(__name__)

# Label stored on KS results compared against background observations
BACKGROUND_DATA_LABEL = 'data'

# Canonical reference distribution -> (scipy.stats name, R cumulative distribution name)
REFERENCE_DISTRIBUTIONS: Dict[str, Tuple[str, str]] = {
    'uniform': ('uniform', 'punif'),
    'normal': ('norm', 'pnorm'),
    'exponential': ('expon', 'pexp'),
}

_DISTRIBUTION_ALIASES: Dict[str, str] = {
    'unif': 'uniform',
    'punif': 'uniform',
    'norm': 'normal',
    'pnorm': 'normal',
    'exp': 'exponential',
    'expon': 'exponential',
    'pexp': 'exponential',
}


def resolve_distribution(name: str) -> str:
    """
    Map a reference distribution name or alias to its canonical name.

    Raises:
        InvalidParameterError: If the distribution is not supported
    """
    key = name.strip().lower()
    key = _DISTRIBUTION_ALIASES.get(key, key)
    if key not in REFERENCE_DISTRIBUTIONS:
        raise InvalidParameterError(
            'distribution', name, f"one of {sorted(REFERENCE_DISTRIBUTIONS)}"
        )
    return key


@dataclass(frozen=True)
class ContingencyTable:
    """
    Gene hit/no-hit table for one cluster.

    Attributes:
        id: Cluster ID
        t_hits: Target genes with at least one site
        t_no_hits: Target genes without sites
        bg_hits: Background genes with at least one site
        bg_no_hits: Background genes without sites
    """
    id: str
    t_hits: int
    t_no_hits: int
    bg_hits: int
    bg_no_hits: int


@dataclass(frozen=True)
class KSRequest:
    """
    One KS comparison.

    Exactly one of ``bg_values`` (two-sample test) and ``distribution``
    (one-sample test against a canonical reference distribution) is set.
    """
    id: str
    t_values: np.ndarray
    bg_values: Optional[np.ndarray] = None
    distribution: Optional[str] = None

    def __post_init__(self):
        if (self.bg_values is None) == (self.distribution is None):
            raise InvalidParameterError(
                'KSRequest', self.id, "either background values or a distribution"
            )

    @property
    def label(self) -> str:
        return BACKGROUND_DATA_LABEL if self.distribution is None else self.distribution


class StatisticsProvider(ABC):
    """Interface for the exact statistical tests used by the analyzers."""

    name = 'abstract'

    @abstractmethod
    def fisher_p_values(self, tables: Sequence[ContingencyTable]) -> List[float]:
        """
        One-tailed exact test p-values, target enriched over background.

        Args:
            tables: Contingency tables, one per cluster

        Returns:
            P-values in the order of ``tables``
        """
        pass

    @abstractmethod
    def ks_p_values(self, requests: Sequence[KSRequest]) -> List[float]:
        """
        Kolmogorov-Smirnov p-values.

        Args:
            requests: Comparisons, one per cluster

        Returns:
            P-values in the order of ``requests``
        """
        pass

    def close(self) -> None:
        """Release provider resources; a no-op for in-process providers."""
        pass


class ScipyStatisticsProvider(StatisticsProvider):
    """In-process provider backed by scipy.stats."""

    name = 'scipy'

    def fisher_p_values(self, tables: Sequence[ContingencyTable]) -> List[float]:
        return [self.hypergeometric_test(table) for table in tables]

    @staticmethod
    def hypergeometric_test(table: ContingencyTable) -> float:
        """
        Upper-tail hypergeometric probability of the target hit count.

        Equivalent to a one-sided Fisher exact test (alternative 'greater')
        on ``[[t_hits, t_no_hits], [bg_hits, bg_no_hits]]``:

        - M: all genes (target + background)
        - n: genes with hits (target + background)
        - N: target genes
        - k: target genes with hits

        P(X >= k) = sf(k - 1)
        """
        M = table.t_hits + table.t_no_hits + table.bg_hits + table.bg_no_hits
        n = table.t_hits + table.bg_hits
        N = table.t_hits + table.t_no_hits
        k = table.t_hits

        if k == 0:
            return 1.0

        p_value = float(stats.hypergeom.sf(k - 1, M, n, N))
        return min(max(p_value, 0.0), 1.0)

    def ks_p_values(self, requests: Sequence[KSRequest]) -> List[float]:
        p_values = []
        for request in requests:
            if request.distribution is None:
                result = stats.ks_2samp(request.t_values, request.bg_values)
            else:
                scipy_name = REFERENCE_DISTRIBUTIONS[request.distribution][0]
                result = stats.kstest(request.t_values, scipy_name)
            p_values.append(float(result.pvalue))
        return p_values


_FISHER_SCRIPT = """\
tables <- read.table("{tables}", header=TRUE, sep="\\t", quote="",
                     comment.char="", colClasses=c("character", rep("numeric", 4)))
p <- numeric(nrow(tables))
for (i in seq_len(nrow(tables))) {{
    m <- matrix(c(tables$t_hits[i], tables$bg_hits[i],
                  tables$t_no_hits[i], tables$bg_no_hits[i]), nrow=2)
    p[i] <- fisher.test(m, alternative="greater")$p.value
}}
write.table(data.frame(id=tables$id, p_value=p), "{output}", quote=FALSE,
            row.names=FALSE, sep="\\t")
"""

_KS_SCRIPT = """\
vals <- read.table("{values}", header=TRUE, sep="\\t", quote="", comment.char="",
                   colClasses=c("integer", "character", "numeric"))
reqs <- read.table("{requests}", header=TRUE, sep="\\t", quote="", comment.char="",
                   colClasses=c("integer", "character"))
p <- numeric(nrow(reqs))
for (i in seq_len(nrow(reqs))) {{
    idx <- reqs$index[i]
    t <- vals$value[vals$index == idx & vals$group == "t"]
    if (reqs$reference[i] == "{data_label}") {{
        bg <- vals$value[vals$index == idx & vals$group == "bg"]
        p[i] <- suppressWarnings(ks.test(t, bg))$p.value
    }} else {{
        p[i] <- suppressWarnings(ks.test(t, reqs$reference[i]))$p.value
    }}
}}
write.table(data.frame(index=reqs$index, p_value=p), "{output}", quote=FALSE,
            row.names=FALSE, sep="\\t")
"""


def _remove_directories(directories: Set[str]) -> None:
    for directory in list(directories):
        shutil.rmtree(directory, ignore_errors=True)
        directories.discard(directory)


class RScriptStatisticsProvider(StatisticsProvider):
    """
    Out-of-process provider running the tests in R through ``Rscript``.

    Every call writes its input tables, an R script and the R output into a
    fresh scratch directory which is deleted before the call returns. Any
    scratch directory still present (e.g. after an interrupted call) is
    removed by :meth:`close` or when the provider is garbage collected.

    Attributes:
        rscript_path: Rscript executable
        scratch_root: Parent directory for scratch directories (default: the
            system temporary directory)
    """

    name = 'rscript'

    def __init__(self, rscript_path: str = 'Rscript', scratch_root: Optional[str] = None):
        self.rscript_path = rscript_path
        self.scratch_root = scratch_root
        self._scratch_dirs: Set[str] = set()
        self._finalizer = weakref.finalize(self, _remove_directories, self._scratch_dirs)

    @staticmethod
    def is_available(rscript_path: str = 'Rscript') -> bool:
        """Check whether the Rscript executable can be found."""
        return shutil.which(rscript_path) is not None

    def _create_scratch(self, prefix: str) -> Path:
        directory = tempfile.mkdtemp(prefix=prefix, dir=self.scratch_root)
        self._scratch_dirs.add(directory)
        logger.debug(f"Created scratch directory {directory}")
        return Path(directory)

    def _destroy_scratch(self, directory: Path) -> None:
        shutil.rmtree(directory, ignore_errors=True)
        self._scratch_dirs.discard(str(directory))
        logger.debug(f"Removed scratch directory {directory}")

    def close(self) -> None:
        _remove_directories(self._scratch_dirs)

    def _run_script(self, script_path: Path, output_path: Path) -> pd.DataFrame:
        command = [self.rscript_path, '--vanilla', str(script_path)]
        logger.debug(" ".join(command))
        try:
            completed = subprocess.run(command, shell=False, capture_output=True, text=True)
        except OSError as e:
            raise ExternalProviderFailure(
                f"could not start R: {e}", command=command
            ) from e

        if completed.returncode != 0:
            raise ExternalProviderFailure(
                "error running R command",
                command=command,
                returncode=completed.returncode,
                stderr=completed.stderr,
            )
        if not output_path.exists():
            raise ExternalProviderFailure(
                "R produced no output file", command=command, stderr=completed.stderr
            )
        try:
            return pd.read_csv(output_path, sep='\t', dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ExternalProviderFailure(
                f"unreadable R output: {e}", command=command, stderr=completed.stderr
            ) from e

    def fisher_p_values(self, tables: Sequence[ContingencyTable]) -> List[float]:
        if not tables:
            return []

        scratch = self._create_scratch('fisher_')
        try:
            tables_path = scratch / 'tables.txt'
            output_path = scratch / 'output.txt'
            script_path = scratch / 'fisher.R'

            pd.DataFrame([{
                'id': table.id,
                't_hits': table.t_hits,
                't_no_hits': table.t_no_hits,
                'bg_hits': table.bg_hits,
                'bg_no_hits': table.bg_no_hits,
            } for table in tables]).to_csv(tables_path, sep='\t', index=False)

            script_path.write_text(
                _FISHER_SCRIPT.format(tables=tables_path.as_posix(),
                                      output=output_path.as_posix())
            )
            output = self._run_script(script_path, output_path)
            return self._collect(output, 'id', [table.id for table in tables])
        finally:
            self._destroy_scratch(scratch)

    def ks_p_values(self, requests: Sequence[KSRequest]) -> List[float]:
        if not requests:
            return []

        scratch = self._create_scratch('ks_')
        try:
            values_path = scratch / 'values.txt'
            requests_path = scratch / 'requests.txt'
            output_path = scratch / 'output.txt'
            script_path = scratch / 'ks.R'

            value_rows = []
            request_rows = []
            for index, request in enumerate(requests):
                value_rows.extend(
                    {'index': index, 'group': 't', 'value': value}
                    for value in request.t_values
                )
                if request.bg_values is not None:
                    value_rows.extend(
                        {'index': index, 'group': 'bg', 'value': value}
                        for value in request.bg_values
                    )
                    reference = BACKGROUND_DATA_LABEL
                else:
                    reference = REFERENCE_DISTRIBUTIONS[request.distribution][1]
                request_rows.append({'index': index, 'reference': reference})

            pd.DataFrame(value_rows, columns=['index', 'group', 'value']).to_csv(
                values_path, sep='\t', index=False, float_format='%.17g'
            )
            pd.DataFrame(request_rows, columns=['index', 'reference']).to_csv(
                requests_path, sep='\t', index=False
            )
            script_path.write_text(
                _KS_SCRIPT.format(values=values_path.as_posix(),
                                  requests=requests_path.as_posix(),
                                  output=output_path.as_posix(),
                                  data_label=BACKGROUND_DATA_LABEL)
            )
            output = self._run_script(script_path, output_path)
            return self._collect(output, 'index', list(range(len(requests))))
        finally:
            self._destroy_scratch(scratch)

    @staticmethod
    def _collect(output: pd.DataFrame, key: str, expected: list) -> List[float]:
        """Order R output rows like the request and check nothing is missing."""
        if key not in output.columns or 'p_value' not in output.columns:
            raise ExternalProviderFailure(
                f"R output is missing columns, got {list(output.columns)}"
            )
        by_key = dict(zip(output[key], output['p_value']))
        missing = [item for item in expected if str(item) not in by_key]
        if missing:
            raise ExternalProviderFailure(f"R output has no p-value for {missing[:5]}")
        try:
            return [float(by_key[str(item)]) for item in expected]
        except ValueError as e:
            raise ExternalProviderFailure(f"non-numeric p-value in R output: {e}") from e


PROVIDERS = {
    ScipyStatisticsProvider.name: ScipyStatisticsProvider,
    RScriptStatisticsProvider.name: RScriptStatisticsProvider,
}
