"""Tests for the statistics providers."""
import shutil
import subprocess

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from tfbs_enrichment.config import AnalysisConfig, create_statistics_provider
from tfbs_enrichment.exceptions import ExternalProviderFailure, ValidationError
from tfbs_enrichment.stats import providers
from tfbs_enrichment.stats.providers import (
    ContingencyTable,
    KSRequest,
    RScriptStatisticsProvider,
    ScipyStatisticsProvider,
    resolve_distribution,
)


class TestScipyStatisticsProvider:
    """Tests for ScipyStatisticsProvider."""

    def test_fisher_matches_exact_test(self):
        """One-tailed p-value should equal scipy's Fisher exact test."""
        provider = ScipyStatisticsProvider()
        p_value, = provider.fisher_p_values([ContingencyTable("MA0001", 8, 2, 3, 7)])
        _, expected = stats.fisher_exact([[8, 2], [3, 7]], alternative="greater")
        assert p_value == pytest.approx(expected, rel=1e-9)

    def test_fisher_zero_hits(self):
        provider = ScipyStatisticsProvider()
        assert provider.fisher_p_values([ContingencyTable("c", 0, 10, 5, 5)]) == [1.0]

    def test_fisher_batch_order(self):
        provider = ScipyStatisticsProvider()
        tables = [ContingencyTable("a", 1, 9, 9, 1), ContingencyTable("b", 9, 1, 1, 9)]
        p_a, p_b = provider.fisher_p_values(tables)
        assert p_a > 0.5
        assert p_b < 0.01

    def test_ks_two_sample(self):
        rng = np.random.default_rng(0)
        t = rng.uniform(0, 0.2, 50)
        bg = rng.uniform(0, 1, 200)
        provider = ScipyStatisticsProvider()
        p_value, = provider.ks_p_values([KSRequest("c", t, bg_values=bg)])
        assert p_value == pytest.approx(stats.ks_2samp(t, bg).pvalue)

    def test_ks_one_sample(self):
        rng = np.random.default_rng(1)
        t = rng.uniform(0, 1, 100)
        provider = ScipyStatisticsProvider()
        p_value, = provider.ks_p_values([KSRequest("c", t, distribution="uniform")])
        assert p_value == pytest.approx(stats.kstest(t, "uniform").pvalue)


class TestDistributions:
    """Tests for reference distribution names."""

    @pytest.mark.parametrize("name,expected", [
        ("uniform", "uniform"),
        ("punif", "uniform"),
        ("pnorm", "normal"),
        ("Exponential", "exponential"),
    ])
    def test_aliases(self, name, expected):
        assert resolve_distribution(name) == expected

    def test_unknown_distribution(self):
        with pytest.raises(ValidationError):
            resolve_distribution("cauchy")

    def test_request_needs_one_reference(self):
        with pytest.raises(ValidationError):
            KSRequest("c", np.array([0.1]))
        with pytest.raises(ValidationError):
            KSRequest("c", np.array([0.1]), bg_values=np.array([0.2]), distribution="uniform")


def _fake_rscript(calls, returncode=0, stderr=""):
    """Replacement for subprocess.run answering the R scripts with scipy."""

    def run(command, **kwargs):
        script = providers.Path(command[-1])
        scratch = script.parent
        calls.append(scratch)
        if returncode == 0:
            if script.name == "fisher.R":
                tables = pd.read_csv(scratch / "tables.txt", sep="\t", dtype={"id": str})
                p = [
                    stats.fisher_exact([[r.t_hits, r.t_no_hits], [r.bg_hits, r.bg_no_hits]],
                                       alternative="greater")[1]
                    for r in tables.itertuples()
                ]
                pd.DataFrame({"id": tables["id"], "p_value": p}).to_csv(
                    scratch / "output.txt", sep="\t", index=False
                )
            else:
                requests = pd.read_csv(scratch / "requests.txt", sep="\t")
                pd.DataFrame({"index": requests["index"], "p_value": 0.5}).to_csv(
                    scratch / "output.txt", sep="\t", index=False
                )
        return subprocess.CompletedProcess(command, returncode, stdout="", stderr=stderr)

    return run


class TestRScriptStatisticsProvider:
    """Tests for RScriptStatisticsProvider with a stubbed R process."""

    def test_fisher_round_trip(self, monkeypatch, tmp_path):
        calls = []
        monkeypatch.setattr(providers.subprocess, "run", _fake_rscript(calls))
        provider = RScriptStatisticsProvider(scratch_root=str(tmp_path))

        tables = [ContingencyTable("007", 8, 2, 3, 7), ContingencyTable("MA02", 0, 10, 3, 7)]
        p_values = provider.fisher_p_values(tables)

        assert p_values[0] == pytest.approx(
            stats.fisher_exact([[8, 2], [3, 7]], alternative="greater")[1]
        )
        assert p_values[1] == pytest.approx(1.0)
        assert len(calls) == 1
        assert not calls[0].exists()
        assert list(tmp_path.iterdir()) == []

    def test_ks_request_files(self, monkeypatch, tmp_path):
        calls = []
        monkeypatch.setattr(providers.subprocess, "run", _fake_rscript(calls))
        provider = RScriptStatisticsProvider(scratch_root=str(tmp_path))

        requests = [
            KSRequest("a", np.array([0.1, 0.2]), bg_values=np.array([0.5, 0.9])),
            KSRequest("b", np.array([0.3]), distribution="normal"),
        ]
        assert provider.ks_p_values(requests) == [0.5, 0.5]
        assert list(tmp_path.iterdir()) == []

    def test_failure_surfaces_diagnostics(self, monkeypatch, tmp_path):
        calls = []
        monkeypatch.setattr(
            providers.subprocess, "run",
            _fake_rscript(calls, returncode=1, stderr="Error in fisher.test"),
        )
        provider = RScriptStatisticsProvider(rscript_path="Rscript", scratch_root=str(tmp_path))

        with pytest.raises(ExternalProviderFailure) as excinfo:
            provider.fisher_p_values([ContingencyTable("c", 1, 1, 1, 1)])
        assert excinfo.value.returncode == 1
        assert "Error in fisher.test" in excinfo.value.stderr
        assert excinfo.value.command[0] == "Rscript"
        assert list(tmp_path.iterdir()) == []

    def test_missing_executable(self, tmp_path):
        provider = RScriptStatisticsProvider(
            rscript_path=str(tmp_path / "no-such-Rscript"), scratch_root=str(tmp_path)
        )
        with pytest.raises(ExternalProviderFailure):
            provider.fisher_p_values([ContingencyTable("c", 1, 1, 1, 1)])
        assert list(tmp_path.iterdir()) == []

    def test_close_removes_leftover_scratch(self, tmp_path):
        provider = RScriptStatisticsProvider(scratch_root=str(tmp_path))
        leftovers = [provider._create_scratch("fisher_"), provider._create_scratch("ks_")]
        (leftovers[0] / "tables.txt").write_text("id\n")
        assert all(directory.exists() for directory in leftovers)

        provider.close()
        assert list(tmp_path.iterdir()) == []
        provider.close()

    def test_empty_batch_does_not_start_r(self, monkeypatch):
        calls = []
        monkeypatch.setattr(providers.subprocess, "run", _fake_rscript(calls))
        provider = RScriptStatisticsProvider()
        assert provider.fisher_p_values([]) == []
        assert provider.ks_p_values([]) == []
        assert calls == []

    @pytest.mark.skipif(shutil.which("Rscript") is None, reason="Rscript not installed")
    def test_matches_scipy_with_real_r(self):
        tables = [ContingencyTable("MA0001", 8, 2, 3, 7), ContingencyTable("MA0002", 2, 8, 5, 5)]
        r_provider = RScriptStatisticsProvider()
        try:
            r_p = r_provider.fisher_p_values(tables)
        finally:
            r_provider.close()
        scipy_p = ScipyStatisticsProvider().fisher_p_values(tables)
        np.testing.assert_allclose(r_p, scipy_p, rtol=1e-6)


class TestCreateStatisticsProvider:
    """Tests for create_statistics_provider."""

    def test_default_is_scipy(self):
        assert isinstance(create_statistics_provider(), ScipyStatisticsProvider)

    def test_rscript_provider(self, tmp_path):
        config = AnalysisConfig(provider="rscript", rscript_path="/opt/R/bin/Rscript",
                                scratch_dir=str(tmp_path))
        provider = create_statistics_provider(config)
        assert isinstance(provider, RScriptStatisticsProvider)
        assert provider.rscript_path == "/opt/R/bin/Rscript"
        assert provider.scratch_root == str(tmp_path)
