"""Tests for configuration, exceptions and the end-to-end pipeline."""
import pytest

from conftest import build_counts
from tfbs_enrichment import AnalysisConfig, run_cluster_analysis, run_ori_analysis
from tfbs_enrichment.analysis import (FisherAnalyzer, ZscoreAnalyzer, report_cluster_results,
                                      write_cluster_results)
from tfbs_enrichment.exceptions import (
    ClusterMismatchError,
    ExternalProviderFailure,
    InvalidParameterError,
    TFBSEnrichmentError,
    ValidationError,
)
from tfbs_enrichment.results import read_fisher_results
from tfbs_enrichment.stats.providers import ScipyStatisticsProvider


class TestAnalysisConfig:
    """Tests for AnalysisConfig."""

    def test_default_values(self):
        config = AnalysisConfig()
        assert config.provider == "scipy"
        assert config.ks_distribution == "uniform"
        assert config.correction_method == "fdr_bh"
        assert config.num_results == "all"

    def test_distribution_alias_normalized(self):
        assert AnalysisConfig(ks_distribution="pnorm").ks_distribution == "normal"

    @pytest.mark.parametrize("kwargs", [
        {"provider": "matlab"},
        {"ks_distribution": "cauchy"},
        {"correction_method": "magic"},
        {"num_results": -3},
        {"num_results": "top"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            AnalysisConfig(**kwargs)


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(ValidationError, TFBSEnrichmentError)
        assert issubclass(InvalidParameterError, ValidationError)
        assert issubclass(ExternalProviderFailure, TFBSEnrichmentError)

    def test_cluster_mismatch_message(self):
        error = ClusterMismatchError(["a", "b"], ["a"])
        assert "background has 2 clusters, target has 1" in str(error)

    def test_provider_failure_message(self):
        error = ExternalProviderFailure("error running R command", command=["Rscript", "x.R"],
                                        returncode=2, stderr="boom\n")
        message = str(error)
        assert "Rscript x.R" in message
        assert "exit status: 2" in message
        assert message.endswith("boom")


class CountingProvider(ScipyStatisticsProvider):

    def __init__(self):
        self.calls = 0

    def fisher_p_values(self, tables):
        self.calls += 1
        return super().fisher_p_values(tables)

    def ks_p_values(self, requests):
        self.calls += 1
        return super().ks_p_values(requests)


class TestPipeline:
    """Tests for run_cluster_analysis and run_ori_analysis."""

    def test_fisher_and_zscore_merged(self, fisher_counts):
        bg, t = fisher_counts
        combined = run_cluster_analysis(bg, t)
        result = combined.get_result("MA0001")
        assert result.t_gene_hits == 8
        assert result.zscore.is_defined
        assert result.ks_p_value.is_undefined
        assert set(combined.params["fisher_p_adjusted"]) == {"MA0001", "MA0002"}

    def test_one_sample_ks(self, fisher_counts, ks_values):
        bg, t = fisher_counts
        _, t_values = ks_values
        combined = run_cluster_analysis(bg, t, t_values=t_values,
                                        config=AnalysisConfig(ks_distribution="uniform"))
        assert combined.get_result("MA0001").ks_bg_distribution == "uniform"

    def test_two_sample_ks_with_shared_provider(self, fisher_counts, ks_values):
        bg, t = fisher_counts
        bg_values, t_values = ks_values
        provider = CountingProvider()
        combined = run_cluster_analysis(bg, t, bg_values=bg_values, t_values=t_values,
                                        provider=provider)
        assert provider.calls == 2
        assert combined.get_result("MA0002").ks_bg_distribution == "data"

    def test_validation_error_propagates(self, fisher_counts):
        bg, t = fisher_counts
        with pytest.raises(ClusterMismatchError):
            run_cluster_analysis(bg, t.subset(cluster_ids=["MA0001"]))

    def test_ori(self, ori_counts):
        results = run_ori_analysis(*ori_counts)
        assert results.get_result("MA0001").ori.value == pytest.approx(4.0)


@pytest.fixture
def reporting_counts():
    """c1 hits three target genes, c2 a single one and c3 none."""
    clusters = ["c1", "c2", "c3"]
    t = build_counts({"t1": {"c1": 2, "c2": 3}, "t2": {"c1": 1}, "t3": {"c1": 1}, "t4": {}},
                     1000, clusters)
    bg = build_counts({f"b{i}": {"c1": 1 if i < 2 else 0, "c2": 1 if i < 4 else 0, "c3": 1}
                       for i in range(8)}, 1000, clusters)
    return bg, t


class TestReporting:
    """Tests for report_cluster_results and write_cluster_results."""

    def test_all_results_by_default(self, reporting_counts):
        combined = run_cluster_analysis(*reporting_counts)
        reported = report_cluster_results(combined)
        assert {r.id for r in reported} == {"c1", "c2", "c3"}
        zscores = [r.zscore.value for r in reported]
        assert zscores == sorted(zscores, reverse=True)

    def test_single_hits_excluded(self, reporting_counts):
        config = AnalysisConfig(exclude_single_hits=True)
        combined = run_cluster_analysis(*reporting_counts, config=config)
        assert [r.id for r in report_cluster_results(combined, config)] == ["c1"]

    def test_num_results_bound(self, reporting_counts):
        config = AnalysisConfig(num_results=2)
        combined = run_cluster_analysis(*reporting_counts, config=config)
        reported = report_cluster_results(combined, config, sort_by="t_gene_hits")
        assert [r.id for r in reported] == ["c1", "c2"]

    def test_cutoffs_passed_through(self, reporting_counts):
        combined = run_cluster_analysis(*reporting_counts)
        reported = report_cluster_results(combined, fisher_cutoff=0.5)
        assert all(r.fisher_p_value.value <= 0.5 for r in reported)
        assert "c3" not in {r.id for r in reported}

    def test_written_results_honour_config(self, reporting_counts, tmp_path):
        bg, t = reporting_counts
        fisher_set = FisherAnalyzer().calculate(bg, t)
        zscore_set = ZscoreAnalyzer().calculate(bg, t)

        written = write_cluster_results(str(tmp_path / "out"), fisher_set=fisher_set,
                                        zscore_set=zscore_set,
                                        config=AnalysisConfig(exclude_single_hits=True))
        assert sorted(written) == ["fisher", "zscore"]
        assert read_fisher_results(written["fisher"]).ids() == ["c1"]

        written = write_cluster_results(str(tmp_path / "all"), fisher_set=fisher_set)
        assert read_fisher_results(written["fisher"]).ids() == ["c1", "c2"]
