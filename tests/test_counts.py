"""Tests for counts and values storage."""
import numpy as np
import pandas as pd
import pytest

from tfbs_enrichment.data import CountsMatrix, ValuesMatrix
from tfbs_enrichment.exceptions import ValidationError


class TestCountsMatrix:
    """Tests for CountsMatrix."""

    def test_auto_registration_order(self):
        counts = CountsMatrix()
        counts.set("g2", "c2", 1)
        counts.set("g1", "c1", 0)
        counts.set_length("g3", "c2", 5)
        assert counts.gene_ids == ("g2", "g1", "g3")
        assert counts.cluster_ids == ("c2", "c1")
        assert counts.num_genes() == 3

    def test_unwritten_values_are_zero(self, detail_counts):
        assert detail_counts.length("g1", "c1") == 0
        assert detail_counts.count("missing", "c1") == 0

    def test_cluster_aggregates(self, detail_counts):
        detail_counts.set_length("g1", "c1", 20)
        detail_counts.set_length("g2", "c1", 10)
        detail_counts.set_length("g1", "c2", 99)
        assert detail_counts.cluster_count("c1") == 3
        assert detail_counts.cluster_gene_count("c1") == 2
        # g1 has no c2 hits so its c2 length is not counted
        assert detail_counts.cluster_length("c2") == 0
        assert detail_counts.cluster_gene_count("c2") == 1
        assert detail_counts.cluster_gene_ids("c2") == ["g2"]

    def test_resetting_count_to_zero(self, detail_counts):
        detail_counts.set("g2", "c2", 0)
        assert detail_counts.cluster_gene_count("c2") == 0
        assert detail_counts.cluster_count("c2") == 0

    def test_negative_values_rejected(self):
        counts = CountsMatrix()
        with pytest.raises(ValidationError):
            counts.set("g1", "c1", -1)
        with pytest.raises(ValidationError):
            counts.set_length("g1", "c1", -5)

    def test_cluster_width_conflict(self, detail_counts):
        detail_counts.set_cluster_width("c1", 10)
        with pytest.raises(ValidationError):
            detail_counts.set_cluster_width("c1", 12)

    def test_total_length(self, detail_counts):
        assert detail_counts.total_length() == 900

    def test_subset_is_independent(self, detail_counts):
        subset = detail_counts.subset(gene_ids=["g1"], cluster_ids=["c1", "c2"])
        subset.set("g1", "c1", 100)
        subset.set("g9", "c1", 1)
        assert detail_counts.count("g1", "c1") == 2
        assert not detail_counts.gene_exists("g9")
        assert subset.cluster_width("c2") == 8
        assert subset.gene_length("g1") == 500

    def test_subset_records_missing_ids(self, detail_counts):
        subset = detail_counts.subset(gene_ids=["g1", "gX"], cluster_ids=["cX", "c2"])
        assert subset.gene_ids == ("g1",)
        assert subset.cluster_ids == ("c2",)
        assert subset.missing_gene_ids == ["gX"]
        assert subset.missing_cluster_ids == ["cX"]

    def test_subset_by_range(self):
        counts = CountsMatrix(gene_ids=["a", "b", "c", "d"], cluster_ids=["x"])
        subset = counts.subset(gene_start="b", gene_end="c")
        assert subset.gene_ids == ("b", "c")

    def test_dataframe_round_trip(self, detail_counts):
        df = detail_counts.to_dataframe()
        assert df.loc["g2", "c2"] == 3
        rebuilt = CountsMatrix.from_dataframe(
            df, gene_lengths=pd.Series({"g1": 500, "g2": 400})
        )
        assert rebuilt.count("g1", "c1") == 2
        assert rebuilt.total_length() == 900


class TestValuesMatrix:
    """Tests for ValuesMatrix."""

    def test_add_and_aggregate(self):
        values = ValuesMatrix()
        assert values.add_value("s1", "c1", 0.5) == 1
        assert values.add_value("s1", "c1", 0.5) == 2
        values.add_value("s2", "c1", 1.5)
        np.testing.assert_array_equal(values.all_cluster_values("c1"), [0.5, 0.5, 1.5])
        assert values.num_cluster_values("c1") == 3
        assert values.cluster_seq_ids("c1") == ["s1", "s2"]

    def test_values_are_copied(self):
        values = ValuesMatrix()
        source = [1.0, 2.0]
        values.set_values("s1", "c1", source)
        source.append(3.0)
        returned = values.values("s1", "c1")
        returned.append(4.0)
        assert values.values("s1", "c1") == [1.0, 2.0]

    def test_subset_is_independent(self):
        values = ValuesMatrix()
        values.set_values("s1", "c1", [1.0])
        values.set_values("s2", "c2", [2.0])
        subset = values.subset(seq_ids=["s1", "s3"])
        subset.add_value("s1", "c1", 9.0)
        assert values.values("s1", "c1") == [1.0]
        assert subset.seq_ids == ("s1",)
        assert subset.missing_seq_ids == ["s3"]

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "abc", None])
    def test_rejects_non_finite_values(self, bad):
        values = ValuesMatrix()
        with pytest.raises(ValidationError):
            values.add_value("s1", "c1", bad)
        with pytest.raises(ValidationError):
            values.set_values("s1", "c1", [0.5, bad])
        assert not values.seq_exists("s1")
        assert values.num_clusters() == 0

    def test_accepts_numpy_scalars(self):
        values = ValuesMatrix()
        values.set_values("s1", "c1", np.array([0.25, 0.75]))
        assert values.values("s1", "c1") == [0.25, 0.75]
