"""Tests for the counts and values exchange formats."""
import io

import pytest

from tfbs_enrichment.data import read_counts, read_values, write_counts, write_values, ValuesMatrix
from tfbs_enrichment.exceptions import FileFormatError, ValidationError


class TestDetailFormat:
    """Tests for the detail counts format."""

    def test_round_trip(self, detail_counts, tmp_path):
        path = tmp_path / "counts.txt"
        write_counts(detail_counts, path)
        counts = read_counts(path)

        assert counts.cluster_ids == ("c1", "c2")
        assert counts.gene_ids == ("g1", "g2")
        assert counts.cluster_width("c1") == 10
        assert counts.cluster_width("c2") == 8
        assert counts.gene_length("g1") == 500
        assert counts.gene_length("g2") == 400
        for gene_id in ("g1", "g2"):
            for cluster_id in ("c1", "c2"):
                assert counts.count(gene_id, cluster_id) == detail_counts.count(gene_id, cluster_id)

    def test_written_layout(self, detail_counts):
        buffer = io.StringIO()
        write_counts(detail_counts, buffer)
        lines = buffer.getvalue().splitlines()
        assert lines[0] == ">TFBS"
        assert lines[3] == ">Genes"
        assert lines[6] == ">Counts"
        assert lines[7:] == ["2\t0", "1\t3"]

    def test_count_row_length_mismatch(self):
        text = ">TFBS\nc1 10\nc2 8\n>Genes\ng1 500\n>Counts\n1\n"
        with pytest.raises(FileFormatError, match="does not match"):
            read_counts(io.StringIO(text))

    def test_counts_before_sections(self):
        with pytest.raises(FileFormatError):
            read_counts(io.StringIO(">Counts\n1\t2\n"))

    def test_non_integer_count(self):
        text = ">TFBS\nc1 10\n>Genes\ng1 500\n>Counts\nx\n"
        with pytest.raises(FileFormatError) as excinfo:
            read_counts(io.StringIO(text))
        assert excinfo.value.line_number == 6

    def test_summary_formats_are_write_only(self, detail_counts):
        with pytest.raises(ValidationError):
            read_counts(io.StringIO(""), format="fisher")


class TestSummaryFormats:
    """Tests for the fisher and zscore count summaries."""

    def test_fisher_format(self, detail_counts):
        buffer = io.StringIO()
        write_counts(detail_counts, buffer, format="fisher")
        assert buffer.getvalue().splitlines() == ["c1\t2\t0", "c2\t1\t1"]

    def test_zscore_format(self, detail_counts):
        buffer = io.StringIO()
        write_counts(detail_counts, buffer, format="zscore")
        assert buffer.getvalue().splitlines() == ["c1\t10\t900\t3", "c2\t8\t900\t3"]

    def test_unknown_format(self, detail_counts):
        with pytest.raises(ValidationError):
            write_counts(detail_counts, io.StringIO(), format="xml")


class TestValuesFormat:
    """Tests for the values format."""

    def test_round_trip(self, tmp_path):
        values = ValuesMatrix()
        values.set_values("s1", "c1", [0.1, 0.25])
        values.set_values("s2", "c2", [3.0])
        path = tmp_path / "values.txt"
        assert write_values(values, path) == 3

        read_back = read_values(path)
        assert read_back.seq_ids == ("all",)
        assert read_back.values("all", "c1") == [0.1, 0.25]
        assert read_back.values("all", "c2") == [3.0]

    def test_malformed_row(self):
        with pytest.raises(FileFormatError):
            read_values(io.StringIO("c1\tabc\n"))

    def test_non_finite_value(self):
        with pytest.raises(FileFormatError) as excinfo:
            read_values(io.StringIO("c1\t0.5\nc1\tnan\n"))
        assert excinfo.value.line_number == 2
