"""Shared pytest fixtures for TFBS enrichment tests."""
import pytest
import numpy as np

from tfbs_enrichment.data import CountsMatrix, ValuesMatrix


def build_counts(gene_hits, gene_length, cluster_ids, site_width=10):
    """
    Build a CountsMatrix from {gene_id: {cluster_id: hits}}.

    Every gene gets ``gene_length`` and every site covers ``site_width``
    nucleotides.
    """
    counts = CountsMatrix(cluster_ids=cluster_ids)
    for gene_id, hits in gene_hits.items():
        counts.set_gene_length(gene_id, gene_length)
        for cluster_id in cluster_ids:
            n = hits.get(cluster_id, 0)
            counts.set(gene_id, cluster_id, n)
            counts.set_length(gene_id, cluster_id, n * site_width)
    for cluster_id in cluster_ids:
        counts.set_cluster_width(cluster_id, site_width)
    return counts


@pytest.fixture
def detail_counts():
    """Two clusters x two genes with widths and gene lengths."""
    counts = CountsMatrix()
    counts.set_cluster_width("c1", 10)
    counts.set_cluster_width("c2", 8)
    counts.set_gene_length("g1", 500)
    counts.set_gene_length("g2", 400)
    counts.set("g1", "c1", 2)
    counts.set("g1", "c2", 0)
    counts.set("g2", "c1", 1)
    counts.set("g2", "c2", 3)
    return counts


@pytest.fixture
def fisher_counts():
    """Background/target counts giving the 8/2 vs 3/7 gene table for MA0001."""
    t_hits = {f"t{i}": {"MA0001": 1 if i < 8 else 0, "MA0002": 1 if i < 2 else 0}
              for i in range(10)}
    bg_hits = {f"b{i}": {"MA0001": 2 if i < 3 else 0, "MA0002": 1 if i < 5 else 0}
               for i in range(10)}
    clusters = ["MA0001", "MA0002"]
    return build_counts(bg_hits, 1000, clusters), build_counts(t_hits, 1000, clusters)


@pytest.fixture
def zscore_counts():
    """Nb = 1000 of 10000 background and Nt = 600 of 5000 target nucleotides."""
    bg = CountsMatrix()
    bg.set_gene_length("bg1", 10000)
    bg.set("bg1", "MA0001", 50)
    bg.set_length("bg1", "MA0001", 1000)

    t = CountsMatrix()
    t.set_gene_length("t1", 5000)
    t.set("t1", "MA0001", 30)
    t.set_length("t1", "MA0001", 600)
    return bg, t


@pytest.fixture
def ori_counts():
    """Dt = 0.002, Db = 0.001, Pt = 0.5, Pb = 0.25 for MA0001."""
    clusters = ["MA0001"]
    t = build_counts({"t1": {"MA0001": 2}, "t2": {}}, 500, clusters)
    bg = build_counts({"b1": {"MA0001": 4}, "b2": {}, "b3": {}, "b4": {}}, 1000, clusters)
    return bg, t


@pytest.fixture
def ks_values():
    """Target values shifted away from the background for MA0001 only."""
    rng = np.random.default_rng(42)
    bg = ValuesMatrix(cluster_ids=["MA0001", "MA0002"])
    t = ValuesMatrix(cluster_ids=["MA0001", "MA0002"])
    for value in rng.uniform(0, 1, 200):
        bg.add_value("bg_seq", "MA0001", value)
    for value in rng.uniform(0, 1, 200):
        bg.add_value("bg_seq", "MA0002", value)
    for value in rng.uniform(0, 0.2, 50):
        t.add_value("t_seq", "MA0001", value)
    for value in rng.uniform(0, 1, 50):
        t.add_value("t_seq", "MA0002", value)
    return bg, t
