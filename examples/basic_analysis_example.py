#!/usr/bin/env python3
"""
Basic Analysis Example for TFBS Cluster Enrichment

This example demonstrates how to use the tfbs_enrichment package to:
1. Build synthetic target and background counts
2. Run the Fisher, Z-score and KS tests and merge the results
3. Compute the over-representation index
4. Write the results in the exchange formats
"""

import logging
import os
import sys
import tempfile

import numpy as np

# Add the package to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tfbs_enrichment import AnalysisConfig, CountsMatrix, ValuesMatrix, run_cluster_analysis
from tfbs_enrichment.analysis import (FisherAnalyzer, ZscoreAnalyzer, report_cluster_results,
                                      run_ori_analysis, write_cluster_results)
from tfbs_enrichment.data import write_counts

SITE_WIDTH = 12


def create_sample_counts(n_genes, gene_length, cluster_rates, rng, prefix):
    """Simulate per-gene site counts with Poisson-distributed hits."""
    counts = CountsMatrix()
    for g in range(n_genes):
        gene_id = f"{prefix}{g:05d}"
        counts.set_gene_length(gene_id, gene_length)
        for cluster_id, rate in cluster_rates.items():
            hits = int(rng.poisson(rate))
            counts.set(gene_id, cluster_id, hits)
            counts.set_length(gene_id, cluster_id, hits * SITE_WIDTH)
    for cluster_id in cluster_rates:
        counts.set_cluster_width(cluster_id, SITE_WIDTH)
    return counts


def create_sample_values(counts, rng, spread):
    """Simulate distances of each site from a peak summit."""
    values = ValuesMatrix(cluster_ids=counts.cluster_ids)
    for gene_id in counts.gene_ids:
        for cluster_id in counts.cluster_ids:
            for _ in range(counts.count(gene_id, cluster_id)):
                values.add_value(gene_id, cluster_id, float(rng.uniform(0, spread)))
    return values


def main():
    """Run basic analysis example."""
    logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")
    rng = np.random.default_rng(42)

    print("=== TFBS Cluster Enrichment Example ===")
    print()

    # Step 1: Generate synthetic counts
    print("1. Generating synthetic counts...")
    bg_rates = {'MA0001': 0.5, 'MA0002': 0.5, 'MA0003': 0.2, 'MA0004': 1.0}
    t_rates = {'MA0001': 2.0, 'MA0002': 0.5, 'MA0003': 0.8, 'MA0004': 1.0}
    bg_counts = create_sample_counts(2000, 5000, bg_rates, rng, 'BG')
    t_counts = create_sample_counts(100, 5000, t_rates, rng, 'T')
    print(f"   Background: {bg_counts}")
    print(f"   Target:     {t_counts}")
    print()

    # Step 2: Combined analysis
    print("2. Running Fisher, Z-score and KS tests...")
    config = AnalysisConfig(provider='scipy', ks_distribution='uniform', num_results=10)
    t_values = create_sample_values(t_counts, rng, spread=1.0)
    combined = run_cluster_analysis(bg_counts, t_counts, t_values=t_values, config=config)

    print(f"   {'Cluster':<10} {'Z-score':>10} {'Fisher p':>12} {'KS p':>12}")
    for result in report_cluster_results(combined, config):
        print(f"   {result.id:<10} {result.zscore:>10.3f} "
              f"{result.fisher_p_value:>12.4g} {result.ks_p_value:>12.4g}")
    print()

    significant = combined.get_list(zscore_cutoff=10, fisher_cutoff=0.01)
    print(f"   Clusters with Z >= 10 and Fisher p <= 0.01: {[r.id for r in significant]}")
    print(f"   FDR-adjusted Fisher p-values: {combined.params['fisher_p_adjusted']}")
    print()

    # Step 3: Over-representation index
    print("3. Computing over-representation index...")
    ori_results = run_ori_analysis(bg_counts, t_counts)
    for result in ori_results.get_list(sort_by='ori', reverse=True):
        print(f"   {result.id:<10} ORI = {result.ori:.3f}")
    print()

    # Step 4: Write results
    print("4. Writing results...")
    output_dir = tempfile.mkdtemp(prefix='tfbs_enrichment_example_')
    write_counts(t_counts, os.path.join(output_dir, 'target.counts'))

    with FisherAnalyzer(config=config) as fisher:
        fisher_results = fisher.calculate(bg_counts, t_counts)
    zscore_results = ZscoreAnalyzer().calculate(bg_counts, t_counts)

    written = write_cluster_results(output_dir, fisher_set=fisher_results,
                                    zscore_set=zscore_results, ori_set=ori_results,
                                    config=config)
    print(f"   Results written: {sorted(written)} in {output_dir}")
    print()

    print("=== Example completed successfully! ===")


if __name__ == "__main__":
    main()
