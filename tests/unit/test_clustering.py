import numpy as np
import pytest

from clustering import cluster_summary, env_clusters, geo_clusters, kmeans_labels, standardize
from config import CLIMATE_COLS


def test_standardize_zero_mean_unit_variance(synthetic_obs):
    scaled = standardize(synthetic_obs, CLIMATE_COLS)
    assert np.allclose(scaled.mean().to_numpy(), 0.0, atol=1e-9)
    assert np.allclose(scaled.std(ddof=0).to_numpy(), 1.0, atol=1e-9)
    assert list(scaled.index) == list(synthetic_obs.index)


def test_geo_clusters_recover_toy_pairs(toy_obs):
    labels = geo_clusters(toy_obs)
    assert sorted(np.unique(labels)) == [1, 2, 3, 4, 5]
    _, counts = np.unique(labels, return_counts=True)
    assert counts.tolist() == [2, 2, 2, 2, 2]
    for i in range(0, 10, 2):
        assert labels[i] == labels[i + 1]


def test_five_nonempty_clusters_on_synthetic_data(synthetic_obs):
    for labels in (geo_clusters(synthetic_obs), env_clusters(synthetic_obs)):
        uniq, counts = np.unique(labels, return_counts=True)
        assert uniq.tolist() == [1, 2, 3, 4, 5]
        assert counts.min() > 0
        assert counts.sum() == len(synthetic_obs)


def test_clusters_reproducible_under_seed(synthetic_obs):
    assert np.array_equal(env_clusters(synthetic_obs), env_clusters(synthetic_obs))


def test_kmeans_rejects_too_few_distinct_points():
    X = np.repeat([[0.0, 0.0], [5.0, 5.0], [9.0, 1.0]], 4, axis=0)
    with pytest.raises(ValueError, match="non-empty clusters"):
        kmeans_labels(X, k=5)


def test_kmeans_rejects_fewer_rows_than_clusters():
    with pytest.raises(ValueError):
        kmeans_labels(np.zeros((3, 2)), k=5)


def test_cluster_summary_counts(toy_obs):
    toy_obs["geo_cluster"] = geo_clusters(toy_obs)
    summary = cluster_summary(toy_obs, "geo_cluster")
    assert summary["n"].sum() == len(toy_obs)
    assert summary["cluster"].tolist() == [1, 2, 3, 4, 5]
    assert (summary["n_species"] >= 1).all()
