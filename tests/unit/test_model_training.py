import numpy as np
import pytest

from cv_strategies import RandomFolds, SpatialFolds
from model_training import FoldMetrics, build_model, evaluate_fold, run_cv, summarize_cv

FAST = {"n_trees": 25}


def test_metric_bounds(synthetic_obs):
    idx = np.arange(len(synthetic_obs))
    m = evaluate_fold(synthetic_obs, idx[:240], idx[240:], params=FAST)
    assert isinstance(m, FoldMetrics)
    assert m.rmse >= 0
    assert m.rsq <= 1
    assert (m.n_train, m.n_test) == (240, 60)


def test_signal_is_learned_under_random_cv(synthetic_obs):
    res = run_cv(synthetic_obs, RandomFolds().split(synthetic_obs), params=FAST)
    assert res["rsq"].mean() > 0.3


def test_same_fold_same_seed_is_deterministic(synthetic_obs):
    tr, te = RandomFolds().split(synthetic_obs)[0]
    a = evaluate_fold(synthetic_obs, tr, te, params=FAST)
    b = evaluate_fold(synthetic_obs, tr, te, params=FAST)
    assert a == b


def test_toy_spatial_cv_end_to_end(toy_obs):
    res = run_cv(toy_obs, SpatialFolds().split(toy_obs), params=FAST)
    assert len(res) == 5
    assert res["fold"].tolist() == [1, 2, 3, 4, 5]
    assert (res["n_train"] == 8).all()
    assert (res["n_test"] == 2).all()
    assert (res["rmse"] >= 0).all()
    assert (res["rsq"] <= 1).all()


def test_empty_train_set_fails(toy_obs):
    with pytest.raises(ValueError, match="training set is empty"):
        evaluate_fold(toy_obs, [], [0, 1], params=FAST)


def test_overlapping_sets_fail(toy_obs):
    with pytest.raises(ValueError, match="overlap"):
        evaluate_fold(toy_obs, [0, 1, 2, 3], [3, 4], params=FAST)


def test_missing_values_fail(toy_obs):
    toy_obs.loc[5, "map"] = np.nan
    with pytest.raises(ValueError, match="missing values"):
        evaluate_fold(toy_obs, list(range(8)), [8, 9], params=FAST)


def test_missing_column_fails(toy_obs):
    with pytest.raises(ValueError, match="columns missing"):
        evaluate_fold(toy_obs.drop(columns=["mai"]), range(8), [8, 9], params=FAST)


def test_species_unseen_in_training_is_encoded_as_zeros(toy_obs):
    # Acacia t (row 8) never appears in training rows 0..7
    m = evaluate_fold(toy_obs, range(8), [8, 9], params=FAST)
    assert np.isfinite(m.rmse)


def test_mtry_capped_at_feature_count():
    model = build_model(2, {"mtry": 3})
    assert model.max_features == 2
    assert model.criterion == "squared_error"
    assert model.min_samples_leaf == 12


def test_summarize_cv(synthetic_obs):
    res = {
        "random": run_cv(synthetic_obs, RandomFolds().split(synthetic_obs), params=FAST),
        "spatial": run_cv(synthetic_obs, SpatialFolds().split(synthetic_obs), params=FAST),
    }
    summary = summarize_cv(res)
    assert summary["strategy"].tolist() == ["random", "spatial"]
    assert summary["folds"].tolist() == [5, 5]
    assert summary.loc[0, "mean_rsq"] == pytest.approx(res["random"]["rsq"].mean())
