import pytest

from config import ROW_ID_COL
from data_loading import load_data


def test_load_data_assigns_row_ids(tmp_path, toy_obs):
    path = tmp_path / "leafn.csv"
    toy_obs.drop(columns=[ROW_ID_COL]).to_csv(path, index=False)
    df = load_data(str(path), use_cache=False)
    assert len(df) == len(toy_obs)
    assert df[ROW_ID_COL].tolist() == list(range(len(toy_obs)))


def test_load_data_propagates_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_data(str(tmp_path / "nope.csv"), use_cache=False)
