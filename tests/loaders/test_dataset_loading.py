"""Tests for statflow.io loaders and option files."""

from __future__ import annotations

import json

import pandas as pd
import pytest
import yaml

from statflow.io import (
    columns_as_data,
    infer_variables,
    load_options,
    load_table,
    load_variable_metadata,
    merge_variables,
)
from statflow.variables import Variable


@pytest.fixture
def survey_df():
    return pd.DataFrame(
        {
            "group": ["a", "b", None, "a"],
            "score": [1.5, 2.25, None, 4.0],
            "count": [1, 2, 3, 4],
            "visit": pd.to_datetime(["2020-01-01", "2020-02-15", None, "2021-12-31"]),
        }
    )


@pytest.fixture
def survey_csv(tmp_path, survey_df):
    path = tmp_path / "survey.csv"
    survey_df.drop(columns=["visit"]).to_csv(path, index=False)
    return path


def test_load_csv_and_subset_columns(survey_csv):
    df = load_table(survey_csv)
    assert list(df.columns) == ["group", "score", "count"]

    subset = load_table(survey_csv, columns=["score"])
    assert list(subset.columns) == ["score"]


def test_load_table_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_table(tmp_path / "missing.csv")

    other = tmp_path / "data.txt"
    other.write_text("a\n1\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Cannot infer data format"):
        load_table(other)


def test_load_parquet(tmp_path, survey_df):
    pytest.importorskip("pyarrow")
    path = tmp_path / "survey.parquet"
    survey_df.to_parquet(path, index=False)

    df = load_table(path, columns=["count"])
    assert df["count"].tolist() == [1, 2, 3, 4]


def test_infer_variables_from_dtypes(survey_df):
    variables = {variable.name: variable for variable in infer_variables(survey_df)}

    assert variables["group"].type == "STRING"
    assert variables["group"].measure == "nominal"
    assert variables["score"].measure == "scale"
    assert variables["score"].decimals == 2
    assert variables["count"].decimals == 0
    assert variables["count"].column_index == 2
    assert variables["visit"].type == "DATE"


def test_infer_variables_unknown_column(survey_df):
    with pytest.raises(ValueError, match="Columns not found in data: nope"):
        infer_variables(survey_df, ["score", "nope"])


def test_columns_as_data_normalises_cells(survey_df):
    variables = infer_variables(survey_df, ["group", "score", "visit"])
    data = columns_as_data(survey_df, variables)

    assert data["group"] == ["a", "b", None, "a"]
    assert data["score"] == [1.5, 2.25, None, 4.0]
    assert data["visit"] == ["01-01-2020", "15-02-2020", None, "31-12-2021"]


def test_variable_metadata_yaml_and_json(tmp_path):
    definitions = [
        {"name": "score", "label": "Score", "columnIndex": 1, "measure": "ordinal", "decimals": 1},
        {"name": "group", "type": "string", "values": [{"value": "a", "label": "Group A"}]},
    ]
    yaml_path = tmp_path / "variables.yaml"
    yaml_path.write_text(yaml.safe_dump({"variables": definitions}), encoding="utf-8")
    json_path = tmp_path / "variables.json"
    json_path.write_text(json.dumps(definitions), encoding="utf-8")

    from_yaml = load_variable_metadata(yaml_path)
    from_json = load_variable_metadata(json_path)

    assert from_yaml == from_json
    assert from_yaml[0].label == "Score"
    assert from_yaml[0].column_index == 1
    assert from_yaml[1].type == "STRING"
    assert from_yaml[1].values[0].label == "Group A"


def test_merge_variables_prefers_declared(survey_df):
    inferred = infer_variables(survey_df, ["group", "score"])
    declared = [Variable(name="score", label="Score", measure="ordinal")]

    merged = merge_variables(inferred, declared)

    assert [variable.name for variable in merged] == ["group", "score"]
    assert merged[1].measure == "ordinal"
    assert merged[0] is inferred[0]


def test_load_options(tmp_path):
    path = tmp_path / "runs.yml"
    path.write_text("cutPoint:\n  median: true\n  mean: true\ncustom_value: 2.5\n", encoding="utf-8")

    options = load_options(path)

    assert options == {"cutPoint": {"median": True, "mean": True}, "custom_value": 2.5}


def test_load_options_requires_mapping(tmp_path):
    path = tmp_path / "options.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="Expected a mapping of options"):
        load_options(path)
    with pytest.raises(FileNotFoundError):
        load_options(tmp_path / "absent.yaml")
