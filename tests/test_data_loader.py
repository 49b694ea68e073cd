"""
Test Suite for Data Loader Module
==================================

Tests for configuration loading, dataset ingestion and missing-value filtering.
"""

import pytest
import numpy as np
import pandas as pd

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from movie_bma.data_loader import (
    load_config, load_data, drop_missing, validate_data
)
from movie_bma.exceptions import SchemaError


class TestLoadConfig:
    """Tests for load_config."""

    def test_loads_yaml(self, tmp_path):
        """Test a YAML file is parsed into a dictionary."""
        path = tmp_path / "config.yaml"
        path.write_text("model:\n  response: imdb_rating\n  n_iterations: 500\n")

        config = load_config(str(path))

        assert config['model']['response'] == 'imdb_rating'
        assert config['model']['n_iterations'] == 500

    def test_missing_file(self, tmp_path):
        """Test a missing config raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "absent.yaml"))

    def test_repository_config(self):
        """Test the shipped configuration loads and names the response."""
        config = load_config(str(Path(__file__).parent.parent / "config" / "config.yaml"))
        assert config['model']['response'] == 'imdb_rating'
        assert 'critics_score' in config['model']['predictors']


class TestLoadData:
    """Tests for load_data."""

    @pytest.fixture
    def csv_path(self, tmp_path):
        """Write a small movies CSV."""
        df = pd.DataFrame({
            'title': ['A', 'B', 'C'],
            'imdb_rating': [7.1, 6.4, 5.0],
            'runtime': ['101', '95', ''],
            'best_pic_nom': ['no', 'Yes', None],
        })
        path = tmp_path / "movies.csv"
        df.to_csv(path, index=False)
        return path

    def test_loads_csv(self, csv_path):
        """Test CSV rows and columns are read."""
        df = load_data(str(csv_path))
        assert df.shape == (3, 4)

    def test_schema_coercion(self, csv_path):
        """Test numeric and yes/no columns are coerced."""
        df = load_data(str(csv_path), schema={'runtime': 'numeric', 'best_pic_nom': 'yesno'})

        assert pd.api.types.is_numeric_dtype(df['runtime'])
        assert np.isnan(df.loc[2, 'runtime'])
        assert df['best_pic_nom'].tolist()[:2] == ['no', 'yes']
        assert pd.isna(df.loc[2, 'best_pic_nom'])

    def test_bad_yes_no(self, csv_path):
        """Test a yes/no column with other values is rejected."""
        with pytest.raises(SchemaError):
            load_data(str(csv_path), schema={'title': 'yesno'})

    def test_column_selection(self, csv_path):
        """Test requested columns are kept."""
        df = load_data(str(csv_path), columns=['title', 'imdb_rating'])
        assert list(df.columns) == ['title', 'imdb_rating']

    def test_missing_column(self, csv_path):
        """Test requesting an absent column raises SchemaError."""
        with pytest.raises(SchemaError, match="budget"):
            load_data(str(csv_path), columns=['budget'])

    def test_unsupported_format(self, tmp_path):
        """Test unknown extensions are rejected."""
        path = tmp_path / "movies.xyz"
        path.write_text("a,b\n1,2\n")
        with pytest.raises(ValueError, match="Unsupported"):
            load_data(str(path))

    def test_missing_file(self, tmp_path):
        """Test a missing data file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_data(str(tmp_path / "absent.csv"))


class TestDropMissing:
    """Tests for drop_missing."""

    @pytest.fixture
    def sample_data(self):
        return pd.DataFrame({
            'a': [1.0, np.nan, 3.0, 4.0],
            'b': ['x', 'y', None, 'z'],
            'c': [np.nan, 1.0, 1.0, 1.0],
        }, index=[10, 11, 12, 13])

    def test_only_selected_columns_count(self, sample_data):
        """Test missing values outside the subset are ignored."""
        out = drop_missing(sample_data, ['a', 'b'])
        assert list(out.index) == [10, 13]

    def test_absent_column(self, sample_data):
        """Test unknown column raises SchemaError."""
        with pytest.raises(SchemaError):
            drop_missing(sample_data, ['d'])


class TestValidateData:
    """Tests for validate_data."""

    def test_reports_issues(self):
        """Test missing values and duplicates are reported."""
        df = pd.DataFrame({'a': [1.0, 1.0, np.nan], 'b': [2.0, 2.0, 3.0]})
        is_valid, report = validate_data(df, strict=False)

        assert not is_valid
        assert any("Missing values" in issue for issue in report['issues'])
        assert any("Duplicate rows" in issue for issue in report['issues'])

    def test_strict_raises(self):
        """Test strict mode raises on issues."""
        df = pd.DataFrame({'a': [1.0, np.nan]})
        with pytest.raises(ValueError, match="validation failed"):
            validate_data(df, strict=True)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
