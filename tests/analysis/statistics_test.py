"""Tests for statistical analysis utilities."""

from __future__ import annotations

import numpy as np
import pytest

from portsim.analysis.statistics import (
    SummaryStats,
    percentile_bands,
    percentile_rank,
    sample_mean_std,
    summarize_final_values,
)
from portsim.errors import ValidationError


class TestSummarizeFinalValues:
    """Tests for final-value summary statistics."""

    def test_odd_count(self) -> None:
        result = summarize_final_values([10.0, 20.0, 30.0, 40.0, 50.0])
        assert result == SummaryStats(mean=30.0, median=30.0, min=10.0, max=50.0)

    def test_even_count_averages_middle_pair(self) -> None:
        result = summarize_final_values([40.0, 10.0, 30.0, 20.0])
        assert result.median == 25.0
        assert result.min == 10.0
        assert result.max == 40.0

    def test_single_value(self) -> None:
        result = summarize_final_values([7.5])
        assert result == SummaryStats(mean=7.5, median=7.5, min=7.5, max=7.5)

    def test_depleted_zeros_included(self) -> None:
        result = summarize_final_values([0.0, 0.0, 90.0])
        assert result.min == 0.0
        assert result.median == 0.0
        assert result.mean == pytest.approx(30.0)

    def test_input_not_reordered(self) -> None:
        values = np.array([3.0, 1.0, 2.0])
        summarize_final_values(values)
        np.testing.assert_array_equal(values, [3.0, 1.0, 2.0])

    def test_mean_within_bounds(self) -> None:
        values = np.full(1_001, 0.1)
        result = summarize_final_values(values)
        assert result.min <= result.mean <= result.max

    def test_empty_raises(self) -> None:
        with pytest.raises(ValidationError, match="empty"):
            summarize_final_values([])

    def test_to_dict(self) -> None:
        result = summarize_final_values([1.0, 3.0])
        assert result.to_dict() == {"mean": 2.0, "median": 2.0, "min": 1.0, "max": 3.0}


class TestSampleMeanStd:
    """Tests for moment estimation."""

    def test_sample_denominator(self) -> None:
        mean, std = sample_mean_std([1.0, 2.0, 3.0, 4.0])
        assert mean == pytest.approx(2.5)
        assert std == pytest.approx(np.sqrt(5.0 / 3.0))

    def test_single_value_has_zero_std(self) -> None:
        assert sample_mean_std([0.04]) == (pytest.approx(0.04), 0.0)

    def test_empty_raises(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            sample_mean_std([])


class TestPercentileBands:
    """Tests for per-period percentile paths."""

    def test_default_levels(self) -> None:
        paths = np.tile(np.arange(1.0, 101.0).reshape(-1, 1), (1, 3))
        bands = percentile_bands(paths)
        assert list(bands) == [5, 25, 50, 75, 95]
        np.testing.assert_allclose(bands[50], np.full(3, 50.5))

    def test_custom_levels(self) -> None:
        paths = np.array([[1.0, 2.0], [3.0, 6.0]])
        bands = percentile_bands(paths, levels=(0, 100))
        np.testing.assert_array_equal(bands[0], [1.0, 2.0])
        np.testing.assert_array_equal(bands[100], [3.0, 6.0])

    def test_bands_are_ordered(self, reproducible_rng: np.random.Generator) -> None:
        paths = reproducible_rng.lognormal(size=(500, 12))
        bands = percentile_bands(paths)
        assert np.all(bands[5] <= bands[25])
        assert np.all(bands[75] <= bands[95])

    def test_rejects_one_dimensional(self) -> None:
        with pytest.raises(ValidationError, match="2-D"):
            percentile_bands(np.array([1.0, 2.0]))

    def test_rejects_out_of_range_level(self) -> None:
        with pytest.raises(ValidationError, match=r"\[0, 100\]"):
            percentile_bands(np.ones((2, 2)), levels=(101,))


class TestPercentileRank:
    """Tests for percentile rank calculation."""

    def test_median_value(self) -> None:
        values = np.arange(1.0, 101.0)
        result = percentile_rank(values, target=50.0)
        assert result == pytest.approx(50.0, abs=1.0)

    def test_extreme_value(self) -> None:
        values = np.arange(1.0, 101.0)
        result = percentile_rank(values, target=100.0)
        assert result == pytest.approx(100.0, abs=1.0)

    def test_below_minimum(self) -> None:
        values = np.arange(10.0, 21.0)
        result = percentile_rank(values, target=5.0)
        assert result == pytest.approx(0.0, abs=1.0)

    def test_empty_raises(self) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            percentile_rank([], target=1.0)
