"""Tests for return calculation utilities."""

from __future__ import annotations

import pytest

from portsim.analysis.returns import cagr, monthly_returns, simulated_cagr


class TestCAGR:
    """Tests for CAGR calculation."""

    def test_positive_growth(self) -> None:
        result = cagr(start_value=100.0, end_value=200.0, n_years=10.0)
        assert result == pytest.approx(0.07177, rel=1e-3)

    def test_no_growth(self) -> None:
        result = cagr(start_value=100.0, end_value=100.0, n_years=5.0)
        assert result == pytest.approx(0.0)

    def test_negative_growth(self) -> None:
        result = cagr(start_value=100.0, end_value=50.0, n_years=5.0)
        assert result < 0

    def test_fractional_years(self) -> None:
        result = cagr(start_value=100.0, end_value=110.0, n_years=0.5)
        assert result == pytest.approx(0.21)

    def test_invalid_start_value(self) -> None:
        with pytest.raises(ValueError, match="start_value must be positive"):
            cagr(start_value=0.0, end_value=100.0, n_years=5.0)

    def test_invalid_n_years(self) -> None:
        with pytest.raises(ValueError, match="n_years must be positive"):
            cagr(start_value=100.0, end_value=200.0, n_years=0.0)

    def test_negative_end_value(self) -> None:
        with pytest.raises(ValueError, match="end_value must be non-negative"):
            cagr(start_value=100.0, end_value=-50.0, n_years=5.0)


class TestSimulatedCAGR:
    """Tests for the growth rate implied by a simulation's mean outcome."""

    def test_doubling_over_ten_years(self) -> None:
        result = simulated_cagr(200.0, 100.0, periods=120)
        assert result == pytest.approx(2 ** 0.1 - 1)

    def test_total_loss(self) -> None:
        assert simulated_cagr(0.0, 100.0, periods=60) == pytest.approx(-1.0)

    def test_negative_mean_floors_at_total_loss(self) -> None:
        assert simulated_cagr(-5.0, 100.0, periods=60) == -1.0

    def test_annual_periods(self) -> None:
        result = simulated_cagr(121.0, 100.0, periods=2, periods_per_year=1)
        assert result == pytest.approx(0.10)

    @pytest.mark.parametrize(
        ("initial", "periods"),
        [(0.0, 12), (-1.0, 12), (100.0, 0)],
    )
    def test_degenerate_inputs_return_zero(self, initial: float, periods: int) -> None:
        assert simulated_cagr(150.0, initial, periods=periods) == 0.0


class TestMonthlyReturns:
    """Tests for deriving monthly returns from price records."""

    def test_sequential_returns(self) -> None:
        prices = [
            {"date": "2024-01-31", "close": 100.0},
            {"date": "2024-02-29", "close": 110.0},
            {"date": "2024-03-28", "close": 99.0},
        ]
        result = monthly_returns(prices)
        assert result == pytest.approx([0.10, -0.10])

    def test_unsorted_input(self) -> None:
        prices = [
            {"date": "2024-03-28", "close": 99.0},
            {"date": "2024-01-31", "close": 100.0},
            {"date": "2024-02-29", "close": 110.0},
        ]
        assert monthly_returns(prices) == pytest.approx([0.10, -0.10])

    def test_last_close_in_month_wins(self) -> None:
        prices = [
            {"date": "2024-01-02", "close": 50.0},
            {"date": "2024-01-31", "close": 100.0},
            {"date": "2024-02-01", "close": 80.0},
            {"date": "2024-02-29", "close": 120.0},
        ]
        assert monthly_returns(prices) == pytest.approx([0.20])

    def test_zero_previous_close(self) -> None:
        prices = [
            {"date": "2024-01-31", "close": 0.0},
            {"date": "2024-02-29", "close": 10.0},
            {"date": "2024-03-28", "close": 12.0},
        ]
        assert monthly_returns(prices) == pytest.approx([0.0, 0.2])

    def test_single_month_gives_no_returns(self) -> None:
        assert monthly_returns([{"date": "2024-01-31", "close": 100.0}]) == []

    def test_empty_input(self) -> None:
        assert monthly_returns([]) == []

    def test_missing_key_raises(self) -> None:
        with pytest.raises(ValueError, match="'date' and 'close'"):
            monthly_returns([{"date": "2024-01-31"}])
