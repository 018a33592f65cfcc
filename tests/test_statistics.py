"""Tests for stockdash.analysis.statistics -- returns, expected returns, covariance, weights."""

import numpy as np
import pytest

from stockdash.analysis.statistics import (
    DEFAULT_EXPECTED_RETURN,
    FALLBACK_COVARIANCE,
    FALLBACK_VARIANCE,
    TRADING_DAYS,
    InvalidWeightsError,
    calculate_correlation_matrix,
    calculate_covariance,
    calculate_covariance_matrix,
    calculate_expected_returns,
    calculate_returns,
    check_weights,
    ensure_positive_definite,
    validate_weights,
)


# ---------------------------------------------------------------------------
# Tests for calculate_returns
# ---------------------------------------------------------------------------

class TestCalculateReturns:

    def test_simple_returns(self):
        assert calculate_returns([100.0, 110.0, 99.0]) == pytest.approx([0.1, -0.1])

    def test_missing_prices_are_skipped(self):
        assert calculate_returns([100.0, None, 110.0]) == pytest.approx([0.1])

    def test_zero_price_return_dropped(self):
        # 0 -> 10 is infinite and dropped; 10 -> 20 is kept
        assert calculate_returns([0.0, 10.0, 20.0]) == pytest.approx([1.0])

    def test_single_price_gives_no_returns(self):
        assert calculate_returns([100.0]) == []

    def test_accepts_series(self, sample_prices):
        returns = calculate_returns(sample_prices)
        assert len(returns) == len(sample_prices) - 1
        assert all(isinstance(r, float) for r in returns)


# ---------------------------------------------------------------------------
# Tests for calculate_expected_returns
# ---------------------------------------------------------------------------

class TestExpectedReturns:

    def test_annualizes_mean(self):
        result = calculate_expected_returns({"A": [0.001] * 10})
        assert result[0] == pytest.approx(0.001 * TRADING_DAYS)

    def test_empty_series_uses_default(self):
        assert calculate_expected_returns({"A": []}) == [DEFAULT_EXPECTED_RETURN]

    def test_clamped_to_upper_bound(self):
        assert calculate_expected_returns({"A": [0.01] * 5}) == [0.5]

    def test_clamped_to_lower_bound(self):
        assert calculate_expected_returns({"A": [-0.01] * 5}) == [-0.5]

    def test_preserves_mapping_order(self):
        data = {"B": [0.0002] * 4, "A": [], "C": [0.0004] * 4}
        result = calculate_expected_returns(data)
        assert result == pytest.approx([0.0504, 0.08, 0.1008])

    def test_non_finite_returns_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            calculate_expected_returns({"A": [0.01, float("nan")]})
        with pytest.raises(ValueError, match="finite"):
            calculate_expected_returns({"A": [0.01, float("inf")]})


# ---------------------------------------------------------------------------
# Tests for covariance
# ---------------------------------------------------------------------------

class TestCovariance:

    def test_unbiased_estimator(self):
        a = [0.01, -0.02, 0.03, 0.00, 0.015]
        b = [0.02, -0.01, 0.01, 0.005, 0.0]
        expected = np.cov(a, b, ddof=1)[0, 1]
        assert calculate_covariance(a, b) == pytest.approx(expected)

    def test_tail_alignment(self):
        """Longer series is truncated to its most recent observations."""
        long = [9.0, 9.0, 1.0, 2.0, 3.0]
        short = [2.0, 4.0, 6.0]
        assert calculate_covariance(long, short) == pytest.approx(
            calculate_covariance([1.0, 2.0, 3.0], short)
        )
        assert calculate_covariance(long, short) == pytest.approx(2.0)

    def test_fewer_than_two_points_is_zero(self):
        assert calculate_covariance([0.01], [0.02, 0.03]) == 0.0
        assert calculate_covariance([], []) == 0.0

    def test_non_finite_returns_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            calculate_covariance([0.01, float("nan"), 0.02], [0.0, 0.01, 0.02])


class TestCovarianceMatrix:

    def test_matches_numpy_for_equal_lengths(self, returns_by_symbol):
        matrix = calculate_covariance_matrix(returns_by_symbol)
        expected = np.cov(np.array(list(returns_by_symbol.values())), ddof=1) * TRADING_DAYS
        assert np.allclose(matrix, expected)

    def test_symmetric_with_positive_diagonal(self, returns_by_symbol):
        matrix = calculate_covariance_matrix(returns_by_symbol)
        assert np.array_equal(matrix, matrix.T)
        assert np.all(np.diag(matrix) > 0)

    def test_symmetric_with_unequal_lengths(self, returns_by_symbol):
        data = dict(returns_by_symbol)
        data["KO"] = data["KO"][-100:]
        matrix = calculate_covariance_matrix(data)
        assert np.allclose(matrix, matrix.T)

    def test_fallback_for_empty_series(self):
        data = {"A": [], "B": [0.01, -0.01, 0.02, 0.0]}
        matrix = calculate_covariance_matrix(data)
        assert matrix[0, 0] == FALLBACK_VARIANCE
        assert matrix[0, 1] == FALLBACK_COVARIANCE
        assert matrix[1, 0] == FALLBACK_COVARIANCE
        assert matrix[1, 1] == pytest.approx(np.var(data["B"], ddof=1) * TRADING_DAYS)

    def test_non_finite_series_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            calculate_covariance_matrix({"A": [], "B": [0.01, float("nan")]})

    def test_zero_variance_repaired(self):
        flat = [0.0] * 10
        moving = [0.01, -0.01, 0.02, 0.0, -0.02, 0.01, 0.0, 0.005, -0.005, 0.01]
        matrix = calculate_covariance_matrix({"FLAT": flat, "MOVE": moving})

        assert matrix[0, 0] == pytest.approx(0.001)
        assert matrix[1, 1] == pytest.approx(np.var(moving, ddof=1) * TRADING_DAYS + 0.001)
        assert matrix[0, 1] == pytest.approx(0.0, abs=1e-15)

    def test_ensure_positive_definite_leaves_valid_matrix(self):
        cov = np.array([[0.04, 0.01], [0.01, 0.03]])
        assert np.array_equal(ensure_positive_definite(cov), cov)

    def test_ensure_positive_definite_shifts_whole_diagonal(self):
        cov = np.array([[-0.002, 0.0], [0.0, 0.03]])
        fixed = ensure_positive_definite(cov)
        assert fixed[0, 0] == pytest.approx(0.001)
        assert fixed[1, 1] == pytest.approx(0.033)
        assert cov[0, 0] == -0.002  # input untouched


class TestCorrelationMatrix:

    def test_known_values(self):
        corr = calculate_correlation_matrix([[0.04, 0.01], [0.01, 0.03]])
        assert corr[0, 0] == pytest.approx(1.0)
        assert corr[0, 1] == pytest.approx(0.01 / (0.2 * np.sqrt(0.03)))

    def test_zero_variance_row(self):
        corr = calculate_correlation_matrix([[0.0, 0.0], [0.0, 0.03]])
        assert corr[0, 0] == 1.0
        assert corr[0, 1] == 0.0
        assert corr[1, 1] == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Tests for weight validation
# ---------------------------------------------------------------------------

class TestValidateWeights:

    def test_valid(self):
        assert validate_weights([0.5, 0.5])

    def test_within_tolerance(self):
        assert validate_weights([0.5, 0.4995])

    def test_sum_off(self):
        assert not validate_weights([0.6, 0.5])

    def test_negative(self):
        assert not validate_weights([-0.1, 1.1])

    def test_empty_and_nan(self):
        assert not validate_weights([])
        assert not validate_weights([float("nan"), 1.0])


class TestCheckWeights:

    def test_valid_passes(self):
        check_weights([0.25, 0.25, 0.5])

    def test_negative_raises(self):
        with pytest.raises(InvalidWeightsError, match="Negative"):
            check_weights([-0.1, 1.1])

    def test_bad_sum_raises(self):
        with pytest.raises(InvalidWeightsError, match="sum to"):
            check_weights([0.7, 0.7])

    def test_empty_raises(self):
        with pytest.raises(InvalidWeightsError):
            check_weights([])

    def test_is_value_error(self):
        assert issubclass(InvalidWeightsError, ValueError)
