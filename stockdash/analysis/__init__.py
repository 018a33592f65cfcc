from .linalg import SingularMatrixError, invert_matrix, multiply_matrix_vector
from .statistics import (
    InvalidWeightsError,
    calculate_correlation_matrix,
    calculate_covariance,
    calculate_covariance_matrix,
    calculate_expected_returns,
    calculate_returns,
    check_weights,
    validate_weights,
)
from .portfolio import OptimizationResult, PortfolioOptimizer, normalize_weights
