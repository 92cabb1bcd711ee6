"""
Custom exception hierarchy for the gene-expression grid search system.
"""
from typing import Any, Dict, Optional


class ExpressionMLException(Exception):
    """Base exception for all system errors."""
    pass

class InvalidConfiguration(ExpressionMLException):
    """Configuration validation failed (bad fold count, malformed grid, bad config file)."""
    pass

class DataValidationError(ExpressionMLException):
    """Data validation failed."""
    pass

class DegenerateFold(ExpressionMLException):
    """A training or validation split is empty, so RMSE is undefined."""
    pass

class EmptyGrid(ExpressionMLException):
    """Selection attempted with no available error records."""
    pass

class ModelTrainingError(ExpressionMLException):
    """Model training failed."""
    pass

class PredictionError(ExpressionMLException):
    """Prediction generation failed."""
    pass

class FitFailure(ExpressionMLException):
    """
    The fitting capability errored for one (grid point, fold) unit.

    Recorded and skipped by the grid evaluator unless the failure policy
    is 'abort', in which case it is raised.
    """

    def __init__(self, point_index: int, params: Dict[str, Any], fold: int,
                 cause: str, cause_type: Optional[str] = None):
        self.point_index = point_index
        self.params = dict(params)
        self.fold = fold
        self.cause = cause
        self.cause_type = cause_type or "Exception"
        super().__init__(
            f"Fit failed for point #{point_index} {self.params} on fold {fold}: "
            f"{self.cause_type}: {cause}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'point_index': self.point_index,
            'params': self.params,
            'fold': self.fold,
            'cause_type': self.cause_type,
            'cause': self.cause,
        }
