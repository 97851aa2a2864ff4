"""
Wastage Estimator Interface
Abstract base class for predicting how many doses a center will waste.

Estimators can be swapped at runtime; the report only depends on ``predict``.
"""

from abc import ABC, abstractmethod


class WastageEstimator(ABC):
    """Abstract base class for wastage predictions"""

    label = "estimator"

    @abstractmethod
    def predict(self, total_stock: int, wasted_doses: int) -> float:
        """
        Predict future wasted doses for one center or stock entry

        Args:
            total_stock: Doses accounted to the subject
            wasted_doses: Doses already recorded as wasted

        Returns:
            float: Predicted wasted doses
        """
        pass


class FixedRatioEstimator(WastageEstimator):
    """
    Placeholder estimator: a fixed share of total stock.

    This is not a trend model; it ignores history and exists so reports carry
    a prediction column until a real model is plugged in.
    """

    label = "fixed_ratio_placeholder"

    def __init__(self, ratio: float = 0.10):
        if ratio < 0:
            raise ValueError("ratio must not be negative")
        self.ratio = ratio

    def predict(self, total_stock: int, wasted_doses: int) -> float:
        return round(total_stock * self.ratio, 2)

    def __repr__(self):
        return f'<FixedRatioEstimator ratio={self.ratio}>'
