from vaxcenter.business.analytics.wastage_estimator import WastageEstimator, FixedRatioEstimator
from vaxcenter.business.analytics.wastage_analyzer import WastageAnalyzer, WastageReport, WastageRow

__all__ = [
    'WastageEstimator',
    'FixedRatioEstimator',
    'WastageAnalyzer',
    'WastageReport',
    'WastageRow',
]
