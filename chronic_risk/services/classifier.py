"""Risk classifier: condition-specific ordered thresholds to a discrete band."""

from collections.abc import Mapping

from chronic_risk.config import BandThresholds, GuidelineConfig
from chronic_risk.domain.models import Condition, RiskBand


class RiskClassifier:
    """Pure mapping of (condition, score) to a RiskBand. None always means UNKNOWN."""

    def __init__(self, thresholds: Mapping[Condition, BandThresholds] | None = None) -> None:
        self.thresholds = dict(thresholds or GuidelineConfig().thresholds)

    def classify(self, condition: Condition, score: float | None) -> RiskBand:
        if score is None:
            return RiskBand.UNKNOWN

        bounds = self.thresholds[condition]
        if score < bounds.low:
            return RiskBand.LOW
        if score < bounds.moderate:
            return RiskBand.MODERATE
        return RiskBand.HIGH
