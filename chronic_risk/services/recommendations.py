"""
Recommendation and urgency engine.

Deterministic template fill: urgency depends only on the risk band;
recommendation buckets come from the band, the modifiable factors and the
per-condition guidance templates.
"""

from collections.abc import Sequence

from chronic_risk.config import GuidelineConfig
from chronic_risk.domain.models import (
    Condition,
    InterventionUrgency,
    ModifiableFactor,
    Recommendations,
    RiskBand,
)


class RecommendationEngine:
    def __init__(self, guidelines: GuidelineConfig | None = None) -> None:
        self.guidelines = guidelines or GuidelineConfig()

    def urgency(self, band: RiskBand) -> InterventionUrgency:
        template = self.guidelines.urgency[band]
        return InterventionUrgency(
            urgency=template.urgency,
            timeframe=template.timeframe,
            priority=template.priority,
        )

    def recommend(
        self,
        condition: Condition,
        band: RiskBand,
        modifiable_factors: Sequence[ModifiableFactor],
    ) -> Recommendations:
        immediate = list(self.guidelines.high_risk_actions) if band is RiskBand.HIGH else []

        # one item per factor; several factors may share an intervention
        short_term = list(dict.fromkeys(f.intervention for f in modifiable_factors))

        template = self.guidelines.recommendations.get(condition)
        long_term = list(template.long_term) if template else []
        monitoring = list(template.monitoring) if template else []

        return Recommendations(
            immediate=tuple(immediate),
            short_term=tuple(short_term),
            long_term=tuple(long_term),
            monitoring=tuple(monitoring),
        )
