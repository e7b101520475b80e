"""
Matching Configuration

Weights, thresholds and the evidence-level bonus table. Configuration is
plain data: it can be overridden per engine instance and, for weights,
per call. It is never read from the environment here.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from src.protocol_matching.errors import ConfigurationError
from src.protocol_matching.models.enums import EvidenceLevel


@dataclass(frozen=True)
class MatchingWeights:
    """
    Weights for the six positive criteria.

    Default weights:
    - Performance status: 25%
    - Biomarkers: 27%
    - Stage: 20%
    - Organ function: 15%
    - Treatment history: 8%
    - Age: 5%
    """
    performance_status: float = 0.25
    biomarkers: float = 0.27
    stage: float = 0.20
    organ_function: float = 0.15
    treatment_history: float = 0.08
    age: float = 0.05

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def validate(self) -> bool:
        """Validate that weights are non-negative and sum to 1.0."""
        values = list(self.as_dict().values())
        return all(v >= 0.0 for v in values) and abs(sum(values) - 1.0) < 0.001


@dataclass(frozen=True)
class MatchingThresholds:
    """Score thresholds used for filtering and classification."""
    minimum_match_score: float = 0.3
    safety_exclusion_threshold: float = 0.2
    organ_function_minimum: float = 0.5
    acceptable: float = 0.60
    good: float = 0.75
    excellent: float = 0.90

    def validate(self) -> bool:
        values = asdict(self).values()
        ordered = self.acceptable <= self.good <= self.excellent
        return ordered and all(0.0 <= v <= 1.0 for v in values)


DEFAULT_EVIDENCE_BONUS: Dict[EvidenceLevel, float] = {
    EvidenceLevel.A: 0.15,
    EvidenceLevel.B: 0.10,
    EvidenceLevel.C: 0.05,
    EvidenceLevel.D: 0.0,
    EvidenceLevel.E: 0.0,
}


@dataclass(frozen=True)
class MatchingConfig:
    """Complete matching configuration."""
    weights: MatchingWeights = field(default_factory=MatchingWeights)
    thresholds: MatchingThresholds = field(default_factory=MatchingThresholds)
    evidence_bonus: Dict[EvidenceLevel, float] = field(default_factory=lambda: dict(DEFAULT_EVIDENCE_BONUS))
    contraindication_penalty: float = 0.3
    max_contraindication_penalty: float = 1.0

    def __post_init__(self):
        validate_weights(self.weights)
        if not self.thresholds.validate():
            raise ConfigurationError(
                "Thresholds must lie in [0, 1] with acceptable <= good <= excellent"
            )
        missing = [level.value for level in EvidenceLevel if level not in self.evidence_bonus]
        if missing:
            raise ConfigurationError(f"Evidence bonus table missing levels: {missing}")
        bonuses = [self.evidence_bonus[level] for level in EvidenceLevel]
        if any(b < 0 for b in bonuses) or any(a < b for a, b in zip(bonuses, bonuses[1:])):
            raise ConfigurationError("Evidence bonus must be non-negative and non-increasing from A to E")

    def bonus_for(self, level: EvidenceLevel) -> float:
        return self.evidence_bonus.get(level, 0.0)

    def with_weights(self, weights: Optional[MatchingWeights]) -> "MatchingConfig":
        """Copy of this config with different weights (validated)."""
        if weights is None or weights == self.weights:
            return self
        return MatchingConfig(
            weights=weights,
            thresholds=self.thresholds,
            evidence_bonus=self.evidence_bonus,
            contraindication_penalty=self.contraindication_penalty,
            max_contraindication_penalty=self.max_contraindication_penalty,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchingConfig":
        """
        Build a config from plain data (e.g. parsed JSON).

        Args:
            data: Dict with optional 'weights', 'thresholds', 'evidence_bonus' keys

        Returns:
            Validated MatchingConfig
        """
        try:
            weights = MatchingWeights(**data.get("weights", {}))
            thresholds = MatchingThresholds(**data.get("thresholds", {}))
            bonus = dict(DEFAULT_EVIDENCE_BONUS)
            for level, value in data.get("evidence_bonus", {}).items():
                bonus[EvidenceLevel(level)] = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid matching configuration: {e}") from e

        extra = {
            k: data[k] for k in ("contraindication_penalty", "max_contraindication_penalty") if k in data
        }
        return cls(weights=weights, thresholds=thresholds, evidence_bonus=bonus, **extra)


def validate_weights(weights: MatchingWeights) -> None:
    """Raise ConfigurationError unless the weights sum to 1.0."""
    if not weights.validate():
        total = sum(weights.as_dict().values())
        raise ConfigurationError(
            f"Matching weights must be non-negative and sum to 1.0 (got {total:.3f})"
        )


DEFAULT_CONFIG = MatchingConfig()
