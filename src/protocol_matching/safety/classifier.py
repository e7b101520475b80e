"""
Safety & Confidence Classifier

Maps the aggregate score, eligibility verdict and contraindications onto
the discrete eligibility status, confidence label, risk level and
monitoring intensity.
"""

from typing import List

from src.protocol_matching.config import DEFAULT_CONFIG, MatchingThresholds
from src.protocol_matching.models.enums import (
    ConfidenceLevel,
    ContraindicationType,
    EligibilityStatus,
    MonitoringIntensity,
    RiskLevel,
)
from src.protocol_matching.models.results import (
    ContraindicationResult,
    EligibilityAssessment,
    SafetyAssessment,
)

RELATIVE_SAFETY_COST = 0.15
ABSOLUTE_SAFETY_COST = 0.5

MONITORING_BY_RISK = {
    RiskLevel.LOW: MonitoringIntensity.STANDARD,
    RiskLevel.MODERATE: MonitoringIntensity.ENHANCED,
    RiskLevel.HIGH: MonitoringIntensity.INTENSIVE,
    RiskLevel.VERY_HIGH: MonitoringIntensity.INTENSIVE,
}


def _count(contraindications: List[ContraindicationResult], kind: ContraindicationType) -> int:
    return sum(1 for c in contraindications if c.type == kind)


class SafetyClassifier:
    """Derives eligibility status, confidence and safety assessment."""

    def __init__(self, thresholds: MatchingThresholds = DEFAULT_CONFIG.thresholds):
        self._thresholds = thresholds

    def eligibility_status(
        self,
        score: float,
        eligibility: EligibilityAssessment,
        contraindications: List[ContraindicationResult],
    ) -> EligibilityStatus:
        """Classify; the first matching rule wins."""
        if _count(contraindications, ContraindicationType.ABSOLUTE):
            return EligibilityStatus.CONTRAINDICATED
        if not eligibility.eligible:
            return EligibilityStatus.INELIGIBLE
        if score >= self._thresholds.good:
            return EligibilityStatus.ELIGIBLE
        if score >= self._thresholds.acceptable:
            return EligibilityStatus.PARTIALLY_ELIGIBLE
        return EligibilityStatus.INELIGIBLE

    def confidence(self, score: float, contraindications: List[ContraindicationResult]) -> ConfidenceLevel:
        if _count(contraindications, ContraindicationType.ABSOLUTE):
            return ConfidenceLevel.LOW
        if score >= self._thresholds.excellent:
            return ConfidenceLevel.HIGH
        if score >= self._thresholds.good:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def risk_level(self, contraindications: List[ContraindicationResult], organ_score: float) -> RiskLevel:
        absolute = _count(contraindications, ContraindicationType.ABSOLUTE)
        relative = _count(contraindications, ContraindicationType.RELATIVE)

        if absolute or (relative >= 2 and organ_score < 0.5):
            return RiskLevel.VERY_HIGH
        if relative >= 2 or organ_score < 0.5:
            return RiskLevel.HIGH
        if relative == 1 or organ_score < 0.8:
            return RiskLevel.MODERATE
        return RiskLevel.LOW

    def assess_safety(
        self,
        contraindications: List[ContraindicationResult],
        organ_score: float,
    ) -> SafetyAssessment:
        """
        Build the safety assessment.

        A safety score under safety_exclusion_threshold escalates the risk
        level to very high.

        Args:
            contraindications: Detected contraindications
            organ_score: Organ function criterion score

        Returns:
            SafetyAssessment
        """
        absolute = _count(contraindications, ContraindicationType.ABSOLUTE)
        relative = _count(contraindications, ContraindicationType.RELATIVE)
        safety_score = organ_score - RELATIVE_SAFETY_COST * relative - ABSOLUTE_SAFETY_COST * absolute
        safety_score = round(max(0.0, min(1.0, safety_score)), 10)

        risk = self.risk_level(contraindications, organ_score)
        if safety_score < self._thresholds.safety_exclusion_threshold:
            risk = RiskLevel.VERY_HIGH

        precautions = []
        for c in contraindications:
            if c.type != ContraindicationType.RELATIVE:
                continue
            if c.mitigation:
                precautions.append(f"{c.description}: {c.mitigation}")
            else:
                precautions.append(f"{c.description}: document mitigation before override")

        return SafetyAssessment(
            overall_safety_score=safety_score,
            risk_level=risk,
            monitoring_intensity=MONITORING_BY_RISK[risk],
            special_precautions=precautions,
        )
