"""
Result records produced by the matching engine.

Every result is created per (patient, protocol) pair and frozen on
construction.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.protocol_matching.models.enums import (
    ConfidenceLevel,
    ContraindicationType,
    EligibilityStatus,
    MonitoringIntensity,
    RiskLevel,
    ViolationSeverity,
)
from src.protocol_matching.models.protocol import TreatmentProtocol


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class CriterionScore(FrozenModel):
    """Normalized score for one clinical dimension."""
    criterion: str
    score: float = Field(..., ge=0.0, le=1.0)
    explanation: str
    data_gap: bool = Field(False, description="True when the score is neutral because data was missing")


class OrganSystemScore(FrozenModel):
    """Score for a single organ system."""
    system: str
    score: float = Field(..., ge=0.0, le=1.0)
    findings: List[str] = Field(default_factory=list)
    assessed: bool = True
    failed_checks: int = 0


class MatchScoreBreakdown(FrozenModel):
    """Per-criterion sub-scores and the weighted total."""
    performance_status: CriterionScore
    biomarkers: CriterionScore
    stage: CriterionScore
    organ_function: CriterionScore
    treatment_history: CriterionScore
    age: CriterionScore
    organ_systems: List[OrganSystemScore] = Field(default_factory=list)
    weights: Dict[str, float]
    weighted_sum: float
    contraindication_penalty: float = 0.0
    evidence_bonus: float = 0.0
    total_weighted_score: float = Field(..., ge=0.0, le=1.0)

    def criterion_scores(self) -> Dict[str, CriterionScore]:
        return {
            "performance_status": self.performance_status,
            "biomarkers": self.biomarkers,
            "stage": self.stage,
            "organ_function": self.organ_function,
            "treatment_history": self.treatment_history,
            "age": self.age,
        }

    def recompute_total(self) -> float:
        """Recompute the total from the stored components."""
        scores = self.criterion_scores()
        weighted = sum(scores[name].score * weight for name, weight in self.weights.items())
        raw = weighted - self.contraindication_penalty + self.evidence_bonus
        return max(0.0, min(1.0, raw))


class Violation(FrozenModel):
    """A criterion mismatch between patient and protocol."""
    criterion: str
    severity: ViolationSeverity
    description: str
    patient_value: Optional[str] = None
    required_value: Optional[str] = None
    suggested_modification: Optional[str] = None

    @property
    def is_addressable(self) -> bool:
        return self.suggested_modification is not None


class EligibilityWarning(FrozenModel):
    category: str
    description: str


class EligibilityAssessment(FrozenModel):
    """Eligibility verdict with itemized violations."""
    eligible: bool
    violations: List[Violation] = Field(default_factory=list)
    warnings: List[EligibilityWarning] = Field(default_factory=list)
    required_tests: List[str] = Field(default_factory=list)
    estimated_eligibility_after_optimization: float = Field(1.0, ge=0.0, le=1.0)

    @property
    def exclusionary_violations(self) -> List[Violation]:
        return [v for v in self.violations if v.severity == ViolationSeverity.EXCLUSIONARY]


class ContraindicationResult(FrozenModel):
    type: ContraindicationType
    category: str = Field(..., description="medical, allergy or drug_interaction")
    description: str
    override_possible: bool
    source: Optional[str] = Field(None, description="Contraindication id or interacting drug")
    mitigation: Optional[str] = None
    alternatives: List[str] = Field(default_factory=list)


class SafetyAssessment(FrozenModel):
    overall_safety_score: float = Field(..., ge=0.0, le=1.0)
    risk_level: RiskLevel
    monitoring_intensity: MonitoringIntensity
    special_precautions: List[str] = Field(default_factory=list)


class ProtocolModification(FrozenModel):
    type: str = Field(..., description="dose_reduction, schedule_change, supportive_care, retest")
    description: str
    reason: str


class MatchingResult(FrozenModel):
    """Outcome of matching one patient against one protocol."""
    protocol: TreatmentProtocol
    match_score: float = Field(..., ge=0.0, le=1.0)
    breakdown: MatchScoreBreakdown
    eligibility: EligibilityAssessment
    eligibility_status: EligibilityStatus
    contraindications: List[ContraindicationResult] = Field(default_factory=list)
    safety: SafetyAssessment
    confidence: ConfidenceLevel
    rationale: str
    recommendations: List[str] = Field(default_factory=list)
    required_modifications: List[ProtocolModification] = Field(default_factory=list)

    @property
    def has_absolute_contraindication(self) -> bool:
        return any(c.type == ContraindicationType.ABSOLUTE for c in self.contraindications)


class TreatmentRecommendation(FrozenModel):
    """Persistence-ready recommendation record for one matched protocol."""
    patient_id: str
    protocol_id: str
    match_score: float
    eligibility: EligibilityAssessment
    eligibility_status: EligibilityStatus
    contraindications: List[str] = Field(default_factory=list)
    required_modifications: List[ProtocolModification] = Field(default_factory=list)
    alternative_options: List[str] = Field(default_factory=list)
    rationale: str
    confidence_level: ConfidenceLevel
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    generated_by: str = "system"
