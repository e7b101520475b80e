"""
Rationale and recommendation text for matching results.
"""

from typing import List

from src.protocol_matching.models.enums import (
    ContraindicationType,
    EligibilityStatus,
    EvidenceLevel,
    RiskLevel,
)
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import (
    ContraindicationResult,
    EligibilityAssessment,
    MatchScoreBreakdown,
    ProtocolModification,
    SafetyAssessment,
)

_CRITERION_LABELS = {
    "performance_status": "performance status",
    "biomarkers": "biomarkers",
    "stage": "disease stage",
    "organ_function": "organ function",
    "treatment_history": "treatment history",
    "age": "age",
}


def build_rationale(
    protocol: TreatmentProtocol,
    breakdown: MatchScoreBreakdown,
    eligibility: EligibilityAssessment,
    contraindications: List[ContraindicationResult],
    status: EligibilityStatus,
) -> str:
    scores = breakdown.criterion_scores()
    strongest = max(scores.values(), key=lambda s: s.score)
    weakest = min(scores.values(), key=lambda s: s.score)

    source = f" ({protocol.guideline_source})" if protocol.guideline_source else ""
    parts = [
        f"{protocol.name}: match score {breakdown.total_weighted_score:.2f}, "
        f"evidence level {protocol.evidence_level.value}{source}, status {status.value}.",
        f"Strongest criterion: {_CRITERION_LABELS[strongest.criterion]} ({strongest.score:.2f}); "
        f"weakest: {_CRITERION_LABELS[weakest.criterion]} ({weakest.score:.2f}) - {weakest.explanation}.",
    ]
    if eligibility.violations:
        parts.append(f"{len(eligibility.violations)} eligibility violation(s).")
    if contraindications:
        absolute = sum(1 for c in contraindications if c.type == ContraindicationType.ABSOLUTE)
        parts.append(f"{len(contraindications)} contraindication(s), {absolute} absolute.")
    return " ".join(parts)


def build_recommendations(
    patient: PatientProfile,
    protocol: TreatmentProtocol,
    breakdown: MatchScoreBreakdown,
    eligibility: EligibilityAssessment,
    contraindications: List[ContraindicationResult],
) -> List[str]:
    recommendations = []

    if protocol.evidence_level == EvidenceLevel.A:
        recommendations.append("High-quality evidence supports this treatment approach")

    ecog = patient.performance_metrics.ecog_score
    if ecog is not None and ecog >= 2:
        recommendations.append("Consider supportive care measures to improve performance status")

    if breakdown.biomarkers.score < 0.7:
        recommendations.append("Consider additional biomarker testing to optimize treatment selection")

    if any(c.type == ContraindicationType.RELATIVE for c in contraindications):
        recommendations.append("Monitor closely for treatment-related toxicities due to relative contraindications")

    if eligibility.required_tests:
        recommendations.append(
            f"Complete outstanding assessments before starting: {', '.join(eligibility.required_tests)}"
        )

    return recommendations


def build_modifications(eligibility: EligibilityAssessment, safety: SafetyAssessment) -> List[ProtocolModification]:
    modifications = []
    for violation in eligibility.violations:
        if not violation.suggested_modification:
            continue
        lowered = violation.suggested_modification.lower()
        if "test" in lowered:
            kind = "retest"
        elif "dose" in lowered:
            kind = "dose_reduction"
        else:
            kind = "supportive_care"
        modifications.append(ProtocolModification(
            type=kind,
            description=violation.suggested_modification,
            reason=violation.description,
        ))

    if safety.risk_level in (RiskLevel.HIGH, RiskLevel.VERY_HIGH):
        modifications.append(ProtocolModification(
            type="dose_reduction",
            description="20% dose reduction for initial cycle",
            reason=f"{safety.risk_level.value.replace('_', ' ')} risk patient profile",
        ))
    return modifications
