"""
Biomarker Scorer

Checks required and excluded biomarkers against the patient's test
results. The per-requirement check is shared with the eligibility
assessor so both read a result the same way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from src.protocol_matching.models.patient import BiomarkerResult, PatientProfile
from src.protocol_matching.models.protocol import BiomarkerRequirement, TreatmentProtocol
from src.protocol_matching.models.results import CriterionScore

CRITERION = "biomarkers"

MISSING_PENALTY = 0.3
MISMATCH_PENALTY = 0.2
AMBIGUOUS_PENALTY = 0.15
EXCLUDED_PENALTY = 0.4


class BiomarkerOutcome(str, Enum):
    MATCH = "match"
    MISSING = "missing"
    AMBIGUOUS = "ambiguous"
    MISMATCH = "mismatch"


@dataclass
class BiomarkerCheck:
    """Result of checking one requirement against the patient."""
    requirement: BiomarkerRequirement
    outcome: BiomarkerOutcome
    result: Optional[BiomarkerResult] = None

    @property
    def patient_value(self) -> str:
        if self.result is None:
            return "not tested"
        if self.result.value is not None:
            unit = f" {self.result.unit}" if self.result.unit else ""
            return f"{self.result.status.value} ({self.result.value}{unit})"
        return self.result.status.value


def _status_satisfies(result: BiomarkerResult, requirement: BiomarkerRequirement) -> bool:
    if requirement.status is not None:
        if result.status.canonical() != requirement.status.canonical():
            return False
    if requirement.threshold is not None:
        return result.value is not None and result.value >= requirement.threshold
    return True


def check_requirement(patient: PatientProfile, requirement: BiomarkerRequirement) -> BiomarkerCheck:
    """Classify a requirement as match, missing, ambiguous or mismatch."""
    result = patient.find_biomarker(requirement.biomarker_id)
    if result is None:
        return BiomarkerCheck(requirement, BiomarkerOutcome.MISSING)
    if result.status.is_ambiguous:
        return BiomarkerCheck(requirement, BiomarkerOutcome.AMBIGUOUS, result)
    if _status_satisfies(result, requirement):
        return BiomarkerCheck(requirement, BiomarkerOutcome.MATCH, result)
    return BiomarkerCheck(requirement, BiomarkerOutcome.MISMATCH, result)


def check_required(patient: PatientProfile, protocol: TreatmentProtocol) -> List[BiomarkerCheck]:
    return [check_requirement(patient, r) for r in protocol.eligibility_criteria.biomarkers.required]


def excluded_present(patient: PatientProfile, protocol: TreatmentProtocol) -> List[BiomarkerCheck]:
    """Excluded biomarkers the patient carries with the excluded status."""
    hits = []
    for requirement in protocol.eligibility_criteria.biomarkers.excluded:
        check = check_requirement(patient, requirement)
        if check.outcome == BiomarkerOutcome.MATCH:
            hits.append(check)
    return hits


def score_biomarkers(patient: PatientProfile, protocol: TreatmentProtocol) -> CriterionScore:
    """
    Score biomarker fit.

    Starts at 1.0 and subtracts penalties for missing (0.3), mismatched
    (0.2) and ambiguous (0.15) required biomarkers, and for excluded
    biomarkers present (0.4). Scores 0.0 when every required biomarker is
    missing.
    """
    criteria = protocol.eligibility_criteria.biomarkers
    if not criteria.has_requirements:
        return CriterionScore(criterion=CRITERION, score=1.0, explanation="No biomarker requirements")

    checks = check_required(patient, protocol)
    missing = [c for c in checks if c.outcome == BiomarkerOutcome.MISSING]

    if checks and len(missing) == len(checks):
        names = ", ".join(c.requirement.biomarker_id for c in missing)
        return CriterionScore(
            criterion=CRITERION,
            score=0.0,
            explanation=f"Missing required biomarker results: {names}",
        )

    score = 1.0
    notes = []
    for check in checks:
        label = check.requirement.label()
        if check.outcome == BiomarkerOutcome.MISSING:
            score -= MISSING_PENALTY
            notes.append(f"{check.requirement.biomarker_id} missing")
        elif check.outcome == BiomarkerOutcome.MISMATCH:
            score -= MISMATCH_PENALTY
            notes.append(f"{label} required, patient {check.patient_value}")
        elif check.outcome == BiomarkerOutcome.AMBIGUOUS:
            score -= AMBIGUOUS_PENALTY
            notes.append(f"{check.requirement.biomarker_id} result {check.patient_value}")
        else:
            notes.append(f"{label} matched")

    for hit in excluded_present(patient, protocol):
        score -= EXCLUDED_PENALTY
        notes.append(f"excluded biomarker present: {hit.requirement.label()}")

    score = max(0.0, min(1.0, score))
    return CriterionScore(criterion=CRITERION, score=round(score, 10), explanation="; ".join(notes))
