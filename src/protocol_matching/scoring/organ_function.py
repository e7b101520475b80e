"""
Organ Function Scorer

One scoring function per organ system, each returning a typed
OrganSystemScore. Every failed lab check multiplies the system score by
its penalty factor. The criterion score is the minimum across the
systems the protocol constrains.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from src.protocol_matching.models.patient import LaboratoryValues, PatientProfile
from src.protocol_matching.models.protocol import (
    CardiacCriteria,
    HematologicCriteria,
    HepaticCriteria,
    PulmonaryCriteria,
    RenalCriteria,
    TreatmentProtocol,
)
from src.protocol_matching.models.results import CriterionScore, OrganSystemScore

CRITERION = "organ_function"
UNASSESSED_SCORE = 0.5


@dataclass
class LabCheck:
    """One lab value checked against a floor or ceiling."""
    name: str
    value: Optional[float]
    limit: Optional[float]
    is_ceiling: bool
    penalty: float

    @property
    def constrained(self) -> bool:
        return self.limit is not None

    @property
    def passed(self) -> bool:
        if self.is_ceiling:
            return self.value <= self.limit
        return self.value >= self.limit

    def describe(self) -> str:
        bound = "max" if self.is_ceiling else "min"
        return f"{self.name} {self.value} ({bound} {self.limit})"


def _evaluate(system: str, checks: List[LabCheck]) -> Optional[OrganSystemScore]:
    """Apply checks; None when the system is unconstrained."""
    constrained = [c for c in checks if c.constrained]
    if not constrained:
        return None

    measured = [c for c in constrained if c.value is not None]
    if not measured:
        return OrganSystemScore(
            system=system,
            score=UNASSESSED_SCORE,
            findings=[f"No {system} labs available"],
            assessed=False,
        )

    score = 1.0
    findings = []
    failed = 0
    for check in measured:
        if not check.passed:
            score *= check.penalty
            failed += 1
            findings.append(f"{check.describe()} out of range")

    for check in constrained:
        if check.value is None:
            findings.append(f"{check.name} not measured")

    return OrganSystemScore(system=system, score=round(score, 10), findings=findings, failed_checks=failed)


def score_hepatic(labs: LaboratoryValues, criteria: HepaticCriteria) -> Optional[OrganSystemScore]:
    liver = labs.liver_panel
    metabolic = labs.metabolic_panel
    return _evaluate("hepatic", [
        LabCheck("bilirubin", liver.total_bilirubin if liver else None, criteria.bilirubin_max, True, 0.5),
        LabCheck("ALT", liver.alt if liver else None, criteria.alt_max, True, 0.7),
        LabCheck("AST", liver.ast if liver else None, criteria.ast_max, True, 0.7),
        LabCheck("albumin", metabolic.albumin if metabolic else None, criteria.albumin_min, False, 0.6),
    ])


def score_renal(labs: LaboratoryValues, criteria: RenalCriteria) -> Optional[OrganSystemScore]:
    panel = labs.metabolic_panel
    return _evaluate("renal", [
        LabCheck("creatinine", panel.creatinine if panel else None, criteria.creatinine_max, True, 0.6),
        LabCheck(
            "creatinine clearance",
            panel.creatinine_clearance if panel else None,
            criteria.creatinine_clearance_min,
            False,
            0.7,
        ),
        LabCheck("eGFR", panel.egfr if panel else None, criteria.egfr_min, False, 0.5),
    ])


def score_hematologic(labs: LaboratoryValues, criteria: HematologicCriteria) -> Optional[OrganSystemScore]:
    blood = labs.hematology
    return _evaluate("hematologic", [
        LabCheck("ANC", blood.anc if blood else None, criteria.anc_min, False, 0.5),
        LabCheck("platelets", blood.platelets if blood else None, criteria.platelets_min, False, 0.6),
        LabCheck("hemoglobin", blood.hemoglobin if blood else None, criteria.hemoglobin_min, False, 0.7),
    ])


def score_cardiac(labs: LaboratoryValues, criteria: CardiacCriteria) -> Optional[OrganSystemScore]:
    cardiac = labs.cardiac
    return _evaluate("cardiac", [
        LabCheck("LVEF", cardiac.lvef if cardiac else None, criteria.lvef_min, False, 0.5),
    ])


def score_pulmonary(labs: LaboratoryValues, criteria: PulmonaryCriteria) -> Optional[OrganSystemScore]:
    lungs = labs.pulmonary
    return _evaluate("pulmonary", [
        LabCheck("FEV1", lungs.fev1_percent if lungs else None, criteria.fev1_min, False, 0.7),
        LabCheck("DLCO", lungs.dlco_percent if lungs else None, criteria.dlco_min, False, 0.7),
    ])


SYSTEM_SCORERS: Dict[str, Callable] = {
    "hepatic": score_hepatic,
    "renal": score_renal,
    "hematologic": score_hematologic,
    "cardiac": score_cardiac,
    "pulmonary": score_pulmonary,
}


def score_organ_systems(patient: PatientProfile, protocol: TreatmentProtocol) -> List[OrganSystemScore]:
    """Score every organ system the protocol constrains."""
    criteria = protocol.eligibility_criteria.organ_function
    labs = patient.laboratory_values or LaboratoryValues()

    results = []
    for system, scorer in SYSTEM_SCORERS.items():
        system_criteria = getattr(criteria, system)
        if system_criteria is None:
            continue
        result = scorer(labs, system_criteria)
        if result is not None:
            results.append(result)
    return results


def score_organ_function(
    patient: PatientProfile,
    protocol: TreatmentProtocol,
    systems: Optional[List[OrganSystemScore]] = None,
) -> CriterionScore:
    """
    Score organ function as the weakest constrained system.

    Args:
        patient: Patient profile
        protocol: Candidate protocol
        systems: Pre-computed system scores (computed if not provided)

    Returns:
        CriterionScore; 1.0 when the protocol sets no organ limits
    """
    if systems is None:
        systems = score_organ_systems(patient, protocol)

    if not systems:
        return CriterionScore(criterion=CRITERION, score=1.0, explanation="No organ function requirements")

    weakest = min(systems, key=lambda s: s.score)
    findings = [f for s in systems for f in s.findings]
    explanation = f"Weakest system {weakest.system} ({weakest.score:.2f})"
    if findings:
        explanation += ": " + "; ".join(findings)

    return CriterionScore(
        criterion=CRITERION,
        score=weakest.score,
        explanation=explanation,
        data_gap=any(not s.assessed for s in systems),
    )
