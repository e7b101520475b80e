"""
Eligibility Assessor

Evaluates hard and soft protocol criteria independently of the match
score. Produces itemized violations, warnings and required follow-up
tests. Any exclusionary violation makes the patient ineligible.
"""

import logging
from typing import List

from src.protocol_matching.config import DEFAULT_CONFIG, MatchingConfig
from src.protocol_matching.models.enums import InteractionSeverity, ViolationSeverity
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import EligibilityAssessment, EligibilityWarning, Violation
from src.protocol_matching.scoring.biomarker import BiomarkerOutcome, check_required, excluded_present
from src.protocol_matching.scoring.contraindication import match_declared_contraindications
from src.protocol_matching.scoring.organ_function import score_organ_systems
from src.protocol_matching.scoring.stage import score_stage
from src.protocol_matching.text import terms_match

logger = logging.getLogger(__name__)

DOSE_REDUCTION_FOR_PERFORMANCE = "Consider dose reduction due to performance status"
WARNING_IMPACTS = ("significant", "moderate")

# Best-case estimate deductions for violations that cannot be addressed
UNADDRESSABLE_EXCLUSION_COST = 0.25
UNADDRESSABLE_CAUTION_COST = 0.05


class EligibilityAssessor:
    """
    Rule-based eligibility assessment.

    Checks:
    - Performance status (ECOG ceiling, Karnofsky floor)
    - Organ function limits per system
    - Required and excluded biomarkers
    - Age range and free-text exclusions
    - Comorbidity and medication risk factors (warnings only)
    """

    def __init__(self, config: MatchingConfig = DEFAULT_CONFIG):
        self._config = config

    def assess(self, patient: PatientProfile, protocol: TreatmentProtocol) -> EligibilityAssessment:
        """
        Assess patient eligibility for a protocol.

        Args:
            patient: Patient profile
            protocol: Candidate protocol

        Returns:
            EligibilityAssessment
        """
        violations: List[Violation] = []
        warnings: List[EligibilityWarning] = []
        required_tests: List[str] = []

        self._check_performance_status(patient, protocol, violations, warnings, required_tests)
        self._check_organ_function(patient, protocol, violations, required_tests)
        self._check_biomarkers(patient, protocol, violations, required_tests)
        self._check_age(patient, protocol, violations, required_tests)
        self._check_exclusions(patient, protocol, violations)
        self._collect_risk_warnings(patient, protocol, warnings)

        eligible = not any(v.severity == ViolationSeverity.EXCLUSIONARY for v in violations)
        assessment = EligibilityAssessment(
            eligible=eligible,
            violations=violations,
            warnings=warnings,
            required_tests=list(dict.fromkeys(required_tests)),
            estimated_eligibility_after_optimization=estimate_after_optimization(violations),
        )
        logger.debug(
            f"Eligibility for {protocol.id}: eligible={eligible}, "
            f"{len(violations)} violation(s), {len(warnings)} warning(s)"
        )
        return assessment

    def _check_performance_status(self, patient, protocol, violations, warnings, required_tests):
        criteria = protocol.eligibility_criteria.performance_status
        metrics = patient.performance_metrics

        if criteria.ecog_allowed:
            ecog = metrics.ecog_score
            if ecog is None:
                required_tests.append("ECOG performance status assessment")
                warnings.append(EligibilityWarning(
                    category="performance_status",
                    description="ECOG performance status not recorded",
                ))
            elif ecog not in criteria.ecog_allowed and ecog > criteria.ecog_max:
                within_one = ecog - criteria.ecog_max == 1
                violations.append(Violation(
                    criterion="performance_status",
                    severity=ViolationSeverity.CAUTION if within_one else ViolationSeverity.EXCLUSIONARY,
                    description=f"ECOG {ecog} outside allowed {criteria.ecog_allowed}",
                    patient_value=str(ecog),
                    required_value=f"ECOG {criteria.ecog_allowed}",
                    suggested_modification=DOSE_REDUCTION_FOR_PERFORMANCE if within_one else None,
                ))

        if criteria.karnofsky_min is not None and metrics.karnofsky_score is not None:
            if metrics.karnofsky_score < criteria.karnofsky_min:
                violations.append(Violation(
                    criterion="performance_status",
                    severity=ViolationSeverity.CAUTION,
                    description=f"Karnofsky {metrics.karnofsky_score} below minimum {criteria.karnofsky_min}",
                    patient_value=str(metrics.karnofsky_score),
                    required_value=f">= {criteria.karnofsky_min}",
                ))

    def _check_organ_function(self, patient, protocol, violations, required_tests):
        mild_floor = self._config.thresholds.organ_function_minimum
        for system in score_organ_systems(patient, protocol):
            if not system.assessed:
                required_tests.append(f"{system.system.capitalize()} function labs")
                continue
            if system.failed_checks == 0:
                continue

            mild = system.score >= mild_floor
            for finding in system.findings:
                if not finding.endswith("out of range"):
                    continue
                violations.append(Violation(
                    criterion=f"organ_function:{system.system}",
                    severity=ViolationSeverity.EXCLUSIONARY,
                    description=f"{system.system.capitalize()} function: {finding}",
                    patient_value=f"{system.score:.2f}",
                    required_value="within protocol limits",
                    suggested_modification=(
                        f"Consider dose modification for {system.system} function" if mild else None
                    ),
                ))

    def _check_biomarkers(self, patient, protocol, violations, required_tests):
        for check in check_required(patient, protocol):
            biomarker = check.requirement.biomarker_id
            if check.outcome == BiomarkerOutcome.MISSING:
                required_tests.append(biomarker)
                violations.append(Violation(
                    criterion=f"biomarker:{biomarker}",
                    severity=ViolationSeverity.EXCLUSIONARY,
                    description=f"Required biomarker {biomarker} has no test result",
                    patient_value=check.patient_value,
                    required_value=check.requirement.label(),
                ))
            elif check.outcome == BiomarkerOutcome.AMBIGUOUS:
                required_tests.append(biomarker)
                violations.append(Violation(
                    criterion=f"biomarker:{biomarker}",
                    severity=ViolationSeverity.CAUTION,
                    description=f"{biomarker} result is {check.patient_value}",
                    patient_value=check.patient_value,
                    required_value=check.requirement.label(),
                    suggested_modification=f"Repeat {biomarker} testing before treatment decision",
                ))
            elif check.outcome == BiomarkerOutcome.MISMATCH:
                violations.append(Violation(
                    criterion=f"biomarker:{biomarker}",
                    severity=ViolationSeverity.EXCLUSIONARY,
                    description=f"{biomarker} is {check.patient_value}, protocol requires {check.requirement.label()}",
                    patient_value=check.patient_value,
                    required_value=check.requirement.label(),
                ))

        for hit in excluded_present(patient, protocol):
            biomarker = hit.requirement.biomarker_id
            violations.append(Violation(
                criterion=f"biomarker:{biomarker}",
                severity=ViolationSeverity.EXCLUSIONARY,
                description=f"Excluded biomarker present: {hit.requirement.label()}",
                patient_value=hit.patient_value,
                required_value=f"not {hit.requirement.label()}",
            ))

    def _check_age(self, patient, protocol, violations, required_tests):
        age_range = protocol.eligibility_criteria.age_range
        if age_range is None or (age_range.min_age is None and age_range.max_age is None):
            return

        age = patient.demographics.age
        if age is None:
            required_tests.append("Patient age")
            return

        below = age_range.min_age is not None and age < age_range.min_age
        above = age_range.max_age is not None and age > age_range.max_age
        if below or above:
            violations.append(Violation(
                criterion="age",
                severity=ViolationSeverity.EXCLUSIONARY,
                description=f"Age {age} outside protocol range",
                patient_value=str(age),
                required_value=f"{age_range.min_age if age_range.min_age is not None else '-'}"
                               f"-{age_range.max_age if age_range.max_age is not None else '-'}",
            ))

    def _check_exclusions(self, patient, protocol, violations):
        for exclusion in protocol.eligibility_criteria.exclusions:
            for comorbidity in patient.comorbidities:
                if terms_match(exclusion, comorbidity.condition):
                    violations.append(Violation(
                        criterion="exclusion_criteria",
                        severity=ViolationSeverity.EXCLUSIONARY,
                        description=f"Exclusion criterion met: {exclusion}",
                        patient_value=comorbidity.condition,
                        required_value=f"no {exclusion}",
                    ))
                    break

    def _collect_risk_warnings(self, patient, protocol, warnings):
        declared = {m.patient_term for m in match_declared_contraindications(patient, protocol)}

        for comorbidity in patient.comorbidities:
            if comorbidity.condition in declared:
                continue
            if (comorbidity.impact or "").lower() in WARNING_IMPACTS:
                warnings.append(EligibilityWarning(
                    category="comorbidity",
                    description=f"{comorbidity.condition} ({comorbidity.impact} impact) may affect tolerability",
                ))

        protocol_drugs = [d.name for d in protocol.drugs] + [d.drug_class for d in protocol.drugs if d.drug_class]
        for medication in patient.current_medications:
            for interaction in protocol.drug_interactions:
                if interaction.severity in (InteractionSeverity.MAJOR, InteractionSeverity.CONTRAINDICATED):
                    continue
                if terms_match(interaction.interacting_drug, medication.name) or terms_match(
                    interaction.interacting_drug, medication.drug_class
                ):
                    warnings.append(EligibilityWarning(
                        category="drug_interaction",
                        description=f"{medication.name} has a {interaction.severity.value} interaction "
                                    f"with {interaction.drug}",
                    ))
            flagged = [d for d in protocol_drugs if any(terms_match(d, i) for i in medication.interactions)]
            if flagged:
                warnings.append(EligibilityWarning(
                    category="drug_interaction",
                    description=f"{medication.name} lists interactions with {', '.join(flagged)}",
                ))

        stage = score_stage(patient, protocol)
        if stage.score < 1.0 and not stage.data_gap:
            warnings.append(EligibilityWarning(category="stage", description=stage.explanation))


def estimate_after_optimization(violations: List[Violation]) -> float:
    """
    Best-case eligibility assuming addressable violations are resolved.

    Violations with a suggested modification count as resolvable.
    """
    estimate = 1.0
    for violation in violations:
        if violation.is_addressable:
            continue
        if violation.severity == ViolationSeverity.EXCLUSIONARY:
            estimate -= UNADDRESSABLE_EXCLUSION_COST
        elif violation.severity == ViolationSeverity.CAUTION:
            estimate -= UNADDRESSABLE_CAUTION_COST
    return round(max(0.0, min(1.0, estimate)), 10)


def assess_eligibility(
    patient: PatientProfile,
    protocol: TreatmentProtocol,
    config: MatchingConfig = DEFAULT_CONFIG,
) -> EligibilityAssessment:
    """Assess eligibility with a one-off assessor."""
    return EligibilityAssessor(config).assess(patient, protocol)
