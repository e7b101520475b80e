"""
Tests for EligibilityAssessor.

Covers violation severities, required tests, warnings and the
eligibility-after-optimization estimate.
"""

import pytest

from conftest import make_criteria, make_patient, make_protocol

from src.protocol_matching.eligibility import EligibilityAssessor, assess_eligibility
from src.protocol_matching.eligibility.assessor import (
    DOSE_REDUCTION_FOR_PERFORMANCE,
    estimate_after_optimization,
)
from src.protocol_matching.models.enums import BiomarkerStatus, InteractionSeverity, ViolationSeverity
from src.protocol_matching.models.patient import (
    BiomarkerResult,
    Comorbidity,
    Demographics,
    DiseaseStatus,
    Hematology,
    LaboratoryValues,
    LiverPanel,
    Medication,
    MetabolicPanel,
    PerformanceMetrics,
)
from src.protocol_matching.models.protocol import (
    BiomarkerCriteria,
    BiomarkerRequirement,
    Contraindication,
    DrugInteraction,
)
from src.protocol_matching.models.results import Violation

NORMAL_METABOLIC = MetabolicPanel(creatinine=0.9, creatinine_clearance=95, albumin=4.0)
NORMAL_BLOOD = Hematology(anc=3.2, platelets=250, hemoglobin=13.1)
NORMAL_LIVER = LiverPanel(total_bilirubin=0.6, alt=25, ast=22)


def labs(hematology=NORMAL_BLOOD, liver=NORMAL_LIVER, metabolic=NORMAL_METABOLIC):
    return LaboratoryValues(hematology=hematology, liver_panel=liver, metabolic_panel=metabolic)


def egfr_protocol():
    return make_protocol(
        id="nsclc-osimertinib",
        name="Osimertinib",
        eligibility_criteria=make_criteria(
            biomarkers=BiomarkerCriteria(required=[BiomarkerRequirement(biomarker_id="EGFR")])
        ),
    )


@pytest.fixture
def assessor():
    return EligibilityAssessor()


class TestPerformanceStatusChecks:
    """ECOG and Karnofsky checks."""

    def test_fit_patient_is_eligible(self, assessor, patient, protocol):
        """A fit patient has no violations and nothing to test."""
        result = assessor.assess(patient, protocol)
        assert result.eligible
        assert result.violations == []
        assert result.required_tests == []
        assert result.estimated_eligibility_after_optimization == 1.0

    def test_one_grade_over_is_caution(self, assessor, protocol):
        """ECOG one grade over the maximum is a caution with a dose reduction."""
        patient = make_patient(performance_metrics=PerformanceMetrics(ecog_score=2, karnofsky_score=80))
        result = assessor.assess(patient, protocol)
        assert result.eligible
        assert len(result.violations) == 1
        violation = result.violations[0]
        assert violation.severity == ViolationSeverity.CAUTION
        assert violation.suggested_modification == DOSE_REDUCTION_FOR_PERFORMANCE

    def test_two_grades_over_is_exclusionary(self, assessor, protocol):
        """ECOG two grades over the maximum excludes the patient."""
        patient = make_patient(performance_metrics=PerformanceMetrics(ecog_score=3, karnofsky_score=80))
        result = assessor.assess(patient, protocol)
        assert not result.eligible
        assert result.exclusionary_violations[0].criterion == "performance_status"

    def test_low_karnofsky_is_caution(self, assessor, protocol):
        """Karnofsky under the minimum is a caution only."""
        patient = make_patient(performance_metrics=PerformanceMetrics(ecog_score=1, karnofsky_score=60))
        result = assessor.assess(patient, protocol)
        assert result.eligible
        assert [v.severity for v in result.violations] == [ViolationSeverity.CAUTION]

    def test_missing_ecog_requests_assessment(self, assessor, protocol):
        """Missing ECOG asks for an assessment and warns."""
        patient = make_patient(performance_metrics=PerformanceMetrics())
        result = assessor.assess(patient, protocol)
        assert result.eligible
        assert "ECOG performance status assessment" in result.required_tests
        assert any(w.category == "performance_status" for w in result.warnings)


class TestOrganFunctionChecks:
    """Per-system organ function checks."""

    def test_mild_deficit_is_addressable(self, assessor, protocol):
        """A mild lab deficit is exclusionary but resolvable by dose modification."""
        patient = make_patient(laboratory_values=labs(liver=LiverPanel(total_bilirubin=1.8, alt=25, ast=22)))
        result = assessor.assess(patient, protocol)
        assert not result.eligible
        violation = result.violations[0]
        assert violation.criterion == "organ_function:hepatic"
        assert violation.severity == ViolationSeverity.EXCLUSIONARY
        assert violation.suggested_modification == "Consider dose modification for hepatic function"
        assert result.estimated_eligibility_after_optimization == 1.0

    def test_severe_deficit_is_not_addressable(self, assessor, protocol):
        """Severe deficits carry no modification and lower the estimate."""
        patient = make_patient(laboratory_values=labs(hematology=Hematology(anc=0.9, platelets=80, hemoglobin=12)))
        result = assessor.assess(patient, protocol)
        hematologic = [v for v in result.violations if v.criterion == "organ_function:hematologic"]
        assert len(hematologic) == 2
        assert all(v.suggested_modification is None for v in hematologic)
        assert result.estimated_eligibility_after_optimization == pytest.approx(0.5)

    def test_missing_labs_become_required_tests(self, assessor, protocol):
        """Missing labs for constrained systems become required tests."""
        result = assessor.assess(make_patient(laboratory_values=None), protocol)
        assert result.eligible
        assert "Hepatic function labs" in result.required_tests
        assert "Renal function labs" in result.required_tests
        assert "Hematologic function labs" in result.required_tests


class TestBiomarkerChecks:
    """Required and excluded biomarker checks."""

    def test_missing_required_biomarker(self, assessor, patient):
        """An untested required biomarker excludes the patient and is listed as a test."""
        result = assessor.assess(patient, egfr_protocol())
        assert not result.eligible
        assert "EGFR" in result.required_tests
        assert any(v.criterion == "biomarker:EGFR" for v in result.exclusionary_violations)

    def test_pending_result_is_caution(self, assessor):
        """A pending result is a caution and asks for repeat testing."""
        patient = make_patient(disease_status=DiseaseStatus(
            cancer_type_id="NSCLC", stage="IV",
            biomarker_status={"EGFR": BiomarkerResult(status=BiomarkerStatus.PENDING)},
        ))
        result = assessor.assess(patient, egfr_protocol())
        assert result.eligible
        assert result.violations[0].severity == ViolationSeverity.CAUTION
        assert result.violations[0].suggested_modification == "Repeat EGFR testing before treatment decision"
        assert "EGFR" in result.required_tests

    def test_negative_result_is_exclusionary(self, assessor):
        """A known negative result excludes without requesting a test."""
        patient = make_patient(disease_status=DiseaseStatus(
            cancer_type_id="NSCLC", stage="IV",
            biomarker_status={"EGFR": BiomarkerResult(status=BiomarkerStatus.WILD_TYPE)},
        ))
        result = assessor.assess(patient, egfr_protocol())
        assert not result.eligible
        assert "EGFR" not in result.required_tests

    def test_excluded_biomarker_present(self, assessor):
        """A present excluded biomarker excludes the patient."""
        protocol = make_protocol(eligibility_criteria=make_criteria(
            biomarkers=BiomarkerCriteria(excluded=[BiomarkerRequirement(biomarker_id="KRAS")])
        ))
        patient = make_patient(disease_status=DiseaseStatus(
            cancer_type_id="NSCLC", stage="IV",
            biomarker_status={"KRAS": BiomarkerResult(status=BiomarkerStatus.MUTATED)},
        ))
        result = assessor.assess(patient, protocol)
        assert not result.eligible
        assert "Excluded biomarker" in result.violations[0].description


class TestAgeAndExclusions:
    """Age range and free-text exclusion checks."""

    def test_age_above_range(self, assessor, protocol):
        """Age above the range is a violation reporting the range."""
        result = assessor.assess(make_patient(demographics=Demographics(age=85)), protocol)
        assert not result.eligible
        assert result.violations[0].criterion == "age"
        assert result.violations[0].required_value == "18-80"

    def test_missing_age(self, assessor, protocol):
        """Missing age asks for it without excluding."""
        result = assessor.assess(make_patient(demographics=Demographics()), protocol)
        assert result.eligible
        assert "Patient age" in result.required_tests

    def test_exclusion_matches_comorbidity(self, assessor):
        """Free-text exclusions match comorbidities case-insensitively."""
        protocol = make_protocol(eligibility_criteria=make_criteria(exclusions=["Active brain metastases"]))
        patient = make_patient(comorbidities=[Comorbidity(condition="active brain metastases")])
        result = assessor.assess(patient, protocol)
        assert not result.eligible
        assert result.violations[0].criterion == "exclusion_criteria"


class TestWarnings:
    """Soft risk factors that never change the verdict."""

    def test_significant_comorbidity_warns(self, assessor, protocol):
        """A significant comorbidity warns but stays eligible."""
        patient = make_patient(comorbidities=[Comorbidity(condition="COPD", impact="significant")])
        result = assessor.assess(patient, protocol)
        assert result.eligible
        assert [w.category for w in result.warnings] == ["comorbidity"]

    def test_declared_contraindication_not_repeated_as_warning(self, assessor):
        """A comorbidity already declared as a contraindication is not also a warning."""
        protocol = make_protocol(contraindications=[Contraindication(condition="COPD")])
        patient = make_patient(comorbidities=[Comorbidity(condition="COPD", impact="significant")])
        assert assessor.assess(patient, protocol).warnings == []

    def test_moderate_interaction_warns(self, assessor):
        """Moderate interactions warn; major ones are left to the contraindication detector."""
        protocol = make_protocol(drug_interactions=[
            DrugInteraction(drug="pemetrexed", interacting_drug="ibuprofen", severity=InteractionSeverity.MODERATE),
            DrugInteraction(drug="carboplatin", interacting_drug="warfarin", severity=InteractionSeverity.MAJOR),
        ])
        patient = make_patient(current_medications=[Medication(name="Ibuprofen"), Medication(name="warfarin")])
        warnings = assessor.assess(patient, protocol).warnings
        assert len(warnings) == 1
        assert "Ibuprofen" in warnings[0].description

    def test_medication_interaction_list(self, assessor, protocol):
        """A medication listing a protocol drug as an interaction warns."""
        patient = make_patient(current_medications=[Medication(name="probenecid", interactions=["pemetrexed"])])
        warnings = assessor.assess(patient, protocol).warnings
        assert warnings[0].category == "drug_interaction"

    def test_stage_mismatch_warns(self, assessor, protocol):
        """A stage outside the protocol list warns."""
        patient = make_patient(disease_status=DiseaseStatus(cancer_type_id="NSCLC", stage="III"))
        result = assessor.assess(patient, protocol)
        assert result.eligible
        assert any(w.category == "stage" for w in result.warnings)

    def test_stage_within_range_does_not_warn(self, assessor):
        """A stage inside a multi-stage entry does not warn."""
        protocol = make_protocol(eligibility_criteria=make_criteria(stage_requirements=["IIIB/IV"]))
        result = assessor.assess(make_patient(), protocol)
        assert not any(w.category == "stage" for w in result.warnings)


class TestEstimate:
    """Tests for estimate_after_optimization."""

    def test_counts_only_unaddressable(self):
        """Violations with a suggested modification do not lower the estimate."""
        violations = [
            Violation(criterion="a", severity=ViolationSeverity.EXCLUSIONARY, description="x"),
            Violation(criterion="b", severity=ViolationSeverity.CAUTION, description="y"),
            Violation(criterion="c", severity=ViolationSeverity.EXCLUSIONARY, description="z",
                      suggested_modification="fix"),
        ]
        assert estimate_after_optimization(violations) == pytest.approx(0.70)

    def test_floors_at_zero(self):
        """The estimate never drops below 0.0."""
        violations = [
            Violation(criterion=str(i), severity=ViolationSeverity.EXCLUSIONARY, description="x")
            for i in range(6)
        ]
        assert estimate_after_optimization(violations) == 0.0

    def test_helper_matches_assessor(self, patient):
        """The module-level helper agrees with the assessor."""
        protocol = egfr_protocol()
        assert assess_eligibility(patient, protocol) == EligibilityAssessor().assess(patient, protocol)
