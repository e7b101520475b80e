"""
Tests for contraindication detection and safety classification.
"""

import pytest

from conftest import make_patient, make_protocol

from src.protocol_matching.config import MatchingThresholds
from src.protocol_matching.models.enums import (
    ConfidenceLevel,
    ContraindicationType,
    EligibilityStatus,
    InteractionSeverity,
    MonitoringIntensity,
    RiskLevel,
)
from src.protocol_matching.models.patient import Allergy, Comorbidity, Medication
from src.protocol_matching.models.protocol import Contraindication, DrugInteraction
from src.protocol_matching.models.results import ContraindicationResult, EligibilityAssessment
from src.protocol_matching.safety import ContraindicationDetector, SafetyClassifier, detect_contraindications


def contraindication(kind, mitigation=None, description=None):
    return ContraindicationResult(
        type=kind,
        category="medical",
        description=description or f"{kind.value} finding",
        override_possible=kind == ContraindicationType.RELATIVE,
        mitigation=mitigation,
    )


ABSOLUTE = contraindication(ContraindicationType.ABSOLUTE)
RELATIVE = contraindication(ContraindicationType.RELATIVE, mitigation="Weekly CBC")
OTHER_RELATIVE = contraindication(ContraindicationType.RELATIVE, description="second relative finding")

ELIGIBLE = EligibilityAssessment(eligible=True)
INELIGIBLE = EligibilityAssessment(eligible=False)


@pytest.fixture
def detector():
    return ContraindicationDetector()


@pytest.fixture
def classifier():
    return SafetyClassifier(MatchingThresholds())


class TestContraindicationDetector:
    """Tests for ContraindicationDetector.detect."""

    def test_no_contraindications(self, detector, patient, protocol):
        """A clean profile yields no contraindications."""
        assert detector.detect(patient, protocol) == []

    def test_severe_drug_allergy_is_absolute(self, detector, protocol):
        """An anaphylactic allergy to a protocol drug is absolute and not overridable."""
        patient = make_patient(allergies=[Allergy(allergen="carboplatin", reaction="anaphylaxis",
                                                  severity="anaphylaxis")])
        results = detector.detect(patient, protocol)
        assert len(results) == 1
        assert results[0].type == ContraindicationType.ABSOLUTE
        assert results[0].category == "allergy"
        assert not results[0].override_possible

    def test_mild_drug_allergy_is_relative(self, detector, protocol):
        """A mild allergy is relative and suggests desensitization."""
        patient = make_patient(allergies=[Allergy(allergen="pemetrexed", severity="mild")])
        results = detector.detect(patient, protocol)
        assert results[0].type == ContraindicationType.RELATIVE
        assert results[0].override_possible
        assert "desensitization" in results[0].mitigation

    def test_allergy_to_drug_class(self, detector, protocol):
        """An allergy to a drug class flags the drugs in that class."""
        patient = make_patient(allergies=[Allergy(allergen="platinum compounds", severity="severe")])
        results = detector.detect(patient, protocol)
        assert [r.source for r in results] == ["carboplatin"]

    def test_declared_absolute_contraindication(self, detector):
        """A declared contraindication carries its id and alternatives."""
        protocol = make_protocol(contraindications=[
            Contraindication(id="ci-ild", condition="interstitial lung disease",
                             type=ContraindicationType.ABSOLUTE, alternatives=["docetaxel"]),
        ])
        patient = make_patient(comorbidities=[Comorbidity(condition="Interstitial lung disease")])
        results = detector.detect(patient, protocol)
        assert results[0].type == ContraindicationType.ABSOLUTE
        assert results[0].source == "ci-ild"
        assert results[0].alternatives == ["docetaxel"]

    def test_interaction_severities(self, detector):
        """Contraindicated interactions are absolute, major ones relative, moderate ones ignored."""
        protocol = make_protocol(drug_interactions=[
            DrugInteraction(drug="pemetrexed", interacting_drug="methotrexate",
                            severity=InteractionSeverity.CONTRAINDICATED),
            DrugInteraction(drug="carboplatin", interacting_drug="aminoglycosides",
                            severity=InteractionSeverity.MAJOR, management="Monitor renal function"),
            DrugInteraction(drug="pemetrexed", interacting_drug="ibuprofen",
                            severity=InteractionSeverity.MODERATE),
        ])
        patient = make_patient(current_medications=[
            Medication(name="methotrexate"),
            Medication(name="gentamicin", drug_class="aminoglycosides"),
            Medication(name="ibuprofen"),
        ])
        results = {r.source: r for r in detector.detect(patient, protocol)}
        assert results["methotrexate"].type == ContraindicationType.ABSOLUTE
        assert results["gentamicin"].type == ContraindicationType.RELATIVE
        assert results["gentamicin"].mitigation == "Monitor renal function"
        assert "ibuprofen" not in results

    def test_duplicates_removed(self, detector):
        """The same finding is reported once."""
        protocol = make_protocol(drug_interactions=[
            DrugInteraction(drug="pemetrexed", interacting_drug="methotrexate",
                            severity=InteractionSeverity.MAJOR),
        ])
        patient = make_patient(current_medications=[Medication(name="methotrexate"), Medication(name="methotrexate")])
        assert len(detector.detect(patient, protocol)) == 1

    def test_helper(self, protocol):
        """The module-level helper uses a default detector."""
        patient = make_patient(allergies=[Allergy(allergen="carboplatin", severity="severe")])
        assert detect_contraindications(patient, protocol)[0].type == ContraindicationType.ABSOLUTE


class TestEligibilityStatus:
    """Status precedence: contraindicated, ineligible, then score bands."""

    def test_absolute_contraindication_wins(self, classifier):
        """An absolute contraindication overrides any score."""
        assert classifier.eligibility_status(0.99, ELIGIBLE, [ABSOLUTE]) == EligibilityStatus.CONTRAINDICATED

    def test_ineligible_before_score(self, classifier):
        """An ineligible assessment overrides a high score."""
        assert classifier.eligibility_status(0.95, INELIGIBLE, []) == EligibilityStatus.INELIGIBLE

    def test_score_bands(self, classifier):
        """Scores map to eligible, partially eligible and ineligible bands."""
        assert classifier.eligibility_status(0.80, ELIGIBLE, [RELATIVE]) == EligibilityStatus.ELIGIBLE
        assert classifier.eligibility_status(0.65, ELIGIBLE, []) == EligibilityStatus.PARTIALLY_ELIGIBLE
        assert classifier.eligibility_status(0.50, ELIGIBLE, []) == EligibilityStatus.INELIGIBLE


class TestConfidence:
    """Tests for confidence labels."""

    def test_bands(self, classifier):
        """Confidence follows the score."""
        assert classifier.confidence(0.95, []) == ConfidenceLevel.HIGH
        assert classifier.confidence(0.80, []) == ConfidenceLevel.MEDIUM
        assert classifier.confidence(0.70, []) == ConfidenceLevel.LOW

    def test_absolute_contraindication_lowers_confidence(self, classifier):
        """An absolute contraindication forces low confidence."""
        assert classifier.confidence(0.99, [ABSOLUTE]) == ConfidenceLevel.LOW


class TestSafetyAssessment:
    """Tests for risk level and safety score."""

    def test_risk_levels(self, classifier):
        """Risk rises with contraindications and weak organ function."""
        assert classifier.risk_level([], 1.0) == RiskLevel.LOW
        assert classifier.risk_level([RELATIVE], 1.0) == RiskLevel.MODERATE
        assert classifier.risk_level([], 0.7) == RiskLevel.MODERATE
        assert classifier.risk_level([RELATIVE, OTHER_RELATIVE], 1.0) == RiskLevel.HIGH
        assert classifier.risk_level([], 0.4) == RiskLevel.HIGH
        assert classifier.risk_level([RELATIVE, OTHER_RELATIVE], 0.4) == RiskLevel.VERY_HIGH
        assert classifier.risk_level([ABSOLUTE], 1.0) == RiskLevel.VERY_HIGH

    def test_clean_profile(self, classifier):
        """No findings means low risk and standard monitoring."""
        safety = classifier.assess_safety([], 1.0)
        assert safety.overall_safety_score == 1.0
        assert safety.risk_level == RiskLevel.LOW
        assert safety.monitoring_intensity == MonitoringIntensity.STANDARD
        assert safety.special_precautions == []

    def test_relative_contraindication(self, classifier):
        """A relative finding costs 0.15 and adds its mitigation as a precaution."""
        safety = classifier.assess_safety([RELATIVE], 1.0)
        assert safety.overall_safety_score == pytest.approx(0.85)
        assert safety.monitoring_intensity == MonitoringIntensity.ENHANCED
        assert safety.special_precautions == ["relative finding: Weekly CBC"]

    def test_absolute_contraindication(self, classifier):
        """An absolute finding halves the safety score and needs intensive monitoring."""
        safety = classifier.assess_safety([ABSOLUTE], 1.0)
        assert safety.overall_safety_score == pytest.approx(0.5)
        assert safety.risk_level == RiskLevel.VERY_HIGH
        assert safety.monitoring_intensity == MonitoringIntensity.INTENSIVE

    def test_low_safety_score_escalates_risk(self, classifier):
        """A safety score under the exclusion threshold is very high risk."""
        # organ 0.3 alone is high risk; 0.3 - 0.15 falls under the exclusion threshold
        safety = classifier.assess_safety([RELATIVE], 0.3)
        assert safety.overall_safety_score == pytest.approx(0.15)
        assert safety.risk_level == RiskLevel.VERY_HIGH
