"""
Shared fixtures for protocol matching tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.protocol_matching.models.enums import EvidenceLevel, TreatmentLine
from src.protocol_matching.models.patient import (
    Demographics,
    DiseaseStatus,
    Hematology,
    LaboratoryValues,
    LiverPanel,
    MetabolicPanel,
    PatientProfile,
    PerformanceMetrics,
)
from src.protocol_matching.models.protocol import (
    AgeRange,
    EligibilityCriteria,
    HematologicCriteria,
    HepaticCriteria,
    OrganFunctionCriteria,
    PerformanceStatusCriteria,
    ProtocolDrug,
    RenalCriteria,
    TreatmentProtocol,
)


def make_patient(**overrides) -> PatientProfile:
    """Fit stage IV NSCLC patient with normal labs and no history."""
    fields = dict(
        patient_id="patient-1",
        demographics=Demographics(age=55, sex="female"),
        disease_status=DiseaseStatus(cancer_type_id="NSCLC", stage="IV", histology="adenocarcinoma"),
        performance_metrics=PerformanceMetrics(ecog_score=0, karnofsky_score=90),
        laboratory_values=LaboratoryValues(
            hematology=Hematology(wbc=6.0, anc=3.2, hemoglobin=13.1, platelets=250),
            metabolic_panel=MetabolicPanel(creatinine=0.9, creatinine_clearance=95, egfr=90, albumin=4.0),
            liver_panel=LiverPanel(total_bilirubin=0.6, alt=25, ast=22, alkaline_phosphatase=80),
        ),
    )
    fields.update(overrides)
    return PatientProfile(**fields)


def make_criteria(**overrides) -> EligibilityCriteria:
    fields = dict(
        performance_status=PerformanceStatusCriteria(ecog_allowed=[0, 1], karnofsky_min=70),
        organ_function=OrganFunctionCriteria(
            hepatic=HepaticCriteria(bilirubin_max=1.5, alt_max=120, ast_max=120),
            renal=RenalCriteria(creatinine_max=1.5),
            hematologic=HematologicCriteria(anc_min=1.5, platelets_min=100, hemoglobin_min=9.0),
        ),
        stage_requirements=["IV"],
        age_range=AgeRange(min_age=18, max_age=80),
    )
    fields.update(overrides)
    return EligibilityCriteria(**fields)


def make_protocol(**overrides) -> TreatmentProtocol:
    """First-line NSCLC doublet with no biomarker requirements."""
    fields = dict(
        id="nsclc-carbo-pem",
        name="Carboplatin + Pemetrexed",
        cancer_types=["NSCLC"],
        treatment_line=TreatmentLine.FIRST,
        eligibility_criteria=make_criteria(),
        drugs=[
            ProtocolDrug(name="carboplatin", drug_class="platinum"),
            ProtocolDrug(name="pemetrexed", drug_class="antifolate"),
        ],
        expected_toxicities=["neutropenia", "anemia", "fatigue"],
        evidence_level=EvidenceLevel.A,
        guideline_source="NCCN",
    )
    fields.update(overrides)
    return TreatmentProtocol(**fields)


@pytest.fixture
def patient() -> PatientProfile:
    return make_patient()


@pytest.fixture
def protocol() -> TreatmentProtocol:
    return make_protocol()
