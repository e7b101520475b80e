"""
Pydantic models for the patient profile consumed by the matching engine.

The profile is owned by the caller and treated as read-only input for the
duration of one matching request.
"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from src.protocol_matching.models.enums import BiomarkerStatus, ResponseType, TreatmentLine

TMB_HIGH_CUTOFF = 10.0


class Demographics(BaseModel):
    """Basic demographic data."""
    age: Optional[int] = Field(None, ge=0, le=120, description="Age in years")
    sex: Optional[str] = Field(None, description="Sex recorded for the patient")
    bmi: Optional[float] = Field(None, gt=0, description="Body mass index")
    smoking_status: Optional[str] = Field(None, description="never, former, current")
    alcohol_use: Optional[str] = Field(None, description="none, moderate, heavy")


class BiomarkerResult(BaseModel):
    """A single biomarker test result."""
    status: BiomarkerStatus
    value: Optional[float] = Field(None, description="Quantitative result (e.g. PD-L1 TPS %)")
    unit: Optional[str] = None
    test_date: Optional[date] = None


class DiseaseStatus(BaseModel):
    """Current disease status."""
    cancer_type_id: Optional[str] = Field(None, description="Cancer type identifier (e.g. 'NSCLC')")
    stage: Optional[str] = Field(None, description="Stage as recorded (e.g. 'IIIA', 'Stage IV')")
    histology: Optional[str] = None
    biomarker_status: Dict[str, BiomarkerResult] = Field(
        default_factory=dict, description="Biomarker id -> result"
    )
    metastatic_sites: List[str] = Field(default_factory=list)
    disease_burden: Optional[str] = Field(None, description="low, moderate, high")


class PerformanceMetrics(BaseModel):
    """Functional status scores."""
    ecog_score: Optional[int] = Field(None, ge=0, le=5, description="ECOG 0-5")
    karnofsky_score: Optional[int] = Field(None, ge=0, le=100, description="Karnofsky 0-100")
    assessment_date: Optional[date] = None

    @field_validator("karnofsky_score")
    @classmethod
    def karnofsky_in_steps_of_ten(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value % 10 != 0:
            raise ValueError("Karnofsky score must be a multiple of 10")
        return value


class ToxicityRecord(BaseModel):
    """Toxicity observed during a prior treatment."""
    name: str
    grade: int = Field(..., ge=1, le=5, description="CTCAE grade")


class PriorTreatment(BaseModel):
    """A prior protocol exposure."""
    protocol_id: Optional[str] = None
    protocol_name: Optional[str] = None
    drugs: List[str] = Field(default_factory=list)
    drug_classes: List[str] = Field(default_factory=list)
    treatment_line: Optional[TreatmentLine] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    best_response: Optional[ResponseType] = None
    reason_for_discontinuation: Optional[str] = None
    toxicities: List[ToxicityRecord] = Field(default_factory=list)


class Hematology(BaseModel):
    wbc: Optional[float] = Field(None, description="x10^9/L")
    anc: Optional[float] = Field(None, description="Absolute neutrophil count, x10^9/L")
    hemoglobin: Optional[float] = Field(None, description="g/dL")
    platelets: Optional[float] = Field(None, description="x10^9/L")


class MetabolicPanel(BaseModel):
    creatinine: Optional[float] = Field(None, description="mg/dL")
    creatinine_clearance: Optional[float] = Field(None, description="mL/min")
    egfr: Optional[float] = Field(None, description="mL/min/1.73m2")
    albumin: Optional[float] = Field(None, description="g/dL")


class LiverPanel(BaseModel):
    total_bilirubin: Optional[float] = Field(None, description="mg/dL")
    alt: Optional[float] = Field(None, description="U/L")
    ast: Optional[float] = Field(None, description="U/L")
    alkaline_phosphatase: Optional[float] = Field(None, description="U/L")


class CardiacFunction(BaseModel):
    lvef: Optional[float] = Field(None, ge=0, le=100, description="Left ventricular ejection fraction %")


class PulmonaryFunction(BaseModel):
    fev1_percent: Optional[float] = Field(None, ge=0, description="FEV1 % predicted")
    dlco_percent: Optional[float] = Field(None, ge=0, description="DLCO % predicted")


class LaboratoryValues(BaseModel):
    """Most recent laboratory panel."""
    test_date: Optional[date] = None
    hematology: Optional[Hematology] = None
    metabolic_panel: Optional[MetabolicPanel] = None
    liver_panel: Optional[LiverPanel] = None
    cardiac: Optional[CardiacFunction] = None
    pulmonary: Optional[PulmonaryFunction] = None


class GeneticTestResult(BaseModel):
    """Germline or somatic test result for one gene."""
    gene: str
    alteration: Optional[str] = Field(None, description="e.g. 'exon 19 deletion', 'amplification'")
    status: BiomarkerStatus


class GeneticProfile(BaseModel):
    germline_results: List[GeneticTestResult] = Field(default_factory=list)
    somatic_results: List[GeneticTestResult] = Field(default_factory=list)
    msi_status: Optional[str] = Field(None, description="MSI-H, MSI-L or MSS")
    tmb: Optional[float] = Field(None, ge=0, description="Tumor mutational burden, mut/Mb")


class Comorbidity(BaseModel):
    condition: str
    severity: Optional[str] = Field(None, description="mild, moderate, severe")
    impact: Optional[str] = Field(None, description="minimal, moderate, significant")


class Medication(BaseModel):
    name: str
    drug_class: Optional[str] = None
    interactions: List[str] = Field(default_factory=list, description="Known interacting drugs or classes")


class Allergy(BaseModel):
    allergen: str
    reaction: Optional[str] = None
    severity: Optional[str] = Field(None, description="mild, moderate, severe, anaphylaxis")

    @property
    def is_severe(self) -> bool:
        return (self.severity or "").lower() in ("severe", "anaphylaxis", "life-threatening")


class PatientProfile(BaseModel):
    """Structured patient profile used for protocol matching."""
    patient_id: Optional[str] = None
    demographics: Demographics = Field(default_factory=Demographics)
    disease_status: DiseaseStatus = Field(default_factory=DiseaseStatus)
    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)
    treatment_history: List[PriorTreatment] = Field(default_factory=list)
    laboratory_values: Optional[LaboratoryValues] = None
    genetic_profile: Optional[GeneticProfile] = None
    comorbidities: List[Comorbidity] = Field(default_factory=list)
    current_medications: List[Medication] = Field(default_factory=list)
    allergies: List[Allergy] = Field(default_factory=list)
    preferences: Dict[str, str] = Field(default_factory=dict)

    @property
    def cancer_type_id(self) -> Optional[str]:
        return self.disease_status.cancer_type_id

    @property
    def is_treatment_naive(self) -> bool:
        return not self.treatment_history

    def find_biomarker(self, biomarker_id: str) -> Optional[BiomarkerResult]:
        """
        Look up a biomarker result by id, case-insensitively.

        The disease-status biomarker map takes precedence; somatic and
        germline results, MSI status and TMB are consulted after it.

        Args:
            biomarker_id: Biomarker or gene identifier (e.g. 'EGFR', 'MSI', 'TMB')

        Returns:
            BiomarkerResult or None if the patient has no usable record
        """
        key = biomarker_id.strip().lower()
        for name, result in self.disease_status.biomarker_status.items():
            if name.strip().lower() == key:
                return result

        genetics = self.genetic_profile
        if genetics is None:
            return None

        for test in genetics.somatic_results + genetics.germline_results:
            if test.gene.strip().lower() == key:
                return BiomarkerResult(status=test.status)

        if key in ("msi", "msi-h", "dmmr") and genetics.msi_status:
            msi_high = genetics.msi_status.strip().upper() == "MSI-H"
            if key == "msi":
                status = BiomarkerStatus.HIGH if msi_high else BiomarkerStatus.LOW
            else:
                status = BiomarkerStatus.POSITIVE if msi_high else BiomarkerStatus.NEGATIVE
            return BiomarkerResult(status=status)

        if key in ("tmb", "tmb-h") and genetics.tmb is not None:
            high = genetics.tmb >= TMB_HIGH_CUTOFF
            if key == "tmb":
                status = BiomarkerStatus.HIGH if high else BiomarkerStatus.LOW
            else:
                status = BiomarkerStatus.POSITIVE if high else BiomarkerStatus.NEGATIVE
            return BiomarkerResult(status=status, value=genetics.tmb, unit="mut/Mb")

        return None
