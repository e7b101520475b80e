"""
Pydantic models for treatment protocols and their eligibility criteria.

Protocols are supplied by a repository and are read-only to the engine.
Criteria are a closed set of typed records validated on construction.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from src.protocol_matching.models.enums import (
    BiomarkerStatus,
    ContraindicationType,
    EvidenceLevel,
    InteractionSeverity,
    TreatmentIntent,
    TreatmentLine,
)


class PerformanceStatusCriteria(BaseModel):
    """Allowed functional status."""
    ecog_allowed: List[int] = Field(default_factory=list, description="Allowed ECOG grades, empty = unrestricted")
    karnofsky_min: Optional[int] = Field(None, ge=0, le=100)

    @field_validator("ecog_allowed")
    @classmethod
    def ecog_grades_in_range(cls, value: List[int]) -> List[int]:
        for grade in value:
            if grade < 0 or grade > 5:
                raise ValueError(f"ECOG grade out of range: {grade}")
        return sorted(set(value))

    @property
    def ecog_max(self) -> Optional[int]:
        return max(self.ecog_allowed) if self.ecog_allowed else None


class HepaticCriteria(BaseModel):
    bilirubin_max: Optional[float] = Field(None, description="Total bilirubin ceiling, mg/dL")
    alt_max: Optional[float] = Field(None, description="ALT ceiling, U/L")
    ast_max: Optional[float] = Field(None, description="AST ceiling, U/L")
    albumin_min: Optional[float] = Field(None, description="Albumin floor, g/dL")


class RenalCriteria(BaseModel):
    creatinine_max: Optional[float] = Field(None, description="Serum creatinine ceiling, mg/dL")
    creatinine_clearance_min: Optional[float] = Field(None, description="CrCl floor, mL/min")
    egfr_min: Optional[float] = Field(None, description="eGFR floor, mL/min/1.73m2")


class HematologicCriteria(BaseModel):
    anc_min: Optional[float] = Field(None, description="ANC floor, x10^9/L")
    platelets_min: Optional[float] = Field(None, description="Platelet floor, x10^9/L")
    hemoglobin_min: Optional[float] = Field(None, description="Hemoglobin floor, g/dL")


class CardiacCriteria(BaseModel):
    lvef_min: Optional[float] = Field(None, description="LVEF floor, %")


class PulmonaryCriteria(BaseModel):
    fev1_min: Optional[float] = Field(None, description="FEV1 floor, % predicted")
    dlco_min: Optional[float] = Field(None, description="DLCO floor, % predicted")


class OrganFunctionCriteria(BaseModel):
    """Organ function limits by system. A None system is unconstrained."""
    hepatic: Optional[HepaticCriteria] = None
    renal: Optional[RenalCriteria] = None
    hematologic: Optional[HematologicCriteria] = None
    cardiac: Optional[CardiacCriteria] = None
    pulmonary: Optional[PulmonaryCriteria] = None


class BiomarkerRequirement(BaseModel):
    """A required or excluded biomarker."""
    biomarker_id: str = Field(..., description="Biomarker or gene id, e.g. 'EGFR'")
    status: Optional[BiomarkerStatus] = Field(
        BiomarkerStatus.POSITIVE, description="Required/excluded status; None accepts any usable result"
    )
    threshold: Optional[float] = Field(None, description="Minimum quantitative value (e.g. PD-L1 >= 50)")
    description: Optional[str] = None

    def label(self) -> str:
        status = self.status.value if self.status else "tested"
        return f"{self.biomarker_id} {status}"


class BiomarkerCriteria(BaseModel):
    required: List[BiomarkerRequirement] = Field(default_factory=list)
    excluded: List[BiomarkerRequirement] = Field(default_factory=list)

    @property
    def has_requirements(self) -> bool:
        return bool(self.required or self.excluded)


class AgeRange(BaseModel):
    min_age: Optional[int] = Field(None, ge=0)
    max_age: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def min_not_above_max(self) -> "AgeRange":
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError(f"min_age {self.min_age} is greater than max_age {self.max_age}")
        return self


class EligibilityCriteria(BaseModel):
    """Protocol eligibility criteria."""
    performance_status: PerformanceStatusCriteria = Field(default_factory=PerformanceStatusCriteria)
    organ_function: OrganFunctionCriteria = Field(default_factory=OrganFunctionCriteria)
    biomarkers: BiomarkerCriteria = Field(default_factory=BiomarkerCriteria)
    stage_requirements: List[str] = Field(default_factory=list, description="Allowed stages, or 'Any'")
    age_range: Optional[AgeRange] = None
    exclusions: List[str] = Field(default_factory=list, description="Free-text exclusion criteria")


class ProtocolDrug(BaseModel):
    name: str
    drug_class: Optional[str] = None
    dose: Optional[str] = None
    route: Optional[str] = None


class Contraindication(BaseModel):
    """A declared contraindication."""
    id: Optional[str] = None
    condition: str = Field(..., description="Condition text matched against comorbidities and allergies")
    type: ContraindicationType = ContraindicationType.RELATIVE
    rationale: Optional[str] = None
    alternatives: List[str] = Field(default_factory=list)


class DrugInteraction(BaseModel):
    drug: str = Field(..., description="Protocol drug")
    interacting_drug: str = Field(..., description="Drug or drug class it interacts with")
    severity: InteractionSeverity = InteractionSeverity.MODERATE
    management: Optional[str] = None


class OutcomeStatistics(BaseModel):
    response_rate: Optional[float] = Field(None, ge=0, le=1)
    median_pfs_months: Optional[float] = None
    median_os_months: Optional[float] = None


class TreatmentProtocol(BaseModel):
    """A guideline-sourced treatment protocol."""
    id: str
    name: str
    code: Optional[str] = None
    cancer_types: List[str] = Field(default_factory=list)
    treatment_line: Optional[TreatmentLine] = None
    treatment_intent: Optional[TreatmentIntent] = None
    eligibility_criteria: EligibilityCriteria = Field(default_factory=EligibilityCriteria)
    drugs: List[ProtocolDrug] = Field(default_factory=list)
    contraindications: List[Contraindication] = Field(default_factory=list)
    drug_interactions: List[DrugInteraction] = Field(default_factory=list)
    expected_toxicities: List[str] = Field(default_factory=list)
    evidence_level: EvidenceLevel = EvidenceLevel.C
    guideline_source: Optional[str] = Field(None, description="NCCN, ESMO, FDA, ...")
    outcome_statistics: Optional[OutcomeStatistics] = None
    is_active: bool = True
    is_experimental: bool = False

    @property
    def is_investigational(self) -> bool:
        return self.is_experimental or self.treatment_intent == TreatmentIntent.INVESTIGATIONAL

    def applies_to(self, cancer_type_id: str) -> bool:
        key = cancer_type_id.strip().lower()
        return any(c.strip().lower() == key for c in self.cancer_types)
