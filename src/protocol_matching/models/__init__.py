"""
Domain models for protocol matching.

MatchingRequest lives in models.request (it depends on the matching config).
"""

from src.protocol_matching.models.enums import (
    BiomarkerStatus,
    ConfidenceLevel,
    ContraindicationType,
    EligibilityStatus,
    EvidenceLevel,
    InteractionSeverity,
    MonitoringIntensity,
    ResponseType,
    RiskLevel,
    TreatmentIntent,
    TreatmentLine,
    ViolationSeverity,
)
from src.protocol_matching.models.patient import (
    Allergy,
    BiomarkerResult,
    CardiacFunction,
    Comorbidity,
    Demographics,
    DiseaseStatus,
    GeneticProfile,
    GeneticTestResult,
    Hematology,
    LaboratoryValues,
    LiverPanel,
    Medication,
    MetabolicPanel,
    PatientProfile,
    PerformanceMetrics,
    PriorTreatment,
    PulmonaryFunction,
    ToxicityRecord,
)
from src.protocol_matching.models.protocol import (
    AgeRange,
    BiomarkerCriteria,
    BiomarkerRequirement,
    CardiacCriteria,
    Contraindication,
    DrugInteraction,
    EligibilityCriteria,
    HematologicCriteria,
    HepaticCriteria,
    OrganFunctionCriteria,
    OutcomeStatistics,
    PerformanceStatusCriteria,
    ProtocolDrug,
    PulmonaryCriteria,
    RenalCriteria,
    TreatmentProtocol,
)
from src.protocol_matching.models.results import (
    ContraindicationResult,
    CriterionScore,
    EligibilityAssessment,
    EligibilityWarning,
    MatchingResult,
    MatchScoreBreakdown,
    OrganSystemScore,
    ProtocolModification,
    SafetyAssessment,
    TreatmentRecommendation,
    Violation,
)
