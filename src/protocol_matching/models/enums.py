"""
Enumerations shared by the patient, protocol and result models.
"""

from enum import Enum


class TreatmentLine(str, Enum):
    """Line of therapy"""
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    FOURTH_PLUS = "fourth_plus"
    SALVAGE = "salvage"
    MAINTENANCE = "maintenance"
    BRIDGING = "bridging"


class TreatmentIntent(str, Enum):
    """Goal of a treatment protocol"""
    CURATIVE = "curative"
    ADJUVANT = "adjuvant"
    NEOADJUVANT = "neoadjuvant"
    PALLIATIVE = "palliative"
    SUPPORTIVE = "supportive"
    INVESTIGATIONAL = "investigational"


class ResponseType(str, Enum):
    """Best response to a prior treatment"""
    COMPLETE_RESPONSE = "complete_response"
    PARTIAL_RESPONSE = "partial_response"
    STABLE_DISEASE = "stable_disease"
    PROGRESSIVE_DISEASE = "progressive_disease"
    NOT_EVALUABLE = "not_evaluable"
    MIXED_RESPONSE = "mixed_response"


class BiomarkerStatus(str, Enum):
    """Result status of a biomarker test"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    AMPLIFIED = "amplified"
    MUTATED = "mutated"
    WILD_TYPE = "wild_type"
    HIGH = "high"
    LOW = "low"
    INTERMEDIATE = "intermediate"
    PENDING = "pending"
    INDETERMINATE = "indeterminate"
    UNKNOWN = "unknown"

    @property
    def is_ambiguous(self) -> bool:
        """Results that cannot be used for a treatment decision yet."""
        return self in (BiomarkerStatus.PENDING, BiomarkerStatus.INDETERMINATE, BiomarkerStatus.UNKNOWN)

    def canonical(self) -> "BiomarkerStatus":
        """Collapse synonymous statuses (mutated == positive, wild type == negative)."""
        if self == BiomarkerStatus.MUTATED:
            return BiomarkerStatus.POSITIVE
        if self == BiomarkerStatus.WILD_TYPE:
            return BiomarkerStatus.NEGATIVE
        return self


class EvidenceLevel(str, Enum):
    """Strength-of-evidence grade, A strongest"""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    @property
    def rank(self) -> int:
        """0 for A through 4 for E."""
        return "ABCDE".index(self.value)


class ViolationSeverity(str, Enum):
    EXCLUSIONARY = "exclusionary"
    CAUTION = "caution"
    MONITORING_REQUIRED = "monitoring_required"


class ContraindicationType(str, Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class InteractionSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CONTRAINDICATED = "contraindicated"


class EligibilityStatus(str, Enum):
    ELIGIBLE = "eligible"
    PARTIALLY_ELIGIBLE = "partially_eligible"
    INELIGIBLE = "ineligible"
    CONTRAINDICATED = "contraindicated"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class MonitoringIntensity(str, Enum):
    STANDARD = "standard"
    ENHANCED = "enhanced"
    INTENSIVE = "intensive"
