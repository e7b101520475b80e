"""
Contraindication Penalty

Additive penalty subtracted from the aggregate score for every declared
contraindication matched by a patient comorbidity or allergy.
"""

from dataclasses import dataclass
from typing import List, Tuple

from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import Contraindication, TreatmentProtocol
from src.protocol_matching.text import terms_match


@dataclass
class ContraindicationMatch:
    contraindication: Contraindication
    patient_term: str
    category: str  # medical or allergy


def match_declared_contraindications(
    patient: PatientProfile, protocol: TreatmentProtocol
) -> List[ContraindicationMatch]:
    """
    Match protocol contraindications against comorbidities and allergies.

    Each declared contraindication matches at most once.
    """
    matches = []
    for contraindication in protocol.contraindications:
        for comorbidity in patient.comorbidities:
            if terms_match(contraindication.condition, comorbidity.condition):
                matches.append(ContraindicationMatch(contraindication, comorbidity.condition, "medical"))
                break
        else:
            for allergy in patient.allergies:
                if terms_match(contraindication.condition, allergy.allergen):
                    matches.append(ContraindicationMatch(contraindication, allergy.allergen, "allergy"))
                    break
    return matches


def contraindication_penalty(
    patient: PatientProfile,
    protocol: TreatmentProtocol,
    per_match: float = 0.3,
    cap: float = 1.0,
) -> Tuple[float, str]:
    """
    Compute the contraindication penalty.

    Returns:
        Tuple of (penalty, explanation)
    """
    matches = match_declared_contraindications(patient, protocol)
    if not matches:
        return 0.0, "No declared contraindications matched"

    penalty = min(cap, per_match * len(matches))
    terms = ", ".join(f"{m.patient_term} ~ {m.contraindication.condition}" for m in matches)
    return round(penalty, 10), f"{len(matches)} contraindication(s) matched: {terms}"
