"""
Treatment History Scorer

Biases against protocols the patient already failed, drugs they are
likely resistant to, and regimens whose toxicities they tolerated badly.
Never disqualifies on its own: the score floors at 0.1.
"""

from typing import List

from src.protocol_matching.models.enums import ResponseType
from src.protocol_matching.models.patient import PatientProfile, PriorTreatment
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import CriterionScore
from src.protocol_matching.text import normalize_term, terms_match

CRITERION = "treatment_history"

SAME_PROTOCOL_PROGRESSION = 0.2
SAME_PROTOCOL_STABLE = 0.6
CROSS_RESISTANCE = 0.7
TOXICITY_OVERLAP = 0.8
SCORE_FLOOR = 0.1
SEVERE_TOXICITY_GRADE = 3


def _is_same_protocol(prior: PriorTreatment, protocol: TreatmentProtocol) -> bool:
    if prior.protocol_id and prior.protocol_id == protocol.id:
        return True
    return bool(prior.protocol_name) and normalize_term(prior.protocol_name) == normalize_term(protocol.name)


def _suggests_resistance(prior: PriorTreatment) -> bool:
    if prior.best_response == ResponseType.PROGRESSIVE_DISEASE:
        return True
    reason = (prior.reason_for_discontinuation or "").lower()
    return "resistan" in reason or "progress" in reason


def _shared_agents(prior: PriorTreatment, protocol: TreatmentProtocol) -> List[str]:
    shared = []
    for drug in protocol.drugs:
        if any(terms_match(drug.name, d) for d in prior.drugs):
            shared.append(drug.name)
        elif drug.drug_class and any(terms_match(drug.drug_class, c) for c in prior.drug_classes):
            shared.append(drug.drug_class)
    return shared


def _overlapping_toxicities(prior: PriorTreatment, protocol: TreatmentProtocol) -> List[str]:
    return [
        t.name for t in prior.toxicities
        if t.grade >= SEVERE_TOXICITY_GRADE
        and any(terms_match(t.name, expected) for expected in protocol.expected_toxicities)
    ]


def score_treatment_history(patient: PatientProfile, protocol: TreatmentProtocol) -> CriterionScore:
    """
    Score prior treatment exposure.

    Penalties multiply: same protocol with progression x0.2 (stable
    disease x0.6), cross-resistance x0.7, overlapping grade >=3
    toxicity x0.8.
    """
    if patient.is_treatment_naive:
        return CriterionScore(criterion=CRITERION, score=1.0, explanation="Treatment-naive")

    score = 1.0
    notes = []
    for prior in patient.treatment_history:
        label = prior.protocol_name or prior.protocol_id or "prior regimen"
        same = _is_same_protocol(prior, protocol)

        if same and prior.best_response == ResponseType.PROGRESSIVE_DISEASE:
            score *= SAME_PROTOCOL_PROGRESSION
            notes.append(f"progressed on {label} previously")
        elif same and prior.best_response == ResponseType.STABLE_DISEASE:
            score *= SAME_PROTOCOL_STABLE
            notes.append(f"only stable disease on {label} previously")
        elif not same and _suggests_resistance(prior):
            shared = _shared_agents(prior, protocol)
            if shared:
                score *= CROSS_RESISTANCE
                notes.append(f"possible cross-resistance via {', '.join(shared)} after {label}")

        overlaps = _overlapping_toxicities(prior, protocol)
        if overlaps:
            score *= TOXICITY_OVERLAP
            notes.append(f"grade >=3 {', '.join(overlaps)} on {label}")

    score = max(SCORE_FLOOR, score)
    explanation = "; ".join(notes) if notes else f"{len(patient.treatment_history)} prior regimen(s), no conflicts"
    return CriterionScore(criterion=CRITERION, score=round(score, 10), explanation=explanation)
