"""
Performance Status Scorer

Scores patient ECOG and Karnofsky against the protocol's allowed
functional status.
"""

from typing import List, Optional

from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import CriterionScore

CRITERION = "performance_status"

ECOG_WEIGHT = 0.7
KARNOFSKY_WEIGHT = 0.3


def ecog_component(ecog: int, allowed: List[int]) -> float:
    """
    Score an ECOG grade against the allowed set.

    A grade in the set, or fitter than its maximum, scores 1.0. Each grade
    beyond the maximum lowers the score: 0.7, 0.4, then 0.1.
    """
    if not allowed or ecog in allowed:
        return 1.0
    excess = ecog - max(allowed)
    if excess <= 0:
        return 1.0
    if excess == 1:
        return 0.7
    if excess == 2:
        return 0.4
    return 0.1


def karnofsky_component(karnofsky: Optional[int], minimum: Optional[int]) -> float:
    if karnofsky is None or minimum is None:
        return 1.0
    if karnofsky >= minimum:
        return 1.0
    if karnofsky >= minimum - 10:
        return 0.8
    if karnofsky >= minimum - 20:
        return 0.5
    return 0.2


def score_performance_status(patient: PatientProfile, protocol: TreatmentProtocol) -> CriterionScore:
    """
    Score functional status as 0.7 * ECOG component + 0.3 * Karnofsky component.

    Args:
        patient: Patient profile
        protocol: Candidate protocol

    Returns:
        CriterionScore in [0, 1]
    """
    criteria = protocol.eligibility_criteria.performance_status
    metrics = patient.performance_metrics

    if not criteria.ecog_allowed and criteria.karnofsky_min is None:
        return CriterionScore(criterion=CRITERION, score=1.0, explanation="No performance status requirement")

    if criteria.ecog_allowed and metrics.ecog_score is None:
        return CriterionScore(
            criterion=CRITERION,
            score=0.5,
            explanation=f"ECOG not recorded; protocol allows ECOG {criteria.ecog_allowed}",
            data_gap=True,
        )

    ecog = ecog_component(metrics.ecog_score, criteria.ecog_allowed) if metrics.ecog_score is not None else 1.0
    karnofsky = karnofsky_component(metrics.karnofsky_score, criteria.karnofsky_min)
    score = ECOG_WEIGHT * ecog + KARNOFSKY_WEIGHT * karnofsky

    parts = []
    if criteria.ecog_allowed:
        parts.append(f"ECOG {metrics.ecog_score} vs allowed {criteria.ecog_allowed} ({ecog:.1f})")
    if criteria.karnofsky_min is not None:
        shown = metrics.karnofsky_score if metrics.karnofsky_score is not None else "n/a"
        parts.append(f"Karnofsky {shown} vs minimum {criteria.karnofsky_min} ({karnofsky:.1f})")

    return CriterionScore(criterion=CRITERION, score=round(score, 10), explanation="; ".join(parts))
