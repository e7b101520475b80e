"""
Weighted Aggregator

Runs the criterion scorers for a patient/protocol pair and combines them
into a MatchScoreBreakdown:

    total = clamp(sum(score_i * weight_i) - contraindication_penalty + evidence_bonus, 0, 1)
"""

import logging
from typing import Callable, Dict, List, Optional

from src.protocol_matching.config import DEFAULT_CONFIG, MatchingConfig, MatchingWeights
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import CriterionScore, MatchScoreBreakdown, OrganSystemScore
from src.protocol_matching.scoring.age import score_age
from src.protocol_matching.scoring.biomarker import score_biomarkers
from src.protocol_matching.scoring.contraindication import contraindication_penalty
from src.protocol_matching.scoring.organ_function import score_organ_function, score_organ_systems
from src.protocol_matching.scoring.performance import score_performance_status
from src.protocol_matching.scoring.stage import score_stage
from src.protocol_matching.scoring.treatment_history import score_treatment_history

logger = logging.getLogger(__name__)

NEUTRAL_SCORE = 0.5

# Exceptions a scorer can raise on malformed protocol or patient data
DATA_ERRORS = (AttributeError, TypeError, ValueError, KeyError)

Scorer = Callable[[PatientProfile, TreatmentProtocol], CriterionScore]


def safe_score(criterion: str, scorer: Scorer, patient: PatientProfile, protocol: TreatmentProtocol) -> CriterionScore:
    """
    Run one scorer, degrading to a neutral score on malformed data.

    One bad criterion must not abort scoring of the protocol.
    """
    try:
        return scorer(patient, protocol)
    except DATA_ERRORS as e:
        logger.warning(f"Criterion '{criterion}' degraded for protocol {protocol.id}: {e}")
        return CriterionScore(
            criterion=criterion,
            score=NEUTRAL_SCORE,
            explanation=f"Neutral score: could not evaluate {criterion} ({type(e).__name__}: {e})",
            data_gap=True,
        )


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def aggregate(
    scores: Dict[str, CriterionScore],
    weights: MatchingWeights,
    penalty: float = 0.0,
    evidence_bonus: float = 0.0,
    organ_systems: Optional[List[OrganSystemScore]] = None,
) -> MatchScoreBreakdown:
    """
    Combine criterion scores into a breakdown.

    Deterministic and side-effect free.

    Args:
        scores: Criterion name -> CriterionScore, one per weighted criterion
        weights: Validated weight vector
        penalty: Contraindication penalty to subtract
        evidence_bonus: Evidence-level bonus to add
        organ_systems: Per-system organ scores to carry on the breakdown

    Returns:
        MatchScoreBreakdown with the clamped total
    """
    weight_map = weights.as_dict()
    weighted_sum = sum(scores[name].score * weight for name, weight in weight_map.items())
    total = clamp(weighted_sum - penalty + evidence_bonus)

    return MatchScoreBreakdown(
        **{name: scores[name] for name in weight_map},
        organ_systems=organ_systems or [],
        weights=weight_map,
        weighted_sum=weighted_sum,
        contraindication_penalty=penalty,
        evidence_bonus=evidence_bonus,
        total_weighted_score=total,
    )


def score_protocol(
    patient: PatientProfile,
    protocol: TreatmentProtocol,
    config: MatchingConfig = DEFAULT_CONFIG,
) -> MatchScoreBreakdown:
    """
    Score a protocol for a patient on every criterion.

    Args:
        patient: Patient profile
        protocol: Candidate protocol
        config: Matching configuration (weights, penalty, evidence bonus)

    Returns:
        MatchScoreBreakdown
    """
    try:
        organ_systems = score_organ_systems(patient, protocol)
    except DATA_ERRORS as e:
        logger.warning(f"Organ systems could not be scored for protocol {protocol.id}: {e}")
        organ_systems = None

    if organ_systems is None:
        organ_score = CriterionScore(
            criterion="organ_function",
            score=NEUTRAL_SCORE,
            explanation="Neutral score: organ function data could not be evaluated",
            data_gap=True,
        )
    else:
        organ_score = score_organ_function(patient, protocol, organ_systems)

    scores = {
        "performance_status": safe_score("performance_status", score_performance_status, patient, protocol),
        "biomarkers": safe_score("biomarkers", score_biomarkers, patient, protocol),
        "stage": safe_score("stage", score_stage, patient, protocol),
        "organ_function": organ_score,
        "treatment_history": safe_score("treatment_history", score_treatment_history, patient, protocol),
        "age": safe_score("age", score_age, patient, protocol),
    }

    try:
        penalty, _ = contraindication_penalty(
            patient,
            protocol,
            per_match=config.contraindication_penalty,
            cap=config.max_contraindication_penalty,
        )
    except DATA_ERRORS as e:
        logger.warning(f"Contraindication penalty skipped for protocol {protocol.id}: {e}")
        penalty = 0.0

    return aggregate(
        scores,
        config.weights,
        penalty=penalty,
        evidence_bonus=config.bonus_for(protocol.evidence_level),
        organ_systems=organ_systems,
    )
