"""
Criterion scorers and the weighted aggregator.
"""

from src.protocol_matching.scoring.age import score_age
from src.protocol_matching.scoring.aggregator import aggregate, safe_score, score_protocol
from src.protocol_matching.scoring.biomarker import score_biomarkers
from src.protocol_matching.scoring.contraindication import contraindication_penalty
from src.protocol_matching.scoring.organ_function import score_organ_function, score_organ_systems
from src.protocol_matching.scoring.performance import score_performance_status
from src.protocol_matching.scoring.stage import score_stage
from src.protocol_matching.scoring.treatment_history import score_treatment_history

__all__ = [
    "aggregate",
    "contraindication_penalty",
    "safe_score",
    "score_age",
    "score_biomarkers",
    "score_organ_function",
    "score_organ_systems",
    "score_performance_status",
    "score_protocol",
    "score_stage",
    "score_treatment_history",
]
