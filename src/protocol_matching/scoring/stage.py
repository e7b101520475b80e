"""
Stage Scorer

Compares the patient's stage with the protocol's stage list. Stages are
normalized to a number 0-IV; extent keywords such as 'metastatic' map
onto the same scale. A protocol entry may name several stages
("IIIB/IV", "Stage III or IV") or a range ("I-III").
"""

import re
from typing import List, Optional, Set

from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import CriterionScore

CRITERION = "stage"

WILDCARDS = {"any", "all"}
UNPARSEABLE_SCORE = 0.2
STEP_PENALTY = 0.2
INCOMPATIBLE_DISTANCE = 3

_ROMAN = {"0": 0, "i": 1, "ii": 2, "iii": 3, "iv": 4}
_TOKEN = r"(iv|iii|ii|i|0|[1-4])[a-c]?\d?"
_STAGE_PATTERN = re.compile(rf"\b(?:stage\s*)?{_TOKEN}\b")
_RANGE_PATTERN = re.compile(rf"\b{_TOKEN}\s*(?:-|to|through)\s*(?:stage\s*)?{_TOKEN}\b")

# Checked in order, so 'locally advanced' wins over 'advanced'
_EXTENT_KEYWORDS = [
    ("locally advanced", 3),
    ("metastatic", 4),
    ("advanced", 4),
    ("distant", 4),
    ("localized", 1),
    ("early", 1),
]


def _stage_number(token: str) -> int:
    return int(token) if token.isdigit() else _ROMAN[token]


def parse_stage(text: Optional[str]) -> Optional[int]:
    """
    Parse a stage string into a number 0-4.

    >>> parse_stage("Stage IIIA")
    3
    >>> parse_stage("metastatic")
    4
    """
    if not text:
        return None
    lowered = text.strip().lower()
    match = _STAGE_PATTERN.search(lowered)
    if match:
        return _stage_number(match.group(1))
    for keyword, stage in _EXTENT_KEYWORDS:
        if keyword in lowered:
            return stage
    return None


def parse_stages(text: Optional[str]) -> Set[int]:
    """
    Every stage named in a protocol stage entry.

    >>> sorted(parse_stages("I-III"))
    [1, 2, 3]
    >>> sorted(parse_stages("Locally advanced or metastatic"))
    [3, 4]
    """
    if not text:
        return set()
    lowered = text.strip().lower()
    stages = set()

    for match in _RANGE_PATTERN.finditer(lowered):
        low, high = sorted((_stage_number(match.group(1)), _stage_number(match.group(2))))
        stages.update(range(low, high + 1))
    stages.update(_stage_number(m.group(1)) for m in _STAGE_PATTERN.finditer(lowered))

    for keyword, stage in _EXTENT_KEYWORDS:
        if keyword in lowered:
            stages.add(stage)
            lowered = lowered.replace(keyword, " ")
    return stages


def _is_wildcard(stages: List[str]) -> bool:
    return any(s.strip().lower() in WILDCARDS for s in stages)


def score_stage(patient: PatientProfile, protocol: TreatmentProtocol) -> CriterionScore:
    """
    Score stage fit.

    Wildcard or matching stage scores 1.0. Each stage step away costs 0.2;
    three or more steps (localized vs metastatic) is incompatible and
    scores 0.0.
    """
    required = protocol.eligibility_criteria.stage_requirements
    if not required or _is_wildcard(required):
        return CriterionScore(criterion=CRITERION, score=1.0, explanation="Protocol accepts any stage")

    patient_stage_text = patient.disease_status.stage
    patient_stage = parse_stage(patient_stage_text)
    if patient_stage is None:
        return CriterionScore(
            criterion=CRITERION,
            score=0.5,
            explanation=f"Patient stage not recorded or unreadable ({patient_stage_text!r})",
            data_gap=True,
        )

    normalized = [s.strip().lower() for s in required]
    if patient_stage_text.strip().lower() in normalized:
        return CriterionScore(criterion=CRITERION, score=1.0, explanation=f"Stage {patient_stage_text} listed")

    required_stages = set().union(*(parse_stages(s) for s in required))
    if not required_stages:
        return CriterionScore(
            criterion=CRITERION,
            score=UNPARSEABLE_SCORE,
            explanation=f"Cannot compare stage {patient_stage_text} with {required}",
        )

    distance = min(abs(patient_stage - s) for s in required_stages)
    if distance == 0:
        return CriterionScore(
            criterion=CRITERION, score=1.0, explanation=f"Stage {patient_stage_text} within {required}"
        )
    if distance >= INCOMPATIBLE_DISTANCE:
        return CriterionScore(
            criterion=CRITERION,
            score=0.0,
            explanation=f"Stage {patient_stage_text} incompatible with {required}",
        )

    score = 1.0 - STEP_PENALTY * distance
    return CriterionScore(
        criterion=CRITERION,
        score=round(score, 10),
        explanation=f"Stage {patient_stage_text} is {distance} step(s) from {required}",
    )
