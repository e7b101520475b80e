"""
Age Scorer

Graded penalties outside the protocol age range. Being under the minimum
is penalized harder than being over the maximum (pediatric dosing).
"""

from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.results import CriterionScore

CRITERION = "age"


def below_minimum_score(years_under: int) -> float:
    if years_under <= 2:
        return 0.6
    if years_under <= 5:
        return 0.4
    return 0.1


def above_maximum_score(years_over: int) -> float:
    if years_over <= 5:
        return 0.8
    if years_over <= 10:
        return 0.6
    return 0.3


def score_age(patient: PatientProfile, protocol: TreatmentProtocol) -> CriterionScore:
    age_range = protocol.eligibility_criteria.age_range
    if age_range is None or (age_range.min_age is None and age_range.max_age is None):
        return CriterionScore(criterion=CRITERION, score=1.0, explanation="No age restriction")

    age = patient.demographics.age
    if age is None:
        return CriterionScore(criterion=CRITERION, score=0.5, explanation="Patient age not recorded", data_gap=True)

    if age_range.min_age is not None and age < age_range.min_age:
        under = age_range.min_age - age
        return CriterionScore(
            criterion=CRITERION,
            score=below_minimum_score(under),
            explanation=f"Age {age} is {under} year(s) below minimum {age_range.min_age}",
        )

    if age_range.max_age is not None and age > age_range.max_age:
        over = age - age_range.max_age
        return CriterionScore(
            criterion=CRITERION,
            score=above_maximum_score(over),
            explanation=f"Age {age} is {over} year(s) above maximum {age_range.max_age}",
        )

    return CriterionScore(criterion=CRITERION, score=1.0, explanation=f"Age {age} within range")
