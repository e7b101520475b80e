"""
Eligibility assessment.
"""

from src.protocol_matching.eligibility.assessor import (
    EligibilityAssessor,
    assess_eligibility,
    estimate_after_optimization,
)

__all__ = ["EligibilityAssessor", "assess_eligibility", "estimate_after_optimization"]
