"""
Matching request model.
"""

from typing import Optional

from pydantic import BaseModel, Field

from src.protocol_matching.config import MatchingWeights
from src.protocol_matching.models.enums import EvidenceLevel, TreatmentLine
from src.protocol_matching.models.patient import PatientProfile


class MatchingRequest(BaseModel):
    """Patient profile plus ranking filters."""
    patient: Optional[PatientProfile] = None
    treatment_line: Optional[TreatmentLine] = None
    max_results: int = Field(default=10, description="Result cap")
    include_experimental: bool = Field(default=False, description="Include investigational protocols")
    include_inactive: bool = Field(default=False, description="Include inactive protocols")
    minimum_evidence_level: Optional[EvidenceLevel] = Field(
        default=None, description="When set, filter by evidence level instead of score"
    )
    minimum_score: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Score floor, defaults to the engine's minimum_match_score"
    )
    exclude_contraindicated: bool = Field(default=False, description="Drop contraindicated results")
    weights: Optional[MatchingWeights] = Field(default=None, description="Per-request weight override")
