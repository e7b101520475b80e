"""
Protocol Matching Module

Matches cancer patients to treatment protocols: multi-criteria scoring,
eligibility assessment, contraindication detection and ranking.

Components:
- engine: MatchingEngine, the public matching API
- scoring: Criterion scorers and weighted aggregator
- eligibility: Rule-based eligibility assessment
- safety: Contraindication detection, safety and confidence classification
- protocols: Interfaces for dependency injection
- repositories: Protocol repository implementations
- cache: TTL protocol cache
"""

from src.protocol_matching.config import MatchingConfig, MatchingThresholds, MatchingWeights
from src.protocol_matching.engine import MatchingEngine
from src.protocol_matching.errors import (
    ConfigurationError,
    InvalidRequest,
    ProtocolMatchingError,
    RepositoryError,
)
from src.protocol_matching.factory import create_matching_engine

__all__ = [
    "MatchingEngine",
    "create_matching_engine",
    "MatchingConfig",
    "MatchingThresholds",
    "MatchingWeights",
    # Errors
    "ConfigurationError",
    "InvalidRequest",
    "ProtocolMatchingError",
    "RepositoryError",
]
