"""
Result ranking: filter, sort and truncate matching results.
"""

import logging
from typing import List

from src.protocol_matching.config import MatchingThresholds
from src.protocol_matching.models.enums import EligibilityStatus
from src.protocol_matching.models.request import MatchingRequest
from src.protocol_matching.models.results import MatchingResult

logger = logging.getLogger(__name__)


def sort_key(result: MatchingResult):
    """Score descending, then evidence A..E, then protocol name."""
    return (-result.match_score, result.protocol.evidence_level.rank, result.protocol.name)


def rank_results(
    results: List[MatchingResult],
    request: MatchingRequest,
    thresholds: MatchingThresholds,
) -> List[MatchingResult]:
    """
    Rank matching results for a request.

    When minimum_evidence_level is set, results are filtered by evidence
    level instead of by score.

    Args:
        results: Unordered results, one per candidate protocol
        request: Matching request carrying the filters
        thresholds: Thresholds supplying the default minimum score

    Returns:
        At most request.max_results results, best first
    """
    if request.minimum_evidence_level is not None:
        cutoff = request.minimum_evidence_level.rank
        kept = [r for r in results if r.protocol.evidence_level.rank <= cutoff]
    else:
        minimum = request.minimum_score if request.minimum_score is not None else thresholds.minimum_match_score
        kept = [r for r in results if r.match_score >= minimum]

    if request.exclude_contraindicated:
        kept = [r for r in kept if r.eligibility_status != EligibilityStatus.CONTRAINDICATED]

    ranked = sorted(kept, key=sort_key)[: request.max_results]
    logger.debug(f"Ranked {len(results)} result(s): {len(kept)} passed filters, returning {len(ranked)}")
    return ranked
