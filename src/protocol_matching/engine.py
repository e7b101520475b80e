"""
Matching Engine

Entry point for protocol matching. Fetches candidate protocols through a
TTL cache, evaluates them concurrently and ranks the results.

The three public operations (find_matching_protocols, assess_eligibility,
calculate_match_score) are independently callable.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from src.protocol_matching.cache import ProtocolCache
from src.protocol_matching.config import DEFAULT_CONFIG, MatchingConfig, MatchingWeights
from src.protocol_matching.eligibility.assessor import EligibilityAssessor
from src.protocol_matching.errors import InvalidRequest, RepositoryError
from src.protocol_matching.models.enums import TreatmentLine
from src.protocol_matching.models.patient import PatientProfile
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.models.request import MatchingRequest
from src.protocol_matching.models.results import (
    EligibilityAssessment,
    MatchingResult,
    TreatmentRecommendation,
)
from src.protocol_matching.protocols.repository_protocol import ProtocolRepositoryProtocol
from src.protocol_matching.ranking import rank_results
from src.protocol_matching.rationale import build_modifications, build_rationale, build_recommendations
from src.protocol_matching.safety.classifier import SafetyClassifier
from src.protocol_matching.safety.contraindication_detector import ContraindicationDetector
from src.protocol_matching.scoring.aggregator import score_protocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

REPOSITORY_ATTEMPTS = 2


class MatchingEngine:
    """
    Protocol matching engine.

    Orchestrates, per candidate protocol:
    - Criterion scorers and the weighted aggregator
    - EligibilityAssessor: violations, warnings, required tests
    - ContraindicationDetector: absolute/relative contraindications
    - SafetyClassifier: status, confidence, risk and monitoring

    The engine holds no global state; each instance owns its cache.
    """

    def __init__(
        self,
        repository: ProtocolRepositoryProtocol,
        cache: Optional[ProtocolCache] = None,
        config: Optional[MatchingConfig] = None,
        repository_timeout: float = 10.0,
        max_concurrency: int = 8,
        retry_delay: float = 0.2,
    ):
        """
        Initialize the matching engine.

        Args:
            repository: Protocol repository (any ProtocolRepositoryProtocol)
            cache: Protocol cache (a fresh 5-minute cache if not provided)
            config: Matching configuration (defaults if not provided)
            repository_timeout: Seconds allowed per repository call
            max_concurrency: Maximum protocols evaluated at once
            retry_delay: Seconds to wait before the single retry
        """
        self._repository = repository
        self._cache = cache if cache is not None else ProtocolCache()
        self._config = config or DEFAULT_CONFIG
        self._repository_timeout = repository_timeout
        self._max_concurrency = max(1, max_concurrency)
        self._retry_delay = retry_delay

        self._assessor = EligibilityAssessor(self._config)
        self._detector = ContraindicationDetector()
        self._classifier = SafetyClassifier(self._config.thresholds)

    @property
    def config(self) -> MatchingConfig:
        return self._config

    @property
    def cache(self) -> ProtocolCache:
        return self._cache

    # --- Public API ---

    async def find_matching_protocols(self, request: MatchingRequest) -> List[MatchingResult]:
        """
        Find, score and rank protocols for a patient.

        Args:
            request: MatchingRequest with patient profile and filters

        Returns:
            Ranked results, best first, at most request.max_results long.
            Empty when no protocol matches.

        Raises:
            InvalidRequest: Request is missing required input
            RepositoryError: Protocols could not be fetched
            ConfigurationError: Request weights are invalid
        """
        self._validate_request(request)
        config = self._config.with_weights(request.weights)
        patient = request.patient
        cancer_type = patient.cancer_type_id.strip()

        protocols = await self._get_candidate_protocols(
            cancer_type, request.treatment_line, request.include_inactive
        )
        if not request.include_experimental:
            protocols = [p for p in protocols if not p.is_investigational]

        if not protocols:
            logger.info(f"No candidate protocols for {cancer_type}")
            return []

        results = await self._evaluate_all(patient, protocols, config)
        ranked = rank_results(results, request, config.thresholds)
        logger.info(
            f"Matched patient {patient.patient_id or '<anonymous>'} against {len(protocols)} "
            f"{cancer_type} protocols: {len(ranked)} returned"
        )
        return ranked

    def evaluate_protocol(
        self,
        patient: PatientProfile,
        protocol: TreatmentProtocol,
        weights: Optional[MatchingWeights] = None,
    ) -> MatchingResult:
        """
        Evaluate a single protocol for a patient.

        Args:
            patient: Patient profile
            protocol: Candidate protocol
            weights: Optional weight override

        Returns:
            MatchingResult
        """
        return self._evaluate(patient, protocol, self._config.with_weights(weights))

    def assess_eligibility(self, patient: PatientProfile, protocol: TreatmentProtocol) -> EligibilityAssessment:
        """Eligibility verdict, independent of the match score."""
        return self._assessor.assess(patient, protocol)

    def calculate_match_score(
        self,
        patient: PatientProfile,
        protocol: TreatmentProtocol,
        weights: Optional[MatchingWeights] = None,
    ) -> float:
        """
        Weighted match score in [0, 1].

        Raises:
            ConfigurationError: weights do not sum to 1.0
        """
        config = self._config.with_weights(weights)
        return score_protocol(patient, protocol, config).total_weighted_score

    async def evaluate_protocol_by_id(
        self,
        patient: PatientProfile,
        protocol_id: str,
        weights: Optional[MatchingWeights] = None,
    ) -> Optional[MatchingResult]:
        """
        Fetch one protocol by id and evaluate it.

        Returns:
            MatchingResult, or None if the protocol does not exist
        """
        protocol = await self._call_repository(
            f"get_protocol_by_id({protocol_id})",
            lambda: self._repository.get_protocol_by_id(protocol_id),
        )
        if protocol is None:
            return None
        return await asyncio.to_thread(self.evaluate_protocol, patient, protocol, weights)

    async def generate_treatment_recommendations(
        self,
        patient_id: str,
        request: MatchingRequest,
    ) -> List[TreatmentRecommendation]:
        """
        Build persistence-ready recommendation records for a patient.

        Each record lists the other returned protocols as alternatives.
        """
        results = await self.find_matching_protocols(request)
        protocol_ids = [r.protocol.id for r in results]

        return [
            TreatmentRecommendation(
                patient_id=patient_id,
                protocol_id=result.protocol.id,
                match_score=result.match_score,
                eligibility=result.eligibility,
                eligibility_status=result.eligibility_status,
                contraindications=[c.description for c in result.contraindications],
                required_modifications=result.required_modifications,
                alternative_options=[pid for pid in protocol_ids if pid != result.protocol.id],
                rationale=result.rationale,
                confidence_level=result.confidence,
            )
            for result in results
        ]

    def clear_cache(self) -> None:
        """Drop all cached protocol lists."""
        self._cache.clear()

    # --- Internals ---

    def _validate_request(self, request: MatchingRequest) -> None:
        if request is None or request.patient is None:
            raise InvalidRequest("Matching request requires a patient profile")
        cancer_type = request.patient.cancer_type_id
        if not cancer_type or not cancer_type.strip():
            raise InvalidRequest("Patient profile has no cancer type")
        if request.max_results < 1:
            raise InvalidRequest(f"max_results must be positive, got {request.max_results}")

    async def _get_candidate_protocols(
        self,
        cancer_type: str,
        treatment_line: Optional[TreatmentLine],
        include_inactive: bool,
    ) -> List[TreatmentProtocol]:
        key = (cancer_type, treatment_line.value if treatment_line else "all", include_inactive)

        async def load() -> List[TreatmentProtocol]:
            return await self._call_repository(
                f"get_protocols_for_cancer({cancer_type})",
                lambda: self._repository.get_protocols_for_cancer(cancer_type, treatment_line, include_inactive),
            )

        return await self._cache.get_or_refresh(key, load)

    async def _call_repository(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """
        Call the repository with a timeout and one retry on transient failure.

        Raises:
            RepositoryError: On non-transient failure or when retries are exhausted
        """
        last_error: Optional[RepositoryError] = None
        for attempt in range(1, REPOSITORY_ATTEMPTS + 1):
            try:
                return await asyncio.wait_for(call(), timeout=self._repository_timeout)
            except asyncio.TimeoutError as e:
                last_error = RepositoryError(
                    f"{operation} timed out after {self._repository_timeout}s", cause=e, transient=True
                )
            except RepositoryError as e:
                if not e.transient:
                    logger.error(f"{operation} failed: {e}")
                    raise
                last_error = e
            except (ConnectionError, OSError) as e:
                last_error = RepositoryError(f"{operation} failed: {e}", cause=e, transient=True)
            except Exception as e:
                logger.error(f"{operation} failed: {e}")
                raise RepositoryError(f"{operation} failed: {e}", cause=e) from e

            if attempt < REPOSITORY_ATTEMPTS:
                logger.warning(f"{operation} failed on attempt {attempt}, retrying: {last_error}")
                await asyncio.sleep(self._retry_delay)

        logger.error(f"{operation} failed after {REPOSITORY_ATTEMPTS} attempts: {last_error}")
        raise RepositoryError(
            f"{operation} failed after {REPOSITORY_ATTEMPTS} attempts: {last_error}",
            cause=last_error.cause or last_error,
            transient=True,
        )

    async def _evaluate_all(
        self,
        patient: PatientProfile,
        protocols: List[TreatmentProtocol],
        config: MatchingConfig,
    ) -> List[MatchingResult]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def evaluate(protocol: TreatmentProtocol) -> MatchingResult:
            async with semaphore:
                return await asyncio.to_thread(self._evaluate, patient, protocol, config)

        outcomes = await asyncio.gather(*(evaluate(p) for p in protocols), return_exceptions=True)

        results = []
        for protocol, outcome in zip(protocols, outcomes):
            if isinstance(outcome, MatchingResult):
                results.append(outcome)
            elif isinstance(outcome, Exception):
                logger.error(f"Skipping protocol {protocol.id}, evaluation failed: {outcome}")
            else:
                raise outcome
        return results

    def _evaluate(self, patient: PatientProfile, protocol: TreatmentProtocol, config: MatchingConfig) -> MatchingResult:
        breakdown = score_protocol(patient, protocol, config)
        score = breakdown.total_weighted_score

        eligibility = self._assessor.assess(patient, protocol)
        contraindications = self._detector.detect(patient, protocol)

        status = self._classifier.eligibility_status(score, eligibility, contraindications)
        confidence = self._classifier.confidence(score, contraindications)
        safety = self._classifier.assess_safety(contraindications, breakdown.organ_function.score)

        return MatchingResult(
            protocol=protocol,
            match_score=score,
            breakdown=breakdown,
            eligibility=eligibility,
            eligibility_status=status,
            contraindications=contraindications,
            safety=safety,
            confidence=confidence,
            rationale=build_rationale(protocol, breakdown, eligibility, contraindications, status),
            recommendations=build_recommendations(patient, protocol, breakdown, eligibility, contraindications),
            required_modifications=build_modifications(eligibility, safety),
        )
