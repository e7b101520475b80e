"""
Factory Functions for Protocol Matching

Provides factory functions to create a fully-wired MatchingEngine with
its repository, cache and configuration.
"""

import logging
from typing import Iterable, Optional

from src.protocol_matching.cache import ProtocolCache
from src.protocol_matching.config import MatchingConfig
from src.protocol_matching.engine import MatchingEngine
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.protocols.repository_protocol import ProtocolRepositoryProtocol
from src.protocol_matching.repositories.connection import DatabaseConnection
from src.protocol_matching.repositories.http import HttpProtocolRepository
from src.protocol_matching.repositories.in_memory import InMemoryProtocolRepository
from src.protocol_matching.repositories.postgres import PostgresProtocolRepository
from src.utils.config import get_settings

logger = logging.getLogger(__name__)


def create_repository(
    database_url: Optional[str] = None,
    api_url: Optional[str] = None,
    api_key: Optional[str] = None,
    protocols: Optional[Iterable[TreatmentProtocol]] = None,
    timeout: Optional[float] = None,
) -> ProtocolRepositoryProtocol:
    """
    Create a protocol repository.

    Explicit protocols win, then a database URL, then a REST API URL.
    Missing arguments fall back to settings.

    Raises:
        ValueError: No protocol source is configured
    """
    if protocols is not None:
        return InMemoryProtocolRepository(protocols)

    settings = get_settings()
    database_url = database_url or settings.protocol_database_url
    api_url = api_url or settings.protocol_api_url
    api_key = api_key or settings.protocol_api_key
    timeout = timeout or settings.repository_timeout_seconds

    if database_url:
        logger.info("Using PostgreSQL protocol repository")
        return PostgresProtocolRepository(DatabaseConnection(database_url))
    if api_url:
        logger.info(f"Using REST protocol repository at {api_url}")
        return HttpProtocolRepository(api_url, api_key=api_key, timeout=timeout)

    raise ValueError(
        "No protocol source configured. Set PROTOCOL_DATABASE_URL or PROTOCOL_API_URL, "
        "or pass protocols explicitly."
    )


def create_matching_engine(
    repository: Optional[ProtocolRepositoryProtocol] = None,
    config: Optional[MatchingConfig] = None,
    cache_ttl_seconds: Optional[float] = None,
    **repository_kwargs,
) -> MatchingEngine:
    """
    Create a fully-wired MatchingEngine.

    Args:
        repository: Protocol repository (created from settings if not provided)
        config: Matching configuration
        cache_ttl_seconds: Protocol cache TTL (defaults to PROTOCOL_CACHE_TTL_SECONDS)
        **repository_kwargs: Passed to create_repository

    Returns:
        Configured MatchingEngine
    """
    settings = get_settings()
    repository = repository or create_repository(**repository_kwargs)
    ttl = cache_ttl_seconds if cache_ttl_seconds is not None else settings.protocol_cache_ttl_seconds

    engine = MatchingEngine(
        repository=repository,
        cache=ProtocolCache(default_ttl=ttl),
        config=config,
        repository_timeout=settings.repository_timeout_seconds,
        max_concurrency=settings.max_concurrent_evaluations,
    )
    logger.info(f"Created MatchingEngine with {type(repository).__name__}, cache TTL {ttl}s")
    return engine
