"""
Protocol repository implementations.
"""

from src.protocol_matching.repositories.http import HttpProtocolRepository
from src.protocol_matching.repositories.in_memory import InMemoryProtocolRepository
from src.protocol_matching.repositories.postgres import PostgresProtocolRepository

__all__ = ["HttpProtocolRepository", "InMemoryProtocolRepository", "PostgresProtocolRepository"]
