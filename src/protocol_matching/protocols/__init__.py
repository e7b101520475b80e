"""
Interfaces for dependency injection.
"""

from src.protocol_matching.protocols.repository_protocol import ProtocolRepositoryProtocol

__all__ = ["ProtocolRepositoryProtocol"]
