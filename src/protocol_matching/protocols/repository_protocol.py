"""
Protocol Repository Interface

Defines the interface the matching engine uses to fetch candidate
protocols. Implementations live in src.protocol_matching.repositories.
"""

from typing import List, Optional, Protocol

from src.protocol_matching.models.enums import TreatmentLine
from src.protocol_matching.models.protocol import TreatmentProtocol


class ProtocolRepositoryProtocol(Protocol):
    """Protocol for treatment protocol lookups."""

    async def get_protocols_for_cancer(
        self,
        cancer_type_id: str,
        treatment_line: Optional[TreatmentLine] = None,
        include_inactive: bool = False,
    ) -> List[TreatmentProtocol]:
        """
        Get protocols for a cancer type.

        Args:
            cancer_type_id: Cancer type identifier
            treatment_line: Restrict to one line of therapy (optional)
            include_inactive: Include protocols flagged inactive

        Returns:
            List of protocols (may be empty)

        Raises:
            RepositoryError: On storage or network failure
        """
        ...

    async def get_protocol_by_id(self, protocol_id: str) -> Optional[TreatmentProtocol]:
        """
        Get one protocol by id.

        Returns:
            Protocol, or None if not found

        Raises:
            RepositoryError: On storage or network failure
        """
        ...
