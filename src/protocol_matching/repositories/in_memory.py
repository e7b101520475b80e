"""
In-memory protocol repository, used by tests and the CLI.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from src.protocol_matching.models.enums import TreatmentLine
from src.protocol_matching.models.protocol import TreatmentProtocol

logger = logging.getLogger(__name__)


class InMemoryProtocolRepository:
    """Protocol repository backed by a list."""

    def __init__(self, protocols: Optional[Iterable[TreatmentProtocol]] = None):
        self._protocols = {p.id: p for p in (protocols or [])}

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryProtocolRepository":
        """Load protocols from a JSON file holding a list of protocol objects."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        protocols = [TreatmentProtocol.model_validate(item) for item in data]
        logger.info(f"Loaded {len(protocols)} protocols from {path}")
        return cls(protocols)

    def add(self, protocol: TreatmentProtocol) -> None:
        self._protocols[protocol.id] = protocol

    async def get_protocols_for_cancer(
        self,
        cancer_type_id: str,
        treatment_line: Optional[TreatmentLine] = None,
        include_inactive: bool = False,
    ) -> List[TreatmentProtocol]:
        return [
            p for p in self._protocols.values()
            if p.applies_to(cancer_type_id)
            and (treatment_line is None or p.treatment_line == treatment_line)
            and (include_inactive or p.is_active)
        ]

    async def get_protocol_by_id(self, protocol_id: str) -> Optional[TreatmentProtocol]:
        return self._protocols.get(protocol_id)
