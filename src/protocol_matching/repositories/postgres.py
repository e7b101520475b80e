"""
PostgreSQL protocol repository.

Protocols are stored as JSONB documents in treatment_protocols with
indexed columns for cancer types, line of therapy and activity. psycopg2
is blocking, so queries run in a worker thread.
"""

import asyncio
import json
import logging
from functools import wraps
from typing import Any, Callable, Dict, List, Optional

import psycopg2
from psycopg2.pool import PoolError
from pydantic import ValidationError

from src.protocol_matching.errors import RepositoryError
from src.protocol_matching.models.enums import TreatmentLine
from src.protocol_matching.models.protocol import TreatmentProtocol
from src.protocol_matching.repositories.connection import DatabaseConnection
from src.protocol_matching.repositories.queries import ProtocolQueries

logger = logging.getLogger(__name__)


def wrap_database_errors(f: Callable) -> Callable:
    """Decorator translating psycopg2 errors into RepositoryError."""
    @wraps(f)
    def wrapper(self, *args, **kwargs):
        try:
            return f(self, *args, **kwargs)
        except (psycopg2.OperationalError, PoolError) as e:
            raise RepositoryError(f"Protocol database unavailable: {e}", cause=e, transient=True) from e
        except psycopg2.Error as e:
            raise RepositoryError(f"Protocol database query failed: {e}", cause=e) from e
    return wrapper


class PostgresProtocolRepository:
    """Protocol repository backed by PostgreSQL."""

    def __init__(self, db: DatabaseConnection):
        """
        Initialize repository with database connection.

        Args:
            db: DatabaseConnection instance
        """
        self.db = db

    def _row_to_protocol(self, row: Dict[str, Any]) -> Optional[TreatmentProtocol]:
        data = row["protocol_data"]
        if isinstance(data, str):
            data = json.loads(data)
        data = {**data, "is_active": row.get("is_active", data.get("is_active", True))}
        try:
            return TreatmentProtocol.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Skipping invalid protocol record {data.get('id')}: {e}")
            return None

    @wrap_database_errors
    def _fetch_for_cancer(
        self,
        cancer_type_id: str,
        treatment_line: Optional[TreatmentLine],
        include_inactive: bool,
    ) -> List[TreatmentProtocol]:
        filters = []
        params: List[Any] = [cancer_type_id]
        if not include_inactive:
            filters.append(ProtocolQueries.ACTIVE_FILTER)
        if treatment_line is not None:
            filters.append(ProtocolQueries.LINE_FILTER)
            params.append(treatment_line.value)

        query = ProtocolQueries.GET_FOR_CANCER.format(filters=" ".join(filters))
        with self.db.cursor() as cur:
            cur.execute(query, tuple(params))
            rows = cur.fetchall()

        protocols = [p for p in (self._row_to_protocol(r) for r in rows) if p is not None]
        logger.info(f"Loaded {len(protocols)} protocols for {cancer_type_id} from database")
        return protocols

    @wrap_database_errors
    def _fetch_by_id(self, protocol_id: str) -> Optional[TreatmentProtocol]:
        with self.db.cursor() as cur:
            cur.execute(ProtocolQueries.GET_BY_ID, (protocol_id,))
            row = cur.fetchone()
        return self._row_to_protocol(row) if row else None

    async def get_protocols_for_cancer(
        self,
        cancer_type_id: str,
        treatment_line: Optional[TreatmentLine] = None,
        include_inactive: bool = False,
    ) -> List[TreatmentProtocol]:
        return await asyncio.to_thread(self._fetch_for_cancer, cancer_type_id, treatment_line, include_inactive)

    async def get_protocol_by_id(self, protocol_id: str) -> Optional[TreatmentProtocol]:
        return await asyncio.to_thread(self._fetch_by_id, protocol_id)
