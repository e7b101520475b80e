"""
PostgREST (Supabase) protocol repository.

Queries the treatment_protocols table over the REST API with an async
httpx client.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from src.protocol_matching.errors import RepositoryError
from src.protocol_matching.models.enums import TreatmentLine
from src.protocol_matching.models.protocol import TreatmentProtocol

logger = logging.getLogger(__name__)

TABLE = "treatment_protocols"


class HttpProtocolRepository:
    """Protocol repository backed by a PostgREST endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        """
        Initialize the repository.

        Args:
            base_url: REST root, e.g. https://<project>.supabase.co/rest/v1
            api_key: API key sent as 'apikey' and bearer token
            http_client: Optional async HTTP client
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._http_client = http_client
        self._timeout = timeout

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get(self, params: Dict[str, str]) -> List[Dict[str, Any]]:
        client = await self._get_http_client()
        url = f"{self.base_url}/{TABLE}"
        try:
            response = await client.get(url, params=params, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise RepositoryError(
                f"Protocol API returned {status}", cause=e, transient=status >= 500
            ) from e
        except httpx.TransportError as e:
            raise RepositoryError(f"Protocol API unreachable: {e}", cause=e, transient=True) from e
        return response.json()

    def _parse(self, rows: List[Dict[str, Any]]) -> List[TreatmentProtocol]:
        protocols = []
        for row in rows:
            try:
                protocols.append(TreatmentProtocol.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping invalid protocol record {row.get('id')}: {e}")
        return protocols

    async def get_protocols_for_cancer(
        self,
        cancer_type_id: str,
        treatment_line: Optional[TreatmentLine] = None,
        include_inactive: bool = False,
    ) -> List[TreatmentProtocol]:
        params = {
            "select": "*",
            "cancer_types": f"cs.{{{cancer_type_id}}}",
            "order": "evidence_level.asc,name.asc",
        }
        if not include_inactive:
            params["is_active"] = "eq.true"
        if treatment_line is not None:
            params["treatment_line"] = f"eq.{treatment_line.value}"

        rows = await self._get(params)
        protocols = self._parse(rows)
        logger.info(f"Fetched {len(protocols)} protocols for {cancer_type_id} from API")
        return protocols

    async def get_protocol_by_id(self, protocol_id: str) -> Optional[TreatmentProtocol]:
        rows = await self._get({"select": "*", "id": f"eq.{protocol_id}", "limit": "1"})
        protocols = self._parse(rows)
        return protocols[0] if protocols else None
