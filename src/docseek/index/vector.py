"""Vector index interface and the hosted REST index client."""

from __future__ import annotations

import logging
from typing import Any, List, Protocol, Sequence

import httpx

from docseek.errors import ConfigurationError, VectorIndexError
from docseek.models import IndexRecord

LOGGER = logging.getLogger(__name__)


class VectorIndex(Protocol):
    """Namespaced store that embeds record data and answers similarity queries.

    ``query`` returns raw hits as dicts with ``id``, ``score``, ``data`` and
    ``metadata`` keys, ordered by descending similarity.
    """

    async def reset(self, namespace: str) -> None: ...

    async def upsert(self, records: Sequence[IndexRecord], namespace: str) -> None: ...

    async def query(self, text: str, *, top_k: int, namespace: str) -> List[dict]: ...

    async def aclose(self) -> None: ...


class UpstashVectorIndex:
    """Client for an Upstash-compatible vector REST API.

    The service embeds the ``data`` field server side, so records and queries
    are sent as plain text.
    """

    def __init__(
        self,
        url: str | None,
        token: str | None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not url or not token:
            raise ConfigurationError(
                "UPSTASH_VECTOR_REST_URL and UPSTASH_VECTOR_REST_TOKEN are required"
            )
        self.url = url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, route: str, payload: Any = None) -> Any:
        try:
            response = await self._client.request(
                method, f"{self.url}/{route}", json=payload, headers=self._headers
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise VectorIndexError(f"{method} {route} failed: {exc}") from exc
        except ValueError as exc:
            raise VectorIndexError(f"{method} {route} returned invalid JSON") from exc

        if isinstance(body, dict) and body.get("error"):
            raise VectorIndexError(f"{method} {route} failed: {body['error']}")
        return body.get("result") if isinstance(body, dict) else body

    async def reset(self, namespace: str) -> None:
        LOGGER.debug("Resetting namespace %r", namespace)
        await self._request("DELETE", f"reset/{namespace}")

    async def upsert(self, records: Sequence[IndexRecord], namespace: str) -> None:
        if not records:
            return
        payload = [record.to_payload() for record in records]
        await self._request("POST", f"upsert-data/{namespace}", payload)

    async def query(self, text: str, *, top_k: int, namespace: str) -> List[dict]:
        payload = {
            "data": text,
            "topK": top_k,
            "includeMetadata": True,
            "includeData": True,
            "includeVectors": False,
        }
        result = await self._request("POST", f"query-data/{namespace}", payload)
        return list(result or [])

    async def aclose(self) -> None:
        await self._client.aclose()
