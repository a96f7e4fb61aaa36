from typing import Any

import httpx

from docpipe.canvas.models import Citation, QueryResult
from docpipe.logging.logger import Log
from docpipe.query.base import BaseDocumentQueryClient
from docpipe.query.exceptions import (
    QueryError,
    QueryNetworkError,
    QueryNotConfiguredError,
    QueryRateLimitedError,
    StoreNotFoundError,
)


class GeminiQueryClientAdapter(BaseDocumentQueryClient):
    """Document query client for Gemini ``generateContent`` with the file search tool."""

    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport

    async def query(
        self,
        prompt: str,
        file_ids: list[str],
        store_id: str | None,
    ) -> QueryResult:
        if not self._api_key:
            raise QueryNotConfiguredError(
                "Gemini API key not configured. Set GEMINI_API_KEY."
            )
        if not store_id:
            raise StoreNotFoundError(
                "No file search store available. Upload documents first."
            )
        Log.debug("Gemini generateContent", store_id=store_id, files=len(file_ids))

        response = await self._post(self._build_body(prompt, store_id))
        self._raise_for_status(response, store_id)
        try:
            payload = response.json()
        except ValueError as exc:
            raise QueryError(f"Invalid JSON response: {exc}") from exc
        return self._parse_payload(payload)

    def _build_body(self, prompt: str, store_id: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "tools": [{"fileSearch": {"fileSearchStoreNames": [store_id]}}],
        }

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                return await client.post(
                    url,
                    json=body,
                    headers={"x-goog-api-key": self._api_key},
                )
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise QueryNetworkError(f"Query provider network error: {exc}") from exc
        except httpx.HTTPError as exc:
            raise QueryNetworkError(f"Query provider transport error: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, store_id: str) -> None:
        status = response.status_code
        if status == 429:
            raise QueryRateLimitedError("Query provider rate limit exceeded")
        if status == 404:
            raise StoreNotFoundError(f"File search store '{store_id}' not found")
        if status >= 400:
            raise QueryNetworkError(
                f"Query provider API error {status}: {response.text[:200]}"
            )

    @staticmethod
    def _parse_payload(payload: Any) -> QueryResult:
        if not isinstance(payload, dict):
            raise QueryError("JSON response must be an object")
        candidates = payload.get("candidates") or []
        if not candidates:
            raise QueryError("Query provider returned no candidates")
        candidate = candidates[0] if isinstance(candidates, list) else None
        if not isinstance(candidate, dict):
            raise QueryError("Malformed candidate in query provider response")
        content = candidate.get("content") or {}
        if not isinstance(content, dict):
            raise QueryError("Malformed candidate in query provider response")
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            raise QueryError("Malformed candidate in query provider response")
        texts = [
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        if not texts:
            raise QueryError("Query provider returned empty response")

        citations: list[Citation] = []
        grounding = candidate.get("groundingMetadata")
        supports = grounding.get("groundingSupports") if isinstance(grounding, dict) else None
        for support in supports if isinstance(supports, list) else []:
            segment = support.get("segment") if isinstance(support, dict) else None
            text = segment.get("text") if isinstance(segment, dict) else None
            if isinstance(text, str) and text:
                citations.append(Citation(source="Document", excerpt=text))
        return QueryResult(answer="".join(texts), citations=citations)
