from typing import Any

import httpx
import openai

from docpipe.canvas.models import Citation, QueryResult
from docpipe.query.base import BaseDocumentQueryClient
from docpipe.query.exceptions import (
    QueryError,
    QueryNetworkError,
    QueryNotConfiguredError,
    QueryRateLimitedError,
    StoreNotFoundError,
)


class OpenAIQueryClientAdapter(BaseDocumentQueryClient):
    """Document query client built on the OpenAI Responses API ``file_search`` tool.

    The store id is an OpenAI vector store id.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._client = openai.AsyncOpenAI(
            api_key=api_key or "unset",
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def query(
        self,
        prompt: str,
        file_ids: list[str],
        store_id: str | None,
    ) -> QueryResult:
        _ = file_ids
        if not self._api_key:
            raise QueryNotConfiguredError(
                "OpenAI API key not configured. Set OPENAI_API_KEY."
            )
        if not store_id:
            raise StoreNotFoundError("No vector store available. Upload documents first.")
        try:
            response = await self._client.responses.create(
                model=self._model,
                input=prompt,
                tools=[{"type": "file_search", "vector_store_ids": [store_id]}],
            )
        except openai.RateLimitError as exc:
            raise QueryRateLimitedError(f"Query provider rate limit exceeded: {exc}") from exc
        except openai.NotFoundError as exc:
            raise StoreNotFoundError(f"Vector store '{store_id}' not found: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise QueryNetworkError(f"Query provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise QueryNetworkError(f"Query provider API error: {exc}") from exc

        answer = response.output_text
        if not answer:
            raise QueryError("Query provider returned empty response")
        return QueryResult(answer=answer, citations=self._collect_citations(response))

    @staticmethod
    def _collect_citations(response: Any) -> list[Citation]:
        citations: list[Citation] = []
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "message":
                continue
            for part in getattr(item, "content", None) or []:
                for annotation in getattr(part, "annotations", None) or []:
                    if getattr(annotation, "type", None) != "file_citation":
                        continue
                    source = getattr(annotation, "filename", None) or annotation.file_id
                    citations.append(Citation(source=source, excerpt=part.text))
        return citations
