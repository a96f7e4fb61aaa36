"""Example document query client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseDocumentQueryClient and register the provider in QueryClientFactory.
"""

from typing import ClassVar

from docpipe.canvas.models import Citation, QueryResult
from docpipe.query.base import BaseDocumentQueryClient


class ExampleQueryClientAdapter(BaseDocumentQueryClient):
    """Example adapter that returns a fixed grounded answer.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_ANSWER: ClassVar[str] = (
        "Quote 1: The study reports a measurable improvement in outcomes.\n"
        "Table 1: Summary of participants by cohort."
    )
    DEFAULT_CITATION: ClassVar[Citation] = Citation(
        source="Document",
        excerpt="The study reports a measurable improvement in outcomes.",
        page_number=1,
    )

    def __init__(self) -> None:
        pass

    async def query(
        self,
        prompt: str,
        file_ids: list[str],
        store_id: str | None,
    ) -> QueryResult:
        _ = prompt, file_ids, store_id
        return QueryResult(answer=self.DEFAULT_ANSWER, citations=[self.DEFAULT_CITATION])
