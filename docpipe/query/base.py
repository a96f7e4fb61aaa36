from abc import ABC, abstractmethod

from docpipe.canvas.models import QueryResult


class BaseDocumentQueryClient(ABC):
    """Contract for provider-specific document query clients."""

    @abstractmethod
    async def query(
        self,
        prompt: str,
        file_ids: list[str],
        store_id: str | None,
    ) -> QueryResult:
        """Answer *prompt* grounded in the indexed documents.

        Args:
            prompt: Natural-language instruction built by the action catalog.
            file_ids: Provider file identifiers of the panel document.
            store_id: Provider store (index) holding those files.

        Returns:
            QueryResult with generated text and citations.

        Raises:
            QueryNotConfiguredError: if credentials are missing.
            StoreNotFoundError: if the store is missing or unknown.
            QueryNetworkError: on transport or provider API failures.
            QueryRateLimitedError: when the provider throttles the call.
        """
