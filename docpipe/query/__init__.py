from docpipe.query.base import BaseDocumentQueryClient
from docpipe.query.factory import QueryClientFactory

__all__ = ["BaseDocumentQueryClient", "QueryClientFactory"]
