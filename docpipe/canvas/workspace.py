import dataclasses
from collections.abc import Iterable

from docpipe.canvas.exceptions import PanelNotFoundError
from docpipe.canvas.models import DocumentMetadata
from docpipe.canvas.panel import DocumentPanel
from docpipe.config.settings import Settings
from docpipe.logging.logger import Log
from docpipe.pdf.base import BasePdfExtractor
from docpipe.pdf.factory import PdfExtractorFactory


class Workspace:
    """Owns one panel per open document.

    A panel is created when its document finishes uploading and dropped when
    the document is removed. Opening the same document twice returns the
    existing panel.
    """

    def __init__(self, pdf_extractor: BasePdfExtractor | None = None) -> None:
        self._pdf_extractor = pdf_extractor
        self._panels: dict[str, DocumentPanel] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "Workspace":
        return cls(PdfExtractorFactory.create(settings))

    @property
    def panels(self) -> list[DocumentPanel]:
        return list(self._panels.values())

    def open_document(
        self, document: DocumentMetadata, raw_bytes: bytes | None = None
    ) -> DocumentPanel:
        """Create the panel for *document*, extracting source text from PDF bytes.

        Raises:
            PdfExtractionError: if *raw_bytes* cannot be read.
            ValueError: if bytes are given but no extractor is configured.
        """
        existing = self._panels.get(document.id)
        if existing is not None:
            return existing

        if raw_bytes is not None:
            if self._pdf_extractor is None:
                raise ValueError("No PDF extractor configured for source text extraction")
            source_text = self._pdf_extractor.extract(raw_bytes)
            document = dataclasses.replace(document, source_text=source_text)
            Log.debug(
                f"Extracted source text from {document.file_name}", chars=len(source_text)
            )

        panel = DocumentPanel(document=document)
        self._panels[document.id] = panel
        Log.info(f"Opened panel for {document.file_name}", panel_id=panel.id)
        return panel

    def panel_for(self, document_id: str) -> DocumentPanel:
        try:
            return self._panels[document_id]
        except KeyError:
            raise PanelNotFoundError(f"No panel open for document {document_id}") from None

    def close_document(self, document_id: str) -> DocumentPanel:
        panel = self.panel_for(document_id)
        del self._panels[document_id]
        Log.info("Closed panel", panel_id=panel.id, document_id=document_id)
        return panel

    def sync_documents(self, documents: Iterable[DocumentMetadata]) -> None:
        """Match the open panels to *documents*: open new ones, close removed ones."""
        documents = list(documents)
        wanted = {document.id for document in documents}
        for document_id in [doc_id for doc_id in self._panels if doc_id not in wanted]:
            self.close_document(document_id)
        for document in documents:
            self.open_document(document)
