from abc import ABC, abstractmethod

PDF_MAGIC = b"%PDF"


def looks_like_pdf(raw_bytes: bytes) -> bool:
    """True when *raw_bytes* start with the PDF signature."""
    return raw_bytes[: len(PDF_MAGIC)] == PDF_MAGIC


class BasePdfExtractor(ABC):
    """Contract for the adapters that turn an uploaded PDF into source text."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> str:
        """Extract the document's source text.

        The text is what translation outputs are measured against, so pages
        are joined with a blank line and surrounding whitespace is stripped.

        Raises:
            PdfExtractionError: if the bytes are not a readable PDF.
        """

    @staticmethod
    def join_pages(pages: list[str]) -> str:
        return "\n\n".join(page.strip() for page in pages if page and page.strip())
