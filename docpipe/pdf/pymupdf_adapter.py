import pymupdf

from docpipe.pdf.base import BasePdfExtractor, looks_like_pdf
from docpipe.pdf.exceptions import PdfExtractionError


class PyMuPdfAdapter(BasePdfExtractor):
    """Source text extraction backed by PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> str:
        if not looks_like_pdf(pdf_bytes):
            raise PdfExtractionError("Uploaded bytes are not a PDF document")
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return self.join_pages([page.get_text() for page in doc])
        except Exception as exc:
            raise PdfExtractionError(f"PyMuPDF could not read document: {exc}") from exc
