import io

import pdfplumber

from docpipe.pdf.base import BasePdfExtractor, looks_like_pdf
from docpipe.pdf.exceptions import PdfExtractionError


class PdfPlumberAdapter(BasePdfExtractor):
    """Source text extraction backed by pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> str:
        if not looks_like_pdf(pdf_bytes):
            raise PdfExtractionError("Uploaded bytes are not a PDF document")
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return self.join_pages([page.extract_text() or "" for page in pdf.pages])
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber could not read document: {exc}") from exc
