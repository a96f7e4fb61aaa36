from docpipe.config.settings import Settings
from docpipe.pdf.base import BasePdfExtractor
from docpipe.pdf.pdfplumber_adapter import PdfPlumberAdapter
from docpipe.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the source text extractor named by ``pdf_engine``."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.strip().lower()
        try:
            return cls.ADAPTERS[engine]()
        except KeyError:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {sorted(cls.ADAPTERS)}"
            ) from None
