class PdfExtractionError(Exception):
    """Raised when source text cannot be extracted from a PDF."""
