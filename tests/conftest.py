import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from docpipe.canvas.models import DocumentMetadata
from docpipe.canvas.panel import DocumentPanel


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def document() -> DocumentMetadata:
    return DocumentMetadata(
        file_name="annual-report.pdf",
        language="en",
        document_type="report",
        file_id="files/abc123",
        store_id="fileSearchStores/store-1",
        source_text="The clinic expanded services across three regions in 2024.",
    )


@pytest.fixture()
def panel(document: DocumentMetadata) -> DocumentPanel:
    return DocumentPanel(document=document)
