from __future__ import annotations

import asyncio
import io
from typing import Any, Dict, List, Optional

import pytest
from reportlab.pdfgen import canvas

from app.utils.pdf_parser import PdfDocumentHandle, PdfPage, PdfParser, TextContent, TextItem


class FakePage(PdfPage):
    def __init__(self, items: List[str], error: Optional[Exception] = None) -> None:
        self.items = items
        self.error = error

    async def get_text_content(self) -> TextContent:
        if self.error is not None:
            raise self.error
        return TextContent(items=[TextItem(text) for text in self.items])


class FakeDocument(PdfDocumentHandle):
    def __init__(
        self,
        pages: List[List[str]],
        metadata: Optional[Dict[str, Any]] = None,
        metadata_error: Optional[Exception] = None,
        page_errors: Optional[Dict[int, Exception]] = None,
    ) -> None:
        self.pages = pages
        self.metadata = metadata if metadata is not None else {}
        self.metadata_error = metadata_error
        self.page_errors = page_errors or {}
        self.requested_pages: List[int] = []
        self.closed = False

    @property
    def page_count(self) -> int:
        return len(self.pages)

    async def get_metadata(self) -> Dict[str, Any]:
        if self.metadata_error is not None:
            raise self.metadata_error
        return self.metadata

    async def get_page(self, page_number: int) -> PdfPage:
        self.requested_pages.append(page_number)
        return FakePage(self.pages[page_number - 1], self.page_errors.get(page_number))

    def close(self) -> None:
        self.closed = True


class FakeParser(PdfParser):
    def __init__(self, document: Optional[FakeDocument] = None, error: Optional[Exception] = None) -> None:
        self.document = document
        self.error = error
        self.load_calls = 0

    async def load(self, data: bytes) -> PdfDocumentHandle:
        self.load_calls += 1
        if self.error is not None:
            raise self.error
        return self.document


class HangingParser(PdfParser):
    """A load that never finishes on its own."""

    def __init__(self) -> None:
        self.cancelled = False

    async def load(self, data: bytes) -> PdfDocumentHandle:
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


class LateParser(PdfParser):
    """A load that ignores cancellation and hands back a document anyway."""

    def __init__(self, document: FakeDocument) -> None:
        self.document = document

    async def load(self, data: bytes) -> PdfDocumentHandle:
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            pass
        return self.document


def numbered_pages(count: int) -> List[List[str]]:
    return [[f"Page {number} content"] for number in range(1, count + 1)]


@pytest.fixture()
def fake_buffer() -> bytes:
    # Only the fake parsers see this, so it does not need to be a real PDF.
    return bytes(100)


def build_pdf(
    pages: List[str],
    title: Optional[str] = None,
    author: Optional[str] = None,
    keywords: Optional[str] = None,
) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer)
    if title is not None:
        pdf.setTitle(title)
    if author is not None:
        pdf.setAuthor(author)
    if keywords is not None:
        pdf.setKeywords(keywords)
    for text in pages:
        if text:
            pdf.drawString(72, 720, text)
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture()
def sample_pdf() -> bytes:
    return build_pdf(
        ["Page 1 content", "Page 2 content", "Page 3 content"],
        title="Test Document",
        author="Test Author",
        keywords="test, pdf, document",
    )
