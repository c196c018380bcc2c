"""
PDF parsing backends used by the summarization pipeline.

A parser turns raw bytes into a document handle; the handle exposes the page
count, the document info dictionary and per-page text content. Everything is
async so a backend can push blocking work off the event loop.
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pypdf import PdfReader


def info_value_to_text(value: Any) -> str:
    """Render a document info entry as text; raw byte strings are decoded, not repr'd."""
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError:
            return value.decode("latin-1")
    return str(value)


@dataclass(frozen=True)
class TextItem:
    text: str


@dataclass
class TextContent:
    items: List[TextItem] = field(default_factory=list)


class PdfPage(ABC):

    @abstractmethod
    async def get_text_content(self) -> TextContent:
        ...


class PdfDocumentHandle(ABC):

    @property
    @abstractmethod
    def page_count(self) -> int:
        ...

    @abstractmethod
    async def get_metadata(self) -> Dict[str, Any]:
        """Return ``{"info": {"Title": ..., "Author": ..., "Keywords": ...}}``."""
        ...

    @abstractmethod
    async def get_page(self, page_number: int) -> PdfPage:
        """Fetch a page by its 1-based number."""
        ...

    def close(self) -> None:
        pass


class PdfParser(ABC):

    @abstractmethod
    async def load(self, data: bytes) -> PdfDocumentHandle:
        ...


class PypdfPage(PdfPage):
    def __init__(self, page) -> None:
        self._page = page

    def _extract(self) -> TextContent:
        text = (self._page.extract_text() or "").replace("\x00", "")
        return TextContent(
            items=[TextItem(line.strip()) for line in text.splitlines() if line.strip()]
        )

    async def get_text_content(self) -> TextContent:
        return await asyncio.to_thread(self._extract)


class PypdfDocument(PdfDocumentHandle):
    def __init__(self, reader: PdfReader, stream: io.BytesIO) -> None:
        self._reader = reader
        self._stream = stream
        self._page_count = len(reader.pages)

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def _read_info(self) -> Dict[str, Any]:
        info = self._reader.metadata
        if info is None:
            return {"info": {}}
        # pypdf keys carry the PDF name prefix ("/Title"); indexing resolves
        # indirect references.
        return {"info": {str(key).lstrip("/"): info_value_to_text(info[key]) for key in info.keys()}}

    async def get_metadata(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._read_info)

    async def get_page(self, page_number: int) -> PdfPage:
        if page_number < 1 or page_number > self._page_count:
            raise IndexError(f"Page {page_number} out of range (1-{self._page_count})")
        return PypdfPage(self._reader.pages[page_number - 1])

    def close(self) -> None:
        self._stream.close()


def _close_unclaimed(future: "concurrent.futures.Future[PypdfDocument]") -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


class PypdfParser(PdfParser):
    """
    Default backend built on pypdf; parsing runs in a worker thread.

    If the awaiting task is cancelled while the worker is still parsing, the
    document it eventually produces is closed as soon as it is ready.
    """

    def __init__(self, executor: Optional[concurrent.futures.Executor] = None) -> None:
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(thread_name_prefix="pypdf-load")

    def _open(self, data: bytes) -> PypdfDocument:
        stream = io.BytesIO(bytes(data))
        try:
            reader = PdfReader(stream)
            return PypdfDocument(reader, stream)
        except Exception:
            stream.close()
            raise

    async def load(self, data: bytes) -> PdfDocumentHandle:
        future = self._executor.submit(self._open, data)
        try:
            return await asyncio.wrap_future(future)
        except asyncio.CancelledError:
            future.add_done_callback(_close_unclaimed)
            raise
