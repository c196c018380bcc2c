"""
PDF text extraction and summarization pipeline.

PDFSummarizer.summarize() loads a document through a PdfParser, extracts the
text page by page while emitting "progress" events, and hands the text to a
Summarizer. It always returns a SummarizationResult; failures come back as
SummarizationFailure with a message instead of being raised.
"""
import asyncio
import logging
import time
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Union

from app.schema.schema_classes import (
    DocumentMetadata,
    ProcessingStats,
    ProgressEvent,
    SummarizationFailure,
    SummarizationOptions,
    SummarizationResult,
    SummarizationSuccess,
)
from app.utils.events import EventEmitter
from app.utils.pdf_parser import PdfDocumentHandle, PdfParser, PypdfParser
from app.utils.summarizers import PlaceholderSummarizer, Summarizer

logger = logging.getLogger(__name__)

PDF_SIGNATURE = "%PDF-"
PROGRESS_EVENT = "progress"


class ErrorKind(str, Enum):
    EMPTY_INPUT = "Empty or invalid PDF file"
    LOAD_TIMEOUT = "PDF loading timeout"
    NO_PAGES = "PDF contains no pages"
    NO_EXTRACTABLE_TEXT = "No text content could be extracted"
    UNEXPECTED = "Unknown error during PDF processing"


class PdfProcessingError(Exception):
    def __init__(self, kind: ErrorKind):
        super().__init__(kind.value)
        self.kind = kind


def validate_pdf(data) -> bool:
    """True if the buffer starts with the %PDF- header. Never raises."""
    try:
        header = bytes(data[:len(PDF_SIGNATURE)]).decode("utf-8")
    except (TypeError, ValueError):
        return False
    return header == PDF_SIGNATURE


def parse_keywords(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    return [keyword.strip() for keyword in raw.split(",")]


def _close_abandoned_load(task: "asyncio.Future[PdfDocumentHandle]") -> None:
    # A load that finished after we stopped waiting still owns a handle.
    if task.cancelled() or task.exception() is not None:
        return
    task.result().close()


class PDFSummarizer(EventEmitter):
    def __init__(
        self,
        parser: Optional[PdfParser] = None,
        summarizer: Optional[Summarizer] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.parser = parser or PypdfParser()
        self.summarizer = summarizer or PlaceholderSummarizer()
        self._clock = clock

    def validate(self, data) -> bool:
        return validate_pdf(data)

    def _elapsed_ms(self, start: float) -> int:
        return max(0, int((self._clock() - start) * 1000))

    async def _load(self, data: bytes, timeout_ms: int) -> PdfDocumentHandle:
        load_task = asyncio.ensure_future(self.parser.load(data))
        try:
            done, _ = await asyncio.wait({load_task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            load_task.cancel()
            raise
        if load_task not in done:
            load_task.cancel()
            load_task.add_done_callback(_close_abandoned_load)
            raise PdfProcessingError(ErrorKind.LOAD_TIMEOUT)
        return load_task.result()

    @staticmethod
    async def _get_metadata(document: PdfDocumentHandle) -> Dict[str, Any]:
        try:
            return await document.get_metadata() or {}
        except Exception:
            logger.debug("Could not read PDF metadata, continuing without it", exc_info=True)
            return {}

    async def summarize(self, data, options: Optional[SummarizationOptions] = None) -> SummarizationResult:
        options = options or SummarizationOptions()
        start = self._clock()
        document = None

        try:
            if not data:
                raise PdfProcessingError(ErrorKind.EMPTY_INPUT)

            document = await self._load(data, options.timeout_ms)
            metadata = await self._get_metadata(document)

            page_count = document.page_count
            if page_count == 0:
                raise PdfProcessingError(ErrorKind.NO_PAGES)

            page_limit = min(page_count, options.max_pages or page_count)
            extracted_text = ""
            processed_pages = 0

            for page_number in range(1, page_limit + 1):
                page = await document.get_page(page_number)
                content = await page.get_text_content()
                page_text = " ".join(item.text for item in content.items).strip()
                if not page_text:
                    continue

                extracted_text += page_text + "\n"
                processed_pages += 1
                self.emit(PROGRESS_EVENT, ProgressEvent(
                    page=page_number,
                    total_pages=page_limit,
                    percent_complete=100 * page_number / page_limit,
                ))

            if not extracted_text.strip():
                raise PdfProcessingError(ErrorKind.NO_EXTRACTABLE_TEXT)

            summary = await self.summarizer.summarize(extracted_text, processed_pages, options)

            info = metadata.get("info") or {}
            result = SummarizationSuccess(
                summary=summary,
                metadata=DocumentMetadata(
                    page_count=page_count,
                    title=info.get("Title"),
                    author=info.get("Author"),
                    keywords=parse_keywords(info.get("Keywords")),
                ),
                stats=ProcessingStats(
                    processing_time_ms=self._elapsed_ms(start),
                    text_length=len(extracted_text),
                    extracted_pages=processed_pages,
                ),
            )
            logger.info(
                "PDF summarization completed successfully: pages=%d processed=%d time=%dms",
                page_count, processed_pages, result.stats.processing_time_ms,
            )
            return result

        except Exception as e:
            message = str(e) or ErrorKind.UNEXPECTED.value
            logger.error("PDF summarization failed: %s (after %dms)", message, self._elapsed_ms(start))
            return SummarizationFailure(error=message)

        finally:
            if document is not None:
                document.close()

    async def stream(
        self, data, options: Optional[SummarizationOptions] = None
    ) -> AsyncIterator[Union[ProgressEvent, SummarizationResult]]:
        """
        Run summarize() as a task and yield its progress events as they are
        emitted, followed by the final result.

        Events from any other summarize() call running on this instance at the
        same time are yielded too, so give each stream its own instance.
        """
        queue: asyncio.Queue = asyncio.Queue()
        done = object()
        dispose = self.on(PROGRESS_EVENT, queue.put_nowait)
        task = asyncio.ensure_future(self.summarize(data, options))
        task.add_done_callback(lambda _: queue.put_nowait(done))
        try:
            while True:
                item = await queue.get()
                if item is done:
                    break
                yield item
            yield task.result()
        finally:
            dispose()
            if not task.done():
                task.cancel()
