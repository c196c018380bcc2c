import logging
from abc import ABC, abstractmethod

from google import genai

from app.config import SUMMARIZER_BACKENDS, Settings
from app.schema.schema_classes import SummarizationOptions

logger = logging.getLogger(__name__)

# Upper bound on characters of extracted text sent to the model.
MAX_INPUT_CHARS = 200_000


class SummarizerError(Exception):
    pass


class Summarizer(ABC):
    """Turns the text extracted from a document into a summary string."""

    @abstractmethod
    async def summarize(self, text: str, page_count: int, options: SummarizationOptions) -> str:
        ...


class PlaceholderSummarizer(Summarizer):
    """Reports how many pages produced text. Used when no model is configured."""

    async def summarize(self, text: str, page_count: int, options: SummarizationOptions) -> str:
        return f"Sample summary of {page_count} pages"


class GeminiSummarizer(Summarizer):
    def __init__(self, api_key: str = "", model: str = "gemini-1.5-flash", client=None):
        if client is None:
            if not api_key:
                raise ValueError("GEMINI_API_KEY is required for the gemini summarizer")
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model

    @staticmethod
    def build_prompt(page_count: int, options: SummarizationOptions) -> str:
        prompt = (
            f"The text below was extracted from a {page_count}-page PDF document. "
            "Write a clear, accurate summary of it for a student. "
            "Capture the main topics in a logical order and only use information present in the text. "
            "Return ONLY the summary text."
        )
        if options.target_length:
            prompt += f" Keep the summary to roughly {options.target_length} words."
        return prompt

    async def summarize(self, text: str, page_count: int, options: SummarizationOptions) -> str:
        prompt = self.build_prompt(page_count, options)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[prompt, text[:MAX_INPUT_CHARS]],
            )
        except Exception as e:
            raise SummarizerError(f"Error generating summary: {str(e)}") from e

        summary = (response.text or "").strip()
        if not summary:
            raise SummarizerError("Summarizer returned an empty response")
        logger.debug("Gemini summary: %d chars from %d chars of text", len(summary), len(text))
        return summary


def build_summarizer(settings: Settings) -> Summarizer:
    backend = settings.summarizer_backend
    if backend not in SUMMARIZER_BACKENDS:
        raise ValueError(f"Unknown SUMMARIZER_BACKEND {backend!r}; expected one of {SUMMARIZER_BACKENDS}")
    if backend == "gemini":
        return GeminiSummarizer(api_key=settings.gemini_api_key, model=settings.gemini_model)
    return PlaceholderSummarizer()
