from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional, Union


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class SummarizationOptions(CamelModel):
    max_pages: Optional[int] = Field(default=None, gt=0)
    # Reserved: only a real summarizer backend looks at these two.
    target_length: Optional[int] = Field(default=None, gt=0)
    include_metadata: Optional[bool] = None
    timeout_ms: int = Field(default=30000, gt=0)


class ProgressEvent(CamelModel):
    page: int = Field(ge=1)
    total_pages: int = Field(ge=1)
    percent_complete: float = Field(ge=0, le=100)


class DocumentMetadata(CamelModel):
    page_count: int = Field(ge=1)
    title: Optional[str] = None
    author: Optional[str] = None
    keywords: Optional[List[str]] = None


class ProcessingStats(CamelModel):
    processing_time_ms: int = Field(ge=0)
    text_length: int = Field(ge=0)
    extracted_pages: int = Field(ge=0)


class SummarizationSuccess(CamelModel):
    success: Literal[True] = True
    summary: str
    metadata: DocumentMetadata
    stats: ProcessingStats


class SummarizationFailure(CamelModel):
    success: Literal[False] = False
    error: str


SummarizationResult = Union[SummarizationSuccess, SummarizationFailure]


# Server-sent event payloads for POST /upload-pdf
class ProgressResponse(CamelModel):
    type: Literal["progress"] = "progress"
    page: int
    total_pages: int
    percent_complete: float


class ResultResponse(CamelModel):
    type: Literal["result"] = "result"
    result: SummarizationResult


class ErrorResponse(CamelModel):
    type: str = "error"
    message: str


class ValidationResponse(CamelModel):
    valid: bool


# For GET /pdfs
class PDFSummary(CamelModel):
    id: str
    name: str
