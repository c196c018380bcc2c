import logging
import os
import re
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from app.config import Settings
from app.schema.schema_classes import *
from app.utils.pdf_summarizer import PDFSummarizer, validate_pdf

logger = logging.getLogger(__name__)

router = APIRouter()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pdf_summarizer(request: Request) -> PDFSummarizer:
    # Progress listeners live on the instance, so each request gets its own.
    return PDFSummarizer(
        parser=request.app.state.pdf_parser,
        summarizer=request.app.state.summarizer,
    )


def get_summarization_options(
    max_pages: Optional[int] = Form(None),
    target_length: Optional[int] = Form(None),
    include_metadata: Optional[bool] = Form(None),
    timeout_ms: Optional[int] = Form(None),
    settings: Settings = Depends(get_app_settings),
) -> SummarizationOptions:
    values = {
        "max_pages": max_pages if max_pages is not None else settings.pdf_max_pages,
        "target_length": target_length,
        "include_metadata": include_metadata,
        "timeout_ms": timeout_ms if timeout_ms is not None else settings.pdf_timeout_ms,
    }
    try:
        return SummarizationOptions(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


def _too_large(settings: Settings) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail=f"File exceeds the {settings.max_upload_bytes} byte upload limit",
    )


async def read_upload(file: UploadFile, settings: Settings) -> bytes:
    # size is None when the client did not report one; fall back to a bounded read.
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise _too_large(settings)
    try:
        pdf_bytes = await file.read(settings.max_upload_bytes + 1)
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Error reading file: {str(e)}")
    if len(pdf_bytes) > settings.max_upload_bytes:
        raise _too_large(settings)
    return pdf_bytes


@router.get("/", summary="Health check", tags=["Health"])
async def health_check():
    """
    A simple endpoint to verify that the server is up and running.
    """
    return JSONResponse(
        status_code=200,
        content={"status": "ok", "message": "Document Summarizer service is healthy"}
    )


@router.get("/pdfs", response_model=List[PDFSummary])
def list_pdfs(settings: Settings = Depends(get_app_settings)):
    files = []
    if not os.path.isdir(settings.upload_dir):
        return files
    try:
        for filename in sorted(os.listdir(settings.upload_dir)):
            # Stored names are "<file_id>_<original name>".
            match = re.match(r'^([^_]+)_(.+)$', filename)
            if match:
                file_id = match.group(1)
                original_name = match.group(2)
            else:
                file_id = filename
                original_name = filename
            if not any(f.name == original_name for f in files):
                files.append(PDFSummary(id=file_id, name=original_name))
        return files
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Error listing PDFs: {str(e)}")


@router.post("/validate-pdf", response_model=ValidationResponse)
async def validate_pdf_upload(
    file: UploadFile = File(...),
    settings: Settings = Depends(get_app_settings),
):
    pdf_bytes = await read_upload(file, settings)
    return ValidationResponse(valid=validate_pdf(pdf_bytes))


@router.post(
    "/summarize",
    response_model=SummarizationResult,
    response_model_exclude_none=True,
)
async def summarize_pdf(
    file: UploadFile = File(...),
    options: SummarizationOptions = Depends(get_summarization_options),
    settings: Settings = Depends(get_app_settings),
    summarizer: PDFSummarizer = Depends(get_pdf_summarizer),
):
    pdf_bytes = await read_upload(file, settings)
    return await summarizer.summarize(pdf_bytes, options)


@router.post("/upload-pdf")
async def upload_and_summarize(
    file: UploadFile = File(...),
    options: SummarizationOptions = Depends(get_summarization_options),
    settings: Settings = Depends(get_app_settings),
    summarizer: PDFSummarizer = Depends(get_pdf_summarizer),
):
    pdf_bytes = await read_upload(file, settings)
    if not validate_pdf(pdf_bytes):
        raise HTTPException(status_code=400, detail="Uploaded file is not a PDF document")

    # Generate a unique file ID and store the file with its original name.
    file_id = str(uuid.uuid4())
    new_filename = f"{file_id}_{os.path.basename(file.filename or 'document.pdf')}"
    file_path = os.path.join(settings.upload_dir, new_filename)
    try:
        os.makedirs(settings.upload_dir, exist_ok=True)
        with open(file_path, "wb") as f:
            f.write(pdf_bytes)
    except OSError as e:
        logger.exception("Could not store upload %s", file_path)
        raise HTTPException(status_code=500, detail=f"Error saving file: {str(e)}")

    async def summary_stream():
        try:
            async for item in summarizer.stream(pdf_bytes, options):
                if isinstance(item, ProgressEvent):
                    message = ProgressResponse(**item.model_dump())
                else:
                    message = ResultResponse(result=item)
                yield f"data: {message.model_dump_json(by_alias=True, exclude_none=True)}\n\n"
        except Exception as e:
            logger.exception("Summary stream for %s failed", new_filename)
            yield f"data: {ErrorResponse(message=str(e)).model_dump_json()}\n\n"

    return StreamingResponse(
        summary_stream(),
        media_type="text/event-stream",
        headers={"X-File-Id": file_id},
    )
