from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.config import Settings
from app.api.pdf_routes import read_upload
from main import create_app
from conftest import FakeDocument, FakeParser, numbered_pages


@pytest.fixture()
def app(tmp_path: Path):
    settings = Settings(upload_dir=str(tmp_path / "uploads"), max_upload_bytes=200_000)
    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


def pdf_file(data: bytes, name: str = "notes.pdf"):
    return {"file": (name, data, "application/pdf")}


def read_events(response):
    return [
        json.loads(line[len("data: "):])
        for line in response.text.splitlines()
        if line.startswith("data: ")
    ]


def test_health_check(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_validate_pdf_endpoint(client: TestClient, sample_pdf: bytes) -> None:
    assert client.post("/validate-pdf", files=pdf_file(b"%PDF-1.4 ...")).json() == {"valid": True}
    assert client.post("/validate-pdf", files=pdf_file(b"PK\x03\x04")).json() == {"valid": False}


def test_summarize_endpoint_returns_camel_case_result(client: TestClient, sample_pdf: bytes) -> None:
    response = client.post("/summarize", files=pdf_file(sample_pdf))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["summary"] == "Sample summary of 3 pages"
    assert body["metadata"] == {
        "pageCount": 3,
        "title": "Test Document",
        "author": "Test Author",
        "keywords": ["test", "pdf", "document"],
    }
    assert body["stats"]["extractedPages"] == 3
    assert "processingTimeMs" in body["stats"]
    assert "error" not in body


def test_summarize_endpoint_passes_options(app, client: TestClient) -> None:
    document = FakeDocument(numbered_pages(4))
    app.state.pdf_parser = FakeParser(document)

    response = client.post(
        "/summarize",
        files=pdf_file(b"%PDF-1.4 fake"),
        data={"max_pages": "2", "timeout_ms": "1000"},
    )

    assert response.json()["stats"]["extractedPages"] == 2
    assert document.requested_pages == [1, 2]


def test_summarize_endpoint_reports_failures(client: TestClient) -> None:
    response = client.post("/summarize", files=pdf_file(b""))

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Empty or invalid PDF file"}


def test_summarize_endpoint_rejects_bad_options(client: TestClient) -> None:
    response = client.post("/summarize", files=pdf_file(b"%PDF-1.4"), data={"max_pages": "0"})
    assert response.status_code == 422


def test_upload_too_large(client: TestClient) -> None:
    response = client.post("/summarize", files=pdf_file(b"%PDF-" + bytes(200_000)))
    assert response.status_code == 413


def test_upload_streams_progress_and_result(app, client: TestClient, sample_pdf: bytes) -> None:
    response = client.post("/upload-pdf", files=pdf_file(sample_pdf, "lecture_1.pdf"))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = read_events(response)
    assert [e["type"] for e in events] == ["progress", "progress", "progress", "result"]
    assert events[0] == {"type": "progress", "page": 1, "totalPages": 3, "percentComplete": pytest.approx(100 / 3)}
    assert events[-1]["result"]["success"] is True
    assert events[-1]["result"]["stats"]["extractedPages"] == 3

    stored = os.listdir(app.state.settings.upload_dir)
    assert stored == [f"{response.headers['x-file-id']}_lecture_1.pdf"]


def test_upload_rejects_non_pdf(app, client: TestClient) -> None:
    response = client.post("/upload-pdf", files=pdf_file(b"hello world", "notes.txt"))

    assert response.status_code == 400
    assert not os.path.exists(app.state.settings.upload_dir)


def test_upload_stream_reports_pipeline_failure(app, client: TestClient) -> None:
    app.state.pdf_parser = FakeParser(FakeDocument([[]]))

    response = client.post("/upload-pdf", files=pdf_file(b"%PDF-1.4 fake"))

    events = read_events(response)
    assert events == [
        {"type": "result", "result": {"success": False, "error": "No text content could be extracted"}}
    ]


def test_list_pdfs(client: TestClient, sample_pdf: bytes) -> None:
    assert client.get("/pdfs").json() == []

    client.post("/upload-pdf", files=pdf_file(sample_pdf, "week_1.pdf"))
    client.post("/upload-pdf", files=pdf_file(sample_pdf, "week_1.pdf"))
    client.post("/upload-pdf", files=pdf_file(sample_pdf, "week_2.pdf"))

    listed = client.get("/pdfs").json()
    assert sorted(item["name"] for item in listed) == ["week_1.pdf", "week_2.pdf"]
    assert all(item["id"] for item in listed)


class ReportedSizeUpload:
    def __init__(self, size):
        self.size = size
        self.read_calls = 0

    async def read(self, size=-1):
        self.read_calls += 1
        return b"%PDF-1.4"


@pytest.mark.asyncio
async def test_declared_size_over_limit_is_rejected_before_reading() -> None:
    upload = ReportedSizeUpload(size=2048)

    with pytest.raises(HTTPException) as excinfo:
        await read_upload(upload, Settings(max_upload_bytes=1024))

    assert excinfo.value.status_code == 413
    assert upload.read_calls == 0


@pytest.mark.asyncio
async def test_upload_without_declared_size_is_read() -> None:
    upload = ReportedSizeUpload(size=None)

    assert await read_upload(upload, Settings(max_upload_bytes=1024)) == b"%PDF-1.4"
    assert upload.read_calls == 1
