import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.pdf_routes import router as pdf_router
from app.config import Settings, get_settings
from app.utils.pdf_parser import PypdfParser
from app.utils.summarizers import build_summarizer


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title = "Document Summarizer",
        description= "Extracts text from PDF documents and summarizes it",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.pdf_parser = PypdfParser()
    app.state.summarizer = build_summarizer(settings)

    app.include_router(pdf_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
