"""FastAPI application exposing the study RAG core to the browser UI."""

from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from study_rag.agent.prompts import TOOL_TITLES, StudyTool
from study_rag.config import settings
from study_rag.errors import (
    CompletionFailed,
    DocumentTooLarge,
    EmbeddingUnavailable,
    FailureReason,
    IngestionFailed,
    StudyRagError,
)
from study_rag.ingestion.pipeline import IngestionReport
from study_rag.retrieval.models import Citation
from study_rag.service import StudyRagService, build_service

logger = logging.getLogger(__name__)


# ── Request / Response schemas ────────────────────────────────────────
class AnswerRequest(BaseModel):
    """A question (or topic) for one of the study tools."""

    question: str
    level: str | None = None
    notes: str | None = None
    tool: StudyTool = StudyTool.ASK_QUESTION


class AnswerResponse(BaseModel):
    """Final answer returned to the UI."""

    answer: str
    refined: bool
    sources: list[Citation] = []


class UploadResponse(BaseModel):
    report: IngestionReport
    progress: list[str]


class DeleteResponse(BaseModel):
    file_name: str
    deleted: int


# ── Error mapping ─────────────────────────────────────────────────────
def _status_for(exc: StudyRagError) -> int:
    if isinstance(exc, DocumentTooLarge):
        return 413
    if isinstance(exc, IngestionFailed):
        return 422
    if isinstance(exc, EmbeddingUnavailable):
        return 503
    if isinstance(exc, CompletionFailed):
        return 400 if exc.reason is FailureReason.BAD_INPUT else 502
    return 500


async def _handle_study_rag_error(request: Request, exc: StudyRagError) -> JSONResponse:
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    reason = exc.reason.value if isinstance(exc, CompletionFailed) else None
    return JSONResponse(
        status_code=status,
        content={"detail": str(exc), "error": type(exc).__name__, "reason": reason},
    )


async def _get_service(request: Request) -> StudyRagService:
    state = request.app.state
    if state.service is None:
        async with state.service_lock:
            if state.service is None:
                # Loads the embedding model and opens the store.
                state.service = await asyncio.to_thread(build_service, settings)
    return state.service


def create_app(service: StudyRagService | None = None) -> FastAPI:
    """Build the API.  *service* is created lazily from settings when omitted."""
    app = FastAPI(
        title="Study RAG API",
        version="0.1.0",
        description="Upload notes, manage the knowledge base, and ask grounded questions.",
    )
    app.state.service = service
    app.state.service_lock = asyncio.Lock()
    app.add_exception_handler(StudyRagError, _handle_study_rag_error)

    # ── Routes ────────────────────────────────────────────────────────
    @app.get("/health")
    async def health(svc: StudyRagService = Depends(_get_service)) -> JSONResponse:
        """Readiness probe backed by the vector store health check."""
        if await asyncio.to_thread(svc.store.health_check):
            return JSONResponse({"status": "ok"})
        return JSONResponse({"status": "unavailable"}, status_code=503)

    @app.get("/tools")
    async def tools() -> list[dict[str, str]]:
        """Available study tools."""
        return [{"id": tool.value, "title": TOOL_TITLES[tool]} for tool in StudyTool]

    @app.get("/documents")
    async def list_documents(svc: StudyRagService = Depends(_get_service)) -> dict[str, list[str]]:
        """Names of every document in the knowledge base."""
        names = await asyncio.to_thread(svc.store.list_document_names)
        return {"documents": sorted(names)}

    @app.post("/documents", response_model=UploadResponse)
    async def upload_document(
        file: UploadFile = File(...),
        replace: bool = Form(False),
        svc: StudyRagService = Depends(_get_service),
    ) -> UploadResponse:
        """Ingest an uploaded document into the knowledge base."""
        data = await file.read()
        progress: list[str] = []
        report = await svc.ingestion.ingest(
            data,
            file.filename or "untitled",
            progress.append,
            replace=replace,
        )
        return UploadResponse(report=report, progress=progress)

    @app.delete("/documents/{file_name:path}", response_model=DeleteResponse)
    async def delete_document(file_name: str, svc: StudyRagService = Depends(_get_service)) -> DeleteResponse:
        """Remove every chunk of *file_name*.  Deleting an unknown name is not an error."""
        deleted = await asyncio.to_thread(svc.store.delete_by_file_name, file_name)
        return DeleteResponse(file_name=file_name, deleted=deleted)

    @app.post("/answer", response_model=AnswerResponse)
    async def answer(request: AnswerRequest, svc: StudyRagService = Depends(_get_service)) -> AnswerResponse:
        """Run the grounded answer pipeline for one study tool."""
        result = await svc.answers.run(request.question, request.level, request.notes, tool=request.tool)
        return AnswerResponse(answer=result.text, refined=result.refined, sources=result.sources)

    return app


app = create_app()


def main() -> None:
    """Run the API with uvicorn (``study-rag-serve``)."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
