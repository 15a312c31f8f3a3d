"""Unit tests for the serving layer."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from conftest import InMemoryVectorStore, LookupEmbeddings
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from study_rag.agent.graph import AnswerPipeline
from study_rag.agent.llm import CompletionClient, RefinementClient
from study_rag.ingestion.embedder import EmbeddingClient
from study_rag.ingestion.pipeline import IngestionPipeline, IngestionStage
from study_rag.retrieval.models import ChunkRecord
from study_rag.retrieval.retriever import SemanticRetriever
from study_rag.serving.app import create_app
from study_rag.service import StudyRagService


def _llm(content: str | None = None, error: BaseException | None = None) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=error) if error else AsyncMock(return_value=AIMessage(content=content))
    return llm


def _on_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class _RecordingStore(InMemoryVectorStore):
    """Notes whether each blocking call ran on the event loop thread."""

    def __init__(self, healthy: bool = True) -> None:
        super().__init__()
        self.healthy = healthy
        self.on_loop: list[bool] = []

    def list_document_names(self) -> set[str]:
        self.on_loop.append(_on_event_loop())
        return super().list_document_names()

    def delete_by_file_name(self, file_name: str) -> int:
        self.on_loop.append(_on_event_loop())
        return super().delete_by_file_name(file_name)

    def health_check(self) -> bool:
        self.on_loop.append(_on_event_loop())
        return self.healthy


def _service(
    completion_llm: MagicMock | None = None,
    *,
    max_document_bytes: int = 1024,
    store: InMemoryVectorStore | None = None,
) -> StudyRagService:
    store = store if store is not None else _RecordingStore()
    embedder = EmbeddingClient(LookupEmbeddings())
    retriever = SemanticRetriever(store, embedder)
    return StudyRagService(
        store=store,
        ingestion=IngestionPipeline(
            store, embedder, chunk_size=20, chunk_overlap=5, max_document_bytes=max_document_bytes
        ),
        retriever=retriever,
        answers=AnswerPipeline(
            retriever,
            CompletionClient(completion_llm or _llm("Base answer")),
            RefinementClient(None),
        ),
    )


@pytest.fixture()
def client() -> TestClient:
    return TestClient(create_app(_service()))


def _upload(client: TestClient, name: str, body: bytes, **form: str) -> httpx.Response:
    return client.post("/documents", files={"file": (name, body, "text/plain")}, data=form)


def test_health_endpoint() -> None:
    """GET /health should return 200 when the store answers its health check."""
    store = _RecordingStore()
    client = TestClient(create_app(_service(store=store)))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert store.on_loop == [False]


def test_health_endpoint_reports_unhealthy_store() -> None:
    client = TestClient(create_app(_service(store=_RecordingStore(healthy=False))))
    response = client.get("/health")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


def test_service_is_built_once_off_the_event_loop(monkeypatch: pytest.MonkeyPatch) -> None:
    built: list[bool] = []

    def fake_build(settings: object) -> StudyRagService:
        built.append(_on_event_loop())
        return _service()

    monkeypatch.setattr("study_rag.serving.app.build_service", fake_build)
    client = TestClient(create_app())
    assert client.get("/documents").json() == {"documents": []}
    assert client.get("/health").status_code == 200
    assert built == [False]


def test_tools_listed(client: TestClient) -> None:
    ids = [t["id"] for t in client.get("/tools").json()]
    assert ids == ["ask-question", "exam-questions", "flashcards", "revision-questions", "case-study"]


def test_upload_list_delete_cycle(client: TestClient) -> None:
    response = _upload(client, "networks.txt", b"A router forwards packets between networks.")
    assert response.status_code == 200
    body = response.json()
    assert body["report"]["chunks_stored"] == body["report"]["chunks_total"] > 0
    assert body["progress"] == [stage.value for stage in IngestionStage]

    assert client.get("/documents").json() == {"documents": ["networks.txt"]}

    deleted = client.delete("/documents/networks.txt").json()
    assert deleted["deleted"] == body["report"]["chunks_stored"]
    assert client.get("/documents").json() == {"documents": []}
    assert client.delete("/documents/networks.txt").json()["deleted"] == 0


def test_upload_replace(client: TestClient) -> None:
    _upload(client, "notes.txt", b"first version")
    response = _upload(client, "notes.txt", b"second version", replace="true")
    assert response.json()["report"]["replaced"] == 1


def test_oversized_upload_rejected() -> None:
    client = TestClient(create_app(_service(max_document_bytes=4)))
    response = _upload(client, "big.txt", b"too many bytes")
    assert response.status_code == 413
    assert response.json()["error"] == "DocumentTooLarge"


def test_unsupported_upload_rejected(client: TestClient) -> None:
    response = client.post("/documents", files={"file": ("slides.pptx", b"PK\x03\x04", "application/zip")})
    assert response.status_code == 422
    assert response.json()["error"] == "IngestionFailed"


def test_answer(client: TestClient) -> None:
    _upload(client, "networks.txt", b"A router forwards packets.")
    response = client.post("/answer", json={"question": "What is a router?", "level": "AS Level"})
    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == "Base answer"
    assert body["refined"] is False
    assert body["sources"][0]["source"] == "networks.txt"


def test_answer_provider_unreachable() -> None:
    request = httpx.Request("POST", "https://llm.example.com")
    llm = _llm(error=openai.APIConnectionError(request=request))
    client = TestClient(create_app(_service(llm)))
    response = client.post("/answer", json={"question": "What is a router?", "tool": "flashcards"})
    assert response.status_code == 502
    assert response.json()["reason"] == "unreachable"


def test_answer_unknown_tool_rejected(client: TestClient) -> None:
    response = client.post("/answer", json={"question": "q", "tool": "lesson-plan"})
    assert response.status_code == 422


def test_delete_name_containing_slash() -> None:
    store = _RecordingStore()
    store.put(ChunkRecord(file_name="week1/networks.txt", text="A hub repeats frames.", embedding=[1.0, 0.0]))
    client = TestClient(create_app(_service(store=store)))

    assert client.get("/documents").json() == {"documents": ["week1/networks.txt"]}
    response = client.delete("/documents/week1/networks.txt")
    assert response.status_code == 200
    assert response.json() == {"file_name": "week1/networks.txt", "deleted": 1}
    assert store.count() == 0
    assert store.on_loop == [False, False]
