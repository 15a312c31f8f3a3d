"""Unit tests for the embedding client and the embedding factory."""

from __future__ import annotations

import asyncio
import math

import pytest
from conftest import LookupEmbeddings
from langchain_core.embeddings import Embeddings

from study_rag.config import Settings
from study_rag.errors import EmbeddingUnavailable
from study_rag.ingestion.embedder import EmbeddingClient, build_embeddings


class _RawEmbeddings(Embeddings):
    """Returns whatever it was constructed with, unvalidated."""

    def __init__(self, value: object) -> None:
        self.value = value

    def embed_query(self, text: str) -> list[float]:
        return self.value  # type: ignore[return-value]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]


class _SlowEmbeddings(Embeddings):
    def embed_query(self, text: str) -> list[float]:
        raise NotImplementedError

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        raise NotImplementedError

    async def aembed_query(self, text: str) -> list[float]:
        await asyncio.sleep(5)
        return [1.0]


@pytest.mark.asyncio
async def test_embed_returns_floats() -> None:
    client = EmbeddingClient(LookupEmbeddings({"cpu": [1, 2, 3]}))
    assert await client.embed("cpu") == [1.0, 2.0, 3.0]


@pytest.mark.asyncio
async def test_provider_error_becomes_unavailable() -> None:
    client = EmbeddingClient(LookupEmbeddings(failing={"cpu"}))
    with pytest.raises(EmbeddingUnavailable):
        await client.embed("cpu")


@pytest.mark.asyncio
async def test_timeout_becomes_unavailable() -> None:
    client = EmbeddingClient(_SlowEmbeddings(), timeout=0.01)
    with pytest.raises(EmbeddingUnavailable, match="timed out"):
        await client.embed("cpu")


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [[], None, "not a vector", [1.0, math.inf], [1.0, math.nan], [1.0, "x"]])
async def test_malformed_output_rejected(bad: object) -> None:
    client = EmbeddingClient(_RawEmbeddings(bad))
    with pytest.raises(EmbeddingUnavailable):
        await client.embed("cpu")


@pytest.mark.asyncio
async def test_wrong_dimension_rejected() -> None:
    client = EmbeddingClient(_RawEmbeddings([1.0, 0.0]), dimension=3)
    with pytest.raises(EmbeddingUnavailable, match="expected 3 dimensions"):
        await client.embed("cpu")


@pytest.mark.asyncio
async def test_no_caching() -> None:
    fake = LookupEmbeddings()
    client = EmbeddingClient(fake)
    await client.embed("same")
    await client.embed("same")
    assert fake.calls == ["same", "same"]


def test_build_openai_embeddings() -> None:
    from langchain_openai import OpenAIEmbeddings

    cfg = Settings(
        embedding_provider="openai",
        embedding_model="text-embedding-3-small",
        embedding_api_key="sk-test",
    )
    assert isinstance(build_embeddings(cfg), OpenAIEmbeddings)


@pytest.mark.asyncio
async def test_first_vector_fixes_dimension() -> None:
    client = EmbeddingClient(LookupEmbeddings({"cpu": [1.0, 0.0], "ram": [1.0, 0.0, 0.0]}))
    assert client.expected_dimension is None
    await client.embed("cpu")
    assert client.expected_dimension == 2
    with pytest.raises(EmbeddingUnavailable, match="expected 2 dimensions, got 3"):
        await client.embed("ram")


@pytest.mark.asyncio
async def test_reference_dimension_is_enforced() -> None:
    client = EmbeddingClient(
        LookupEmbeddings({"cpu": [1.0, 0.0], "ram": [1.0, 0.0, 0.0]}),
        reference_dimension=lambda: 3,
    )
    with pytest.raises(EmbeddingUnavailable):
        await client.embed("cpu")
    assert await client.embed("ram") == [1.0, 0.0, 0.0]


@pytest.mark.asyncio
async def test_configured_dimension_takes_precedence() -> None:
    client = EmbeddingClient(_RawEmbeddings([1.0, 0.0]), dimension=2, reference_dimension=lambda: 3)
    assert await client.embed("cpu") == [1.0, 0.0]
