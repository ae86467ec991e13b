"""
Vector Index for the RAG System

This module contains the in-memory, brute-force vector index used for one
document at a time. Indexing replaces the previous document entirely; search
scores every stored vector by cosine similarity against the query.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from .exceptions import DimensionMismatchError, EmbeddingError, EmptyIndexError
from .models import Chunk, EmbeddingVector, SearchResult
from .protocols import EmbeddingProvider
from .text_processing import TextProcessor
from ..utils.locks import ReadWriteLock
from ..utils.retry_utils import performance_timer

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors, 0.0 when either is the zero vector"""
    vec_a = np.asarray(a, dtype=np.float64).ravel()
    vec_b = np.asarray(b, dtype=np.float64).ravel()
    if vec_a.shape[0] != vec_b.shape[0]:
        raise DimensionMismatchError(vec_a.shape[0], vec_b.shape[0])

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    # Rounding can push identical vectors a hair past 1
    return max(-1.0, min(1.0, similarity))


class VectorIndex:
    """Single-document embedding index with top-K cosine search"""

    DEFAULT_TOP_K = 5
    DEFAULT_MAX_INPUT_CHARS = 8000

    def __init__(self, embedding_provider: EmbeddingProvider,
                 max_input_chars: int = DEFAULT_MAX_INPUT_CHARS,
                 max_workers: int = 1):
        if max_input_chars <= 0:
            raise ValueError("max_input_chars must be positive")
        self.embedding_provider = embedding_provider
        self.max_input_chars = max_input_chars
        self.max_workers = max(1, max_workers)
        self.text_processor = TextProcessor()

        self._vectors: List[EmbeddingVector] = []
        self._lock = ReadWriteLock()
        self.stats: Dict[str, list] = {}

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._vectors)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def vectors(self) -> List[EmbeddingVector]:
        with self._lock.read_locked():
            return list(self._vectors)

    def _prepare_text(self, text: str) -> str:
        return text[:self.max_input_chars]

    def _embed(self, text: str) -> np.ndarray:
        try:
            vector = self.embedding_provider.embed(self._prepare_text(text))
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Embedding provider failed: {e}") from e
        return np.asarray(vector, dtype=np.float64).ravel()

    def _embed_chunk(self, chunk: Chunk) -> Optional[EmbeddingVector]:
        try:
            embedding = self._embed(chunk.content)
        except EmbeddingError as e:
            logger.error(f"Failed to generate embedding for chunk {chunk.position}: {e}")
            return None

        section = self.text_processor.extract_section(chunk.content)
        return EmbeddingVector(chunk=replace(chunk, section=section), embedding=embedding, section=section)

    def index(self, chunks: Sequence[Union[str, Chunk]]) -> None:
        """Replace the index with the given chunks; chunks that fail to embed are skipped"""
        normalized = [
            c if isinstance(c, Chunk) else Chunk(position=i, content=c)
            for i, c in enumerate(chunks)
        ]
        self.index_chunks(normalized)

    def index_chunks(self, chunks: Sequence[Chunk]) -> None:
        with self._lock.write_locked():
            self._vectors = []
            if not chunks:
                logger.warning("No chunks to index")
                return

            logger.info(f"Indexing {len(chunks)} chunks...")
            start_time = time.perf_counter()
            with performance_timer("Chunk embedding", self.stats):
                if self.max_workers > 1 and len(chunks) > 1:
                    with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                        embedded = list(executor.map(self._embed_chunk, chunks))
                else:
                    embedded = [self._embed_chunk(chunk) for chunk in chunks]

            # executor.map preserves input order, so positions stay aligned
            self._vectors = [vector for vector in embedded if vector is not None]
            self._check_dimensions()

            skipped = len(chunks) - len(self._vectors)
            elapsed = time.perf_counter() - start_time
            if skipped:
                logger.warning(f"Skipped {skipped}/{len(chunks)} chunks that could not be embedded")
            logger.info(f"Indexing complete: {len(self._vectors)} chunks indexed in {elapsed:.2f}s")

    def _check_dimensions(self):
        if not self._vectors:
            return
        expected = self._vectors[0].dimension
        for vector in self._vectors[1:]:
            if vector.dimension != expected:
                self._vectors = []
                raise DimensionMismatchError(expected, vector.dimension)

    def clear(self) -> None:
        with self._lock.write_locked():
            self._vectors = []

    def search(self, query: str, top_k: int = DEFAULT_TOP_K) -> List[SearchResult]:
        """Return up to top_k chunks ordered by cosine similarity, highest first"""
        if top_k <= 0:
            raise ValueError("top_k must be positive")

        with self._lock.read_locked():
            if not self._vectors:
                raise EmptyIndexError()

            query_embedding = self._embed(query)

            results = [
                SearchResult(
                    chunk=vector.chunk,
                    similarity=cosine_similarity(query_embedding, vector.embedding),
                    index=vector.position
                )
                for vector in self._vectors
            ]

        # sorted() is stable, ties keep chunk order
        results = sorted(results, key=lambda r: r.similarity, reverse=True)
        return results[:top_k]


__all__ = ['VectorIndex', 'cosine_similarity']
