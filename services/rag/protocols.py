"""
RAG Protocols and Interfaces

This module defines the interfaces and protocols used by the RAG system components.
The orchestrator only depends on these, so tests can swap in doubles.
"""

from typing import Protocol, List, Sequence, Tuple
from .models import Chunk, ProcessingStatus


class ChunkProcessor(Protocol):
    """Protocol for document chunking strategies"""
    def chunk(self, text: str, max_chunk_size: int = 1000) -> List[Chunk]:
        ...


class EmbeddingProvider(Protocol):
    """Protocol for text embedding backends"""
    def embed(self, text: str) -> Sequence[float]:
        ...


class GenerationProvider(Protocol):
    """Protocol for text generation backends, returns (text, tokens_used)"""
    def generate(self, system_prompt: str, user_prompt: str) -> Tuple[str, int]:
        ...


class DocumentExtractor(Protocol):
    """Protocol for turning a document source into plain text"""
    def extract_from_source(self, source: str) -> str:
        ...


class StatusReporter(Protocol):
    """Protocol for the job status sink"""
    def report(self, job_id: str, status: ProcessingStatus) -> None:
        ...


__all__ = ['ChunkProcessor', 'EmbeddingProvider', 'GenerationProvider', 'DocumentExtractor', 'StatusReporter']
