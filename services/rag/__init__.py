"""
RAG Service Module - Document Question Answering

This module provides the document-to-answer pipeline: sentence chunking,
an in-memory vector index, answer synthesis with confidence scoring, and the
orchestrator that ties them together.
"""

from .models import (
    Chunk,
    EmbeddingVector,
    SearchResult,
    GenerationResult,
    AnswerRecord,
    ProcessingState,
    ProcessingStatus,
    DocumentProcessingResult,
)
from .exceptions import (
    RAGServiceError,
    ExtractionError,
    EmbeddingError,
    EmptyIndexError,
    GenerationError,
    DimensionMismatchError,
)
from .protocols import ChunkProcessor, EmbeddingProvider, GenerationProvider, DocumentExtractor, StatusReporter
from .chunking_service import SentenceChunker
from .search_engines import VectorIndex, cosine_similarity
from .confidence_calculator import ConfidenceCalculator
from .answer_synthesizer import AnswerSynthesizer
from .embedding_service import (
    SentenceTransformerEmbeddingProvider,
    MistralEmbeddingProvider,
    build_embedding_provider,
)
from .generation_service import MistralGenerationProvider, build_generation_provider
from .core_rag_service import DocumentQAService
from .text_processing import TextProcessor

__all__ = [
    'Chunk',
    'EmbeddingVector',
    'SearchResult',
    'GenerationResult',
    'AnswerRecord',
    'ProcessingState',
    'ProcessingStatus',
    'DocumentProcessingResult',
    'RAGServiceError',
    'ExtractionError',
    'EmbeddingError',
    'EmptyIndexError',
    'GenerationError',
    'DimensionMismatchError',
    'ChunkProcessor',
    'EmbeddingProvider',
    'GenerationProvider',
    'DocumentExtractor',
    'StatusReporter',
    'SentenceChunker',
    'VectorIndex',
    'cosine_similarity',
    'ConfidenceCalculator',
    'AnswerSynthesizer',
    'SentenceTransformerEmbeddingProvider',
    'MistralEmbeddingProvider',
    'build_embedding_provider',
    'MistralGenerationProvider',
    'build_generation_provider',
    'DocumentQAService',
    'TextProcessor'
]
