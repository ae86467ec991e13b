"""
RAG Data Models and Core Data Structures

This module contains the data classes and models used throughout the RAG system.
"""

import numpy as np
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Any, Dict

UNKNOWN_SECTION = "Unknown Section"


@dataclass(frozen=True)
class Chunk:
    """Contiguous span of document text treated as one retrievable unit"""
    position: int
    content: str
    section: Optional[str] = None

    def __len__(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class EmbeddingVector:
    """Chunk paired with its embedding and section metadata"""
    chunk: Chunk
    embedding: np.ndarray
    section: str = UNKNOWN_SECTION

    @property
    def position(self) -> int:
        return self.chunk.position

    @property
    def dimension(self) -> int:
        return int(self.embedding.shape[0])


@dataclass(frozen=True)
class SearchResult:
    """Chunk scored against a query"""
    chunk: Chunk
    similarity: float
    index: int

    @property
    def section(self) -> Optional[str]:
        return self.chunk.section


@dataclass(frozen=True)
class GenerationResult:
    """Synthesized answer with local confidence and token accounting"""
    answer: str
    confidence: float
    tokens_used: int = 0


@dataclass(frozen=True)
class AnswerRecord:
    """Final per-question answer with metadata"""
    question: str
    answer: str
    confidence: float
    source_section: Optional[str] = None
    similarity_score: Optional[float] = None
    tokens_used: int = 0
    processing_time: float = 0.0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'question': self.question,
            'answer': self.answer,
            'confidence': self.confidence,
            'tokens_used': self.tokens_used,
            'processing_time': self.processing_time
        }
        if self.source_section is not None:
            data['source_section'] = self.source_section
        if self.similarity_score is not None:
            data['similarity_score'] = self.similarity_score
        if self.error is not None:
            data['error'] = self.error
        return data


class ProcessingState(str, Enum):
    """Lifecycle of a document-processing job"""
    IDLE = 'idle'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    PARTIAL = 'partial'
    ERROR = 'error'

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingState.COMPLETED, ProcessingState.PARTIAL, ProcessingState.ERROR)


@dataclass(frozen=True)
class ProcessingStatus:
    """Status snapshot reported to the status sink"""
    status: ProcessingState
    message: str = ""
    progress: int = 0

    def __post_init__(self):
        if not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be within [0, 100], got {self.progress}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'message': self.message,
            'progress': self.progress
        }


@dataclass
class DocumentProcessingResult:
    """Aggregate result of answering a batch of questions about one document"""
    answers: List[str]
    processing_time: float
    token_count: int
    confidence_scores: List[float]
    document_processed: bool = True
    status: ProcessingState = ProcessingState.COMPLETED
    detailed_answers: List[AnswerRecord] = field(default_factory=list)

    def to_dict(self, include_details: bool = False) -> Dict[str, Any]:
        """Wire shape returned to API callers"""
        response = {
            'answers': list(self.answers),
            'metadata': {
                'processing_time': self.processing_time,
                'token_count': self.token_count,
                'confidence_scores': list(self.confidence_scores),
                'document_processed': self.document_processed
            }
        }
        if self.status is not ProcessingState.COMPLETED:
            response['metadata']['status'] = self.status.value
        if include_details:
            response['detailed_answers'] = [record.to_dict() for record in self.detailed_answers]
        return response


__all__ = [
    'UNKNOWN_SECTION',
    'Chunk',
    'EmbeddingVector',
    'SearchResult',
    'GenerationResult',
    'AnswerRecord',
    'ProcessingState',
    'ProcessingStatus',
    'DocumentProcessingResult'
]
