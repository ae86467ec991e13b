"""
Sentence Chunking Service

This module splits extracted document text into bounded-size chunks that never
break a sentence in half. Chunks are the retrievable units of the vector index.
"""

import logging
from typing import List

from .models import Chunk
from .text_processing import TextProcessor

logger = logging.getLogger(__name__)


class SentenceChunker:
    """Greedy sentence-packing chunker"""

    DEFAULT_MAX_CHUNK_SIZE = 1000
    SENTENCE_SEPARATOR = ". "

    def __init__(self, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE):
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        self.max_chunk_size = max_chunk_size
        self.text_processor = TextProcessor()

    def chunk(self, text: str, max_chunk_size: int = None) -> List[Chunk]:
        """Pack sentences into chunks of at most max_chunk_size characters.

        A sentence longer than the limit is emitted whole as its own chunk.
        """
        limit = max_chunk_size if max_chunk_size is not None else self.max_chunk_size
        if limit <= 0:
            raise ValueError("max_chunk_size must be positive")

        sentences = self.text_processor.split_sentences(text)
        if not sentences:
            return []

        chunks: List[str] = []
        buffer = ""
        for sentence in sentences:
            candidate = f"{buffer}{sentence}{self.SENTENCE_SEPARATOR}".rstrip()
            if len(candidate) > limit and buffer:
                chunks.append(buffer.rstrip())
                buffer = f"{sentence}{self.SENTENCE_SEPARATOR}"
            else:
                buffer = f"{buffer}{sentence}{self.SENTENCE_SEPARATOR}"

        if buffer.strip():
            chunks.append(buffer.rstrip())

        logger.info(f"Chunked {len(sentences)} sentences into {len(chunks)} chunks (limit {limit} chars)")
        return [Chunk(position=i, content=content) for i, content in enumerate(chunks)]


__all__ = ['SentenceChunker']
