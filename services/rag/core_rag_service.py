"""
Core RAG Service

This module contains the DocumentQAService class that orchestrates all RAG
components together: chunk the document, embed and index the chunks, then
retrieve and synthesize an answer for every question.

Every external capability (embedding, generation, extraction, status sink) is
passed in at construction so tests can run the whole pipeline with doubles.
"""

import logging
import threading
import time
import uuid
from collections import defaultdict
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Sequence

from .answer_synthesizer import AnswerSynthesizer
from .chunking_service import SentenceChunker
from .confidence_calculator import ConfidenceCalculator
from .exceptions import ExtractionError, RAGServiceError
from .models import (
    AnswerRecord,
    DocumentProcessingResult,
    ProcessingState,
    ProcessingStatus,
)
from .protocols import ChunkProcessor, DocumentExtractor, EmbeddingProvider, GenerationProvider, StatusReporter
from .search_engines import VectorIndex
from ..utils.config_manager import ConfigManager
from ..utils.retry_utils import performance_timer

logger = logging.getLogger(__name__)

ERROR_ANSWER_PREFIX = "Error processing question"
CANCELLED_ANSWER = "Processing was cancelled before this question was answered"

# Progress checkpoints reported to the status sink
PROGRESS_EXTRACTION = 10
PROGRESS_INDEXING = 30
PROGRESS_QUESTIONS = 60
PROGRESS_QUESTIONS_SPAN = 30
PROGRESS_DONE = 100

# How often the concurrent question loop checks for cancellation
CANCEL_POLL_INTERVAL = 0.1


class DocumentQAService:
    """Document-to-answer pipeline for one document per job"""

    DEFAULT_CHUNK_SIZE = 1000
    DEFAULT_TOP_K = 3

    def __init__(self, embedding_provider: EmbeddingProvider, generator: GenerationProvider,
                 config=None, status_reporter: Optional[StatusReporter] = None,
                 extractor: Optional[DocumentExtractor] = None,
                 chunker: Optional[ChunkProcessor] = None,
                 confidence_calculator: Optional[ConfidenceCalculator] = None):
        self.config_manager = config if isinstance(config, ConfigManager) else ConfigManager(config)
        self.embedding_provider = embedding_provider
        self.status_reporter = status_reporter
        self.extractor = extractor

        self.chunk_size = self.config_manager.get_int('CHUNK_SIZE', self.DEFAULT_CHUNK_SIZE)
        self.top_k = self.config_manager.get_int('RETRIEVAL_TOP_K', self.DEFAULT_TOP_K)
        self.max_input_chars = self.config_manager.get_int(
            'MAX_EMBEDDING_INPUT_CHARS', VectorIndex.DEFAULT_MAX_INPUT_CHARS)
        self.embedding_max_workers = self.config_manager.get_int('EMBEDDING_MAX_WORKERS', 1)
        self.question_max_workers = self.config_manager.get_int('QUESTION_MAX_WORKERS', 1)
        default_timeout = self.config_manager.get('PROCESSING_TIMEOUT')
        self.default_timeout = float(default_timeout) if default_timeout else None

        self.chunker = chunker or SentenceChunker(self.chunk_size)
        self.synthesizer = AnswerSynthesizer(generator, confidence_calculator)

        self.stats = defaultdict(int)
        self._stats_lock = threading.Lock()
        self.timing_stats: Dict[str, list] = defaultdict(list)

    def _count(self, key: str, amount: int = 1):
        with self._stats_lock:
            self.stats[key] += amount

    # ------------------------------------------------------------------
    # Status reporting
    # ------------------------------------------------------------------

    def _report(self, job_id: str, state: ProcessingState, message: str, progress: int):
        if self.status_reporter is None:
            return
        try:
            self.status_reporter.report(job_id, ProcessingStatus(status=state, message=message, progress=progress))
        except Exception as e:
            logger.warning(f"Status report failed for job {job_id}: {e}")

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def build_index(self, text: str) -> VectorIndex:
        """Chunk the document and index it in a fresh VectorIndex"""
        chunks = self.chunker.chunk(text, self.chunk_size)
        index = VectorIndex(
            self.embedding_provider,
            max_input_chars=self.max_input_chars,
            max_workers=self.embedding_max_workers
        )
        with performance_timer("Document indexing", self.timing_stats):
            index.index_chunks(chunks)
        self._count('chunks_created', len(chunks))
        self._count('chunks_indexed', len(index))
        return index

    def answer_question(self, index: VectorIndex, question: str) -> AnswerRecord:
        """Retrieve context for one question and synthesize its answer.

        Raises EmptyIndexError, EmbeddingError or GenerationError.
        """
        start_time = time.perf_counter()
        results = index.search(question, self.top_k)
        context_chunks = [result.chunk.content for result in results]
        generation = self.synthesizer.synthesize(question, context_chunks)

        top = results[0] if results else None
        return AnswerRecord(
            question=question,
            answer=generation.answer,
            confidence=generation.confidence,
            source_section=top.section if top else None,
            similarity_score=top.similarity if top else None,
            tokens_used=generation.tokens_used,
            processing_time=time.perf_counter() - start_time
        )

    def _answer_safely(self, index: VectorIndex, question: str) -> AnswerRecord:
        start_time = time.perf_counter()
        try:
            record = self.answer_question(index, question)
            self._count('questions_answered')
            return record
        except Exception as e:
            message = e.message if isinstance(e, RAGServiceError) else str(e)
            logger.error(f"Error processing question \"{question[:80]}\": {message}")
            self._count('questions_failed')
            return AnswerRecord(
                question=question,
                answer=f"{ERROR_ANSWER_PREFIX}: {message}",
                confidence=0.0,
                processing_time=time.perf_counter() - start_time,
                error=type(e).__name__
            )

    @staticmethod
    def _cancelled_record(question: str) -> AnswerRecord:
        return AnswerRecord(question=question, answer=CANCELLED_ANSWER, confidence=0.0, error='Cancelled')

    @staticmethod
    def _question_progress(done: int, total: int) -> int:
        return round(PROGRESS_QUESTIONS + (done / total) * PROGRESS_QUESTIONS_SPAN)

    # ------------------------------------------------------------------
    # Question loop
    # ------------------------------------------------------------------

    def _answer_sequentially(self, job_id, index, questions, should_stop) -> List[Optional[AnswerRecord]]:
        records: List[Optional[AnswerRecord]] = [None] * len(questions)
        for i, question in enumerate(questions):
            if should_stop():
                logger.warning(f"Job {job_id} stopped after {i} of {len(questions)} questions")
                break
            records[i] = self._answer_safely(index, question)
            self._report(job_id, ProcessingState.PROCESSING,
                         f"Processing question {i + 1} of {len(questions)}",
                         self._question_progress(i + 1, len(questions)))
        return records

    def _answer_concurrently(self, job_id, index, questions, should_stop) -> List[Optional[AnswerRecord]]:
        records: List[Optional[AnswerRecord]] = [None] * len(questions)
        executor = ThreadPoolExecutor(max_workers=self.question_max_workers, thread_name_prefix='qa-question')
        stopped = False
        try:
            pending = {
                executor.submit(self._answer_safely, index, question): i
                for i, question in enumerate(questions)
            }
            done_count = 0
            while pending:
                if should_stop():
                    stopped = True
                    # Keep answers that finished since the last poll
                    done = [future for future in pending if future.done()]
                else:
                    done, _ = wait(pending, timeout=CANCEL_POLL_INTERVAL, return_when=FIRST_COMPLETED)
                for future in done:
                    position = pending.pop(future)
                    records[position] = future.result()
                    done_count += 1
                    self._report(job_id, ProcessingState.PROCESSING,
                                 f"Processing question {done_count} of {len(questions)}",
                                 self._question_progress(done_count, len(questions)))
                if stopped:
                    logger.warning(f"Job {job_id} stopped with {len(pending)} questions outstanding")
                    break
        finally:
            # In-flight generation calls cannot be interrupted; they finish in the background
            executor.shutdown(wait=not stopped, cancel_futures=stopped)
        return records

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def process_document_text(self, text: str, questions: Sequence[str], job_id: Optional[str] = None,
                              cancel_event: Optional[threading.Event] = None,
                              timeout: Optional[float] = None) -> DocumentProcessingResult:
        """Answer every question about an already-extracted document.

        The result always holds exactly one answer and one confidence score per
        question, in input order. Per-question failures become placeholder
        answers with confidence 0. On cancellation or timeout the answers
        produced so far are kept and the result status is PARTIAL.
        """
        job_id = job_id or uuid.uuid4().hex
        questions = list(questions)
        start_time = time.perf_counter()
        timeout = timeout if timeout is not None else self.default_timeout
        deadline = start_time + timeout if timeout else None

        def should_stop() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                return True
            return deadline is not None and time.perf_counter() >= deadline

        self._report(job_id, ProcessingState.PROCESSING, "Chunking document and generating embeddings",
                     PROGRESS_INDEXING)
        try:
            index = self.build_index(text)
        except RAGServiceError as e:
            logger.error(f"Indexing failed for job {job_id}: {e}")
            self._report(job_id, ProcessingState.ERROR, f"Failed to index document: {e.message}", 0)
            raise
        logger.info(f"Job {job_id}: indexed {len(index)} chunks, answering {len(questions)} questions")

        self._report(job_id, ProcessingState.PROCESSING, "Generating answers", PROGRESS_QUESTIONS)
        with performance_timer("Question answering", self.timing_stats):
            if self.question_max_workers > 1 and len(questions) > 1:
                records = self._answer_concurrently(job_id, index, questions, should_stop)
            else:
                records = self._answer_sequentially(job_id, index, questions, should_stop)

        cancelled = [i for i, record in enumerate(records) if record is None]
        final_records = [
            record if record is not None else self._cancelled_record(questions[i])
            for i, record in enumerate(records)
        ]
        status = ProcessingState.PARTIAL if cancelled else ProcessingState.COMPLETED

        result = DocumentProcessingResult(
            answers=[record.answer for record in final_records],
            processing_time=time.perf_counter() - start_time,
            token_count=sum(record.tokens_used for record in final_records),
            confidence_scores=[record.confidence for record in final_records],
            document_processed=True,
            status=status,
            detailed_answers=final_records
        )

        if cancelled:
            answered = len(questions) - len(cancelled)
            self._report(job_id, ProcessingState.PARTIAL,
                         f"Processing cancelled after {answered} of {len(questions)} questions",
                         self._question_progress(answered, len(questions)))
        else:
            self._report(job_id, ProcessingState.COMPLETED, "Processing completed successfully", PROGRESS_DONE)

        self._count('jobs_processed')
        degraded = sum(1 for record in final_records if record.failed)
        logger.info(f"Job {job_id} finished with status {status.value} in {result.processing_time:.2f}s "
                    f"({result.token_count} tokens, {degraded} degraded answers)")
        return result

    def process(self, document_source: str, questions: Sequence[str], job_id: Optional[str] = None,
                cancel_event: Optional[threading.Event] = None,
                timeout: Optional[float] = None) -> DocumentProcessingResult:
        """Extract the document, then answer every question about it.

        Raises:
            ExtractionError: the document could not be downloaded or parsed
        """
        if self.extractor is None:
            raise ExtractionError("No document extractor configured")

        job_id = job_id or uuid.uuid4().hex
        self._report(job_id, ProcessingState.PROCESSING, "Downloading and processing document",
                     PROGRESS_EXTRACTION)
        try:
            with performance_timer("Document extraction", self.timing_stats):
                text = self.extractor.extract_from_source(document_source)
        except ExtractionError as e:
            logger.error(f"Document extraction failed for job {job_id}: {e}")
            self._report(job_id, ProcessingState.ERROR, f"Failed to process document: {e.message}", 0)
            raise
        except Exception as e:
            logger.error(f"Document extraction failed for job {job_id}: {e}")
            self._report(job_id, ProcessingState.ERROR, f"Failed to process document: {e}", 0)
            raise ExtractionError(f"Document extraction failed: {e}") from e

        return self.process_document_text(text, questions, job_id=job_id,
                                          cancel_event=cancel_event, timeout=timeout)

    def get_stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return dict(self.stats)


__all__ = ['DocumentQAService', 'ERROR_ANSWER_PREFIX', 'CANCELLED_ANSWER']
