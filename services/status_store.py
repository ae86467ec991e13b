"""
Processing Status Store

In-memory record of processing job status and results. It
doubles as the status sink the RAG pipeline reports into.
"""

import logging
import threading
import uuid
from typing import Dict, List, Optional

from services.rag.models import DocumentProcessingResult, ProcessingState, ProcessingStatus

logger = logging.getLogger(__name__)


class InMemoryStatusStore:
    """Thread-safe job status and result storage"""

    def __init__(self):
        self._lock = threading.Lock()
        self._statuses: Dict[str, ProcessingStatus] = {}
        self._results: Dict[str, DocumentProcessingResult] = {}

    def store_request(self, document: str, questions: List[str]) -> str:
        job_id = str(uuid.uuid4())
        logger.info(f"Job {job_id}: received {len(questions)} questions for {document}")
        with self._lock:
            self._statuses[job_id] = ProcessingStatus(ProcessingState.IDLE, 'Request received', 0)
        return job_id

    def update_status(self, job_id: str, status: ProcessingStatus) -> None:
        with self._lock:
            self._statuses[job_id] = status
        logger.debug(f"Job {job_id}: {status.status.value} {status.progress}% {status.message}")

    # StatusReporter protocol
    report = update_status

    def get_status(self, job_id: str) -> Optional[ProcessingStatus]:
        with self._lock:
            return self._statuses.get(job_id)

    def store_result(self, job_id: str, result: DocumentProcessingResult) -> None:
        with self._lock:
            self._results[job_id] = result
            if result.status is ProcessingState.COMPLETED:
                self._statuses[job_id] = ProcessingStatus(
                    ProcessingState.COMPLETED, 'Processing completed successfully', 100)
            elif job_id not in self._statuses or not self._statuses[job_id].status.is_terminal:
                self._statuses[job_id] = ProcessingStatus(result.status, 'Processing finished with partial results', 90)

    def get_result(self, job_id: str) -> Optional[DocumentProcessingResult]:
        with self._lock:
            return self._results.get(job_id)


__all__ = ['InMemoryStatusStore']
