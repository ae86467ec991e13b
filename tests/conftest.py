"""
Shared fixtures: deterministic stand-ins for the embedding and generation backends.
"""

import re
import threading

import numpy as np
import pytest

from services.rag.exceptions import EmbeddingError, GenerationError

VOCABULARY = [
    'grace', 'period', 'days', 'waiting', 'months', 'maternity', 'covered', 'after',
    'premium', 'policy', 'cataract', 'surgery', 'discount', 'claim', 'hospital',
    'section', 'organ', 'donor', 'room', 'rent', 'zebra', 'apple', 'banana'
]

POLICY_CHUNKS = [
    "grace period is 30 days",
    "waiting period is 36 months",
    "maternity covered after 24 months",
]


class KeywordEmbeddingProvider:
    """Bag-of-words over a fixed vocabulary plus a constant bias dimension"""

    def __init__(self, fail_on=(), fail_queries=False):
        self.fail_on = tuple(fail_on)
        self.fail_queries = fail_queries
        self.calls = []
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return len(VOCABULARY) + 1

    def embed(self, text: str) -> np.ndarray:
        with self._lock:
            self.calls.append(text)
        if any(marker in text for marker in self.fail_on):
            raise EmbeddingError(f"embedding refused for: {text[:20]}")
        if self.fail_queries and text.rstrip().endswith('?'):
            raise EmbeddingError("query embedding unavailable")

        vector = np.zeros(self.dimension)
        for word in re.findall(r'[a-z0-9]+', text.lower()):
            if word in VOCABULARY:
                vector[VOCABULARY.index(word)] += 1.0
        vector[-1] = 1.0
        return vector


class ScriptedGenerator:
    """Echoes the first context line back as the answer"""

    def __init__(self, fail_when=(), tokens=42, answer=None):
        self.fail_when = tuple(fail_when)
        self.tokens = tokens
        self.answer = answer
        self.prompts = []
        self._lock = threading.Lock()

    def generate(self, system_prompt: str, user_prompt: str):
        with self._lock:
            self.prompts.append(user_prompt)
        question = re.search(r'Question: (.*)', user_prompt).group(1)
        if any(marker in question for marker in self.fail_when):
            raise GenerationError(f"model unavailable for: {question}")
        if self.answer is not None:
            return self.answer, self.tokens
        context = user_prompt.split('Context:\n', 1)[1].split('\n\nQuestion:', 1)[0]
        first_line = context.split('\n')[0]
        return f"According to the document, {first_line}", self.tokens


class RecordingReporter:
    def __init__(self):
        self.reports = []
        self._lock = threading.Lock()

    def report(self, job_id, status):
        with self._lock:
            self.reports.append((job_id, status))

    @property
    def progress_values(self):
        return [status.progress for _, status in self.reports]

    @property
    def states(self):
        return [status.status for _, status in self.reports]


class StaticExtractor:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.sources = []

    def extract_from_source(self, source):
        self.sources.append(source)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def embedding_provider():
    return KeywordEmbeddingProvider()


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def policy_text():
    return (
        "SECTION 4.2: GRACE PERIOD FOR PREMIUM PAYMENT\n"
        "A grace period of thirty days is provided for premium payment after the due date. "
        "SECTION 6.1: PRE-EXISTING DISEASES\n"
        "There is a waiting period of thirty-six months for pre-existing diseases. "
        "SECTION 8.3: MATERNITY EXPENSES\n"
        "Maternity is covered after 24 months of continuous coverage."
    )
