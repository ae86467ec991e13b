"""
Tests for the in-memory vector index
"""

import threading

import numpy as np
import pytest

from conftest import POLICY_CHUNKS, KeywordEmbeddingProvider
from services.rag.exceptions import DimensionMismatchError, EmbeddingError, EmptyIndexError
from services.rag.models import UNKNOWN_SECTION, Chunk
from services.rag.search_engines import VectorIndex, cosine_similarity


class TestCosineSimilarity:

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_symmetric_and_scale_invariant(self):
        a = np.array([0.3, -1.2, 4.0])
        b = np.array([2.0, 0.5, 1.0])
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert cosine_similarity(a * 7.5, b) == pytest.approx(cosine_similarity(a, b))

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])


class TestVectorIndex:

    def test_grace_period_query_ranks_matching_chunk_first(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(POLICY_CHUNKS)

        results = index.search("What is the grace period?", top_k=1)

        assert len(results) == 1
        assert results[0].index == 0
        assert results[0].chunk.content == "grace period is 30 days"
        assert results[0].similarity == pytest.approx(3 / (np.sqrt(3) * 2))

    def test_results_are_ordered_and_bounded(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(POLICY_CHUNKS)

        for k in (1, 2, 3, 10):
            results = index.search("waiting period months", top_k=k)
            assert len(results) == min(k, len(POLICY_CHUNKS))
            similarities = [r.similarity for r in results]
            assert similarities == sorted(similarities, reverse=True)
            for result in results:
                assert -1.0 <= result.similarity <= 1.0

    def test_ties_keep_chunk_order(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(["apple one", "apple two", "apple three"])

        results = index.search("apple", top_k=3)
        assert [r.index for r in results] == [0, 1, 2]

    def test_search_before_indexing_raises(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        with pytest.raises(EmptyIndexError):
            index.search("anything")
        assert embedding_provider.calls == []

    def test_indexing_empty_list_leaves_index_empty(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(POLICY_CHUNKS)
        index.index([])
        assert index.is_empty
        with pytest.raises(EmptyIndexError):
            index.search("grace period")

    def test_invalid_top_k(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(POLICY_CHUNKS)
        with pytest.raises(ValueError):
            index.search("grace", top_k=0)

    def test_reindex_discards_previous_document(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(["zebra stripes", "zebra herd"])
        index.index(POLICY_CHUNKS)

        assert len(index) == len(POLICY_CHUNKS)
        contents = [r.chunk.content for r in index.search("zebra", top_k=10)]
        assert not any("zebra" in c for c in contents)

    def test_failed_chunks_are_skipped(self):
        provider = KeywordEmbeddingProvider(fail_on=("waiting",))
        index = VectorIndex(provider)
        index.index(POLICY_CHUNKS)

        assert len(index) == 2
        positions = [v.position for v in index.vectors]
        assert positions == [0, 2]

    def test_all_chunks_failing_leaves_index_empty(self):
        provider = KeywordEmbeddingProvider(fail_on=("period", "maternity"))
        index = VectorIndex(provider)
        index.index(POLICY_CHUNKS)
        assert index.is_empty

    def test_query_embedding_failure_propagates(self):
        provider = KeywordEmbeddingProvider(fail_queries=True)
        index = VectorIndex(provider)
        index.index(POLICY_CHUNKS)
        with pytest.raises(EmbeddingError):
            index.search("What is the grace period?")

    def test_unexpected_provider_errors_become_embedding_errors(self):
        class BrokenProvider:
            def embed(self, text):
                raise RuntimeError("connection reset")

        index = VectorIndex(KeywordEmbeddingProvider())
        index.index(POLICY_CHUNKS)
        index.embedding_provider = BrokenProvider()
        with pytest.raises(EmbeddingError):
            index.search("grace")

    def test_long_input_is_truncated_before_embedding(self, embedding_provider):
        index = VectorIndex(embedding_provider, max_input_chars=10)
        index.index(["grace period is 30 days and more text follows"])

        assert embedding_provider.calls[0] == "grace peri"
        # Stored content is the full chunk
        assert index.vectors[0].chunk.content.endswith("follows")

    def test_section_labels_are_attached(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index([
            "SECTION 4.2: GRACE PERIOD\nA grace period of 30 days applies",
            "No heading in this chunk at all",
        ])

        sections = [v.section for v in index.vectors]
        assert sections == ["GRACE PERIOD", UNKNOWN_SECTION]
        result = index.search("grace period", top_k=1)[0]
        assert result.section == "GRACE PERIOD"

    def test_chunk_objects_keep_their_positions(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index([Chunk(position=5, content="apple"), Chunk(position=9, content="banana")])
        assert [v.position for v in index.vectors] == [5, 9]
        assert index.search("banana", top_k=1)[0].index == 9

    def test_concurrent_embedding_preserves_order(self):
        provider = KeywordEmbeddingProvider()
        index = VectorIndex(provider, max_workers=4)
        chunks = [f"apple {i} " + "banana " * (i % 3) for i in range(20)]
        index.index(chunks)

        assert [v.position for v in index.vectors] == list(range(20))
        assert [v.chunk.content for v in index.vectors] == chunks

    def test_mixed_dimensions_are_rejected(self):
        class UnevenProvider:
            def __init__(self):
                self.count = 0

            def embed(self, text):
                self.count += 1
                return np.ones(3 if self.count == 1 else 4)

        index = VectorIndex(UnevenProvider())
        with pytest.raises(DimensionMismatchError):
            index.index(["one", "two"])
        assert index.is_empty

    def test_concurrent_searches_share_the_index(self, embedding_provider):
        index = VectorIndex(embedding_provider)
        index.index(POLICY_CHUNKS)
        results = []
        errors = []

        def worker():
            try:
                results.append(index.search("What is the grace period?", top_k=1)[0].index)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results == [0] * 8
