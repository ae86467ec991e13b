"""
Embedding Providers

This module contains the embedding backends used by the vector index: a local
sentence-transformers model and the hosted Mistral embedding model. Both return
1-D float vectors and raise EmbeddingError on failure. Input truncation is the
caller's job.
"""

import logging
import threading
from typing import List, Optional

import numpy as np

from .exceptions import EmbeddingError
from ..utils.config_manager import ConfigManager
from ..utils.retry_utils import RetryConfig, with_retry

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_MODEL = 'sentence-transformers/all-MiniLM-L6-v2'
DEFAULT_MISTRAL_EMBEDDING_MODEL = 'mistral-embed'


class SentenceTransformerEmbeddingProvider:
    """Local embedding model, loaded on first use"""

    def __init__(self, model_name: str = DEFAULT_LOCAL_MODEL, device: str = 'cpu', model=None):
        self.model_name = model_name
        self.device = device
        self._model = model
        # SentenceTransformer.encode is not safe to call from several threads at once
        self.model_lock = threading.Lock()

    def _get_model(self):
        if self._model is None:
            with self.model_lock:
                if self._model is None:
                    try:
                        from sentence_transformers import SentenceTransformer
                        self._model = SentenceTransformer(self.model_name, device=self.device)
                        logger.info(f"Embedding model {self.model_name} loaded on {self.device}")
                    except Exception as e:
                        logger.error(f"Failed to load embedding model {self.model_name}: {e}")
                        raise EmbeddingError(f"Failed to load embedding model: {e}",
                                             details={'model': self.model_name}) from e
        return self._model

    @property
    def dimension(self) -> int:
        return int(self._get_model().get_sentence_embedding_dimension())

    def embed(self, text: str) -> np.ndarray:
        model = self._get_model()
        try:
            with self.model_lock:
                embedding = model.encode(
                    [text],
                    normalize_embeddings=True,
                    show_progress_bar=False,
                    convert_to_numpy=True
                )[0]
        except Exception as e:
            raise EmbeddingError(f"Local embedding failed: {e}", details={'model': self.model_name}) from e
        return np.asarray(embedding, dtype=np.float32)


class MistralEmbeddingProvider:
    """Hosted Mistral embeddings through langchain"""

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MISTRAL_EMBEDDING_MODEL,
                 retry_config: RetryConfig = None, client=None):
        self.model = model
        self.retry_config = retry_config or RetryConfig()
        if client is None:
            if not api_key:
                raise EmbeddingError("MISTRAL_API_KEY is required for the mistral embedding backend")
            from langchain_mistralai import MistralAIEmbeddings
            client = MistralAIEmbeddings(model=model, api_key=api_key)
        self.client = client
        self._dimension = None
        self._embed_with_retry = with_retry(self.retry_config)(self._embed_remote)

    def _embed_remote(self, text: str) -> List[float]:
        return self.client.embed_query(text)

    @property
    def dimension(self) -> int:
        if self._dimension is None:
            self._dimension = len(self.embed("dimension check"))
        return self._dimension

    def embed(self, text: str) -> np.ndarray:
        try:
            vector = self._embed_with_retry(text)
        except Exception as e:
            raise EmbeddingError(f"Mistral embedding failed: {e}", details={'model': self.model}) from e
        if not vector:
            raise EmbeddingError("Mistral embedding returned an empty vector", details={'model': self.model})
        return np.asarray(vector, dtype=np.float32)


def build_embedding_provider(config=None):
    """Create the embedding backend selected by EMBEDDING_BACKEND"""
    config_manager = config if isinstance(config, ConfigManager) else ConfigManager(config)
    backend = str(config_manager.get('EMBEDDING_BACKEND', 'local')).lower()

    if backend == 'mistral':
        logger.info("Using Mistral embedding backend")
        return MistralEmbeddingProvider(
            api_key=config_manager.get('MISTRAL_API_KEY'),
            model=config_manager.get('MISTRAL_EMBEDDING_MODEL', DEFAULT_MISTRAL_EMBEDDING_MODEL),
            retry_config=config_manager.get_retry_config()
        )
    if backend == 'local':
        logger.info("Using local sentence-transformers embedding backend")
        return SentenceTransformerEmbeddingProvider(
            model_name=config_manager.get('EMBEDDING_MODEL', DEFAULT_LOCAL_MODEL),
            device=config_manager.get('DEVICE', 'cpu')
        )
    raise ValueError(f"Unknown EMBEDDING_BACKEND: {backend}")


__all__ = ['SentenceTransformerEmbeddingProvider', 'MistralEmbeddingProvider', 'build_embedding_provider']
