# File: config.py
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Mistral API Configuration
    MISTRAL_API_KEY = os.getenv('MISTRAL_API_KEY')
    MISTRAL_MODEL = os.getenv('MISTRAL_MODEL', 'mistral-small-latest')
    MISTRAL_EMBEDDING_MODEL = os.getenv('MISTRAL_EMBEDDING_MODEL', 'mistral-embed')

    # LLM Generation Parameters
    MAX_TOKENS = int(os.getenv('MAX_TOKENS', 500))
    TEMPERATURE = float(os.getenv('TEMPERATURE', 0.1))  # Low temperature keeps answers close to the context
    TOP_P = float(os.getenv('TOP_P', 0.9))
    RESPONSE_TIMEOUT = int(os.getenv('RESPONSE_TIMEOUT', 120))
    MAX_REQUESTS_PER_MINUTE = int(os.getenv('MAX_REQUESTS_PER_MINUTE', 60))

    # Embedding Configuration
    EMBEDDING_BACKEND = os.getenv('EMBEDDING_BACKEND', 'local')  # local | mistral
    EMBEDDING_MODEL = os.getenv('EMBEDDING_MODEL', 'sentence-transformers/all-MiniLM-L6-v2')
    DEVICE = os.getenv('DEVICE', 'cpu')
    MAX_EMBEDDING_INPUT_CHARS = int(os.getenv('MAX_EMBEDDING_INPUT_CHARS', 8000))

    # Retrieval Configuration
    CHUNK_SIZE = int(os.getenv('CHUNK_SIZE', 1000))  # characters
    RETRIEVAL_TOP_K = int(os.getenv('RETRIEVAL_TOP_K', 3))

    # Concurrency
    EMBEDDING_MAX_WORKERS = int(os.getenv('EMBEDDING_MAX_WORKERS', 4))
    QUESTION_MAX_WORKERS = int(os.getenv('QUESTION_MAX_WORKERS', 1))
    PROCESSING_TIMEOUT = int(os.getenv('PROCESSING_TIMEOUT', 300))

    # Document download
    DOWNLOAD_TIMEOUT = int(os.getenv('DOWNLOAD_TIMEOUT', 60))
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', 50 * 1024 * 1024))  # 50MB
    ALLOWED_EXTENSIONS = os.getenv('ALLOWED_EXTENSIONS', 'pdf,docx,doc,txt').split(',')

    # Flask Configuration
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 5000))
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')
    API_BEARER_TOKEN = os.getenv('API_BEARER_TOKEN')

    # Logging Configuration
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/rag_service.log')

    # Retry Configuration
    MAX_RETRIES = int(os.getenv('MAX_RETRIES', 3))
    RETRY_BASE_DELAY = float(os.getenv('RETRY_BASE_DELAY', 1.0))
    RETRY_EXPONENTIAL_BASE = float(os.getenv('RETRY_EXPONENTIAL_BASE', 2.0))
    RETRY_MAX_DELAY = float(os.getenv('RETRY_MAX_DELAY', 60.0))

    @staticmethod
    def validate():
        required_vars = ['MISTRAL_API_KEY', 'API_BEARER_TOKEN']
        missing = [var for var in required_vars if not os.getenv(var)]
        if missing:
            raise ValueError(f"Missing required environment variables: {missing}")

        backend = os.getenv('EMBEDDING_BACKEND', 'local').lower()
        if backend not in ('local', 'mistral'):
            raise ValueError("EMBEDDING_BACKEND must be 'local' or 'mistral'")

        if int(os.getenv('CHUNK_SIZE', 1000)) <= 0:
            raise ValueError("CHUNK_SIZE must be positive")
        if int(os.getenv('RETRIEVAL_TOP_K', 3)) <= 0:
            raise ValueError("RETRIEVAL_TOP_K must be positive")
