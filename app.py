from flask import Flask, request, jsonify
from flask_cors import CORS
import hmac
import os
import logging
from datetime import datetime
from functools import wraps
from typing import Any, List, Optional
from urllib.parse import urlparse

# Ensure environment is loaded first
from dotenv import load_dotenv
load_dotenv()

from config import Config
from services.document_service import URL_SCHEMES, DocumentService
from services.status_store import InMemoryStatusStore
from services.rag import (
    DocumentQAService,
    ExtractionError,
    RAGServiceError,
    ProcessingState,
    ProcessingStatus,
    build_embedding_provider,
    build_generation_provider,
)
from utils.response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)

API_PREFIX = '/api/v1'


def setup_logging(level: str = None, log_file: str = None):
    """Configure logging with structured format"""
    log_format = '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s'
    handlers = [logging.StreamHandler()]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='a'))

    logging.basicConfig(
        level=getattr(logging, (level or 'INFO').upper(), logging.INFO),
        format=log_format,
        handlers=handlers
    )

    # Reduce noise from third-party libraries
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('sentence_transformers').setLevel(logging.WARNING)

    return logging.getLogger(__name__)


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in URL_SCHEMES and bool(parsed.netloc)


def validate_processing_request(payload: Any) -> List[str]:
    """Validate a {documents, questions} request body"""
    if not isinstance(payload, dict):
        return ['Request body must be a JSON object']

    errors = []
    documents = payload.get('documents')
    if not isinstance(documents, str) or not documents.strip():
        errors.append('Document URL is required')
    elif not _is_http_url(documents.strip()):
        errors.append('Document must be an http(s) URL')

    questions = payload.get('questions')
    if not isinstance(questions, list):
        errors.append('questions must be an array')
    elif any(not isinstance(q, str) or not q.strip() for q in questions):
        errors.append('Question cannot be empty')
    return errors


def build_default_service(config, status_store: InMemoryStatusStore) -> DocumentQAService:
    """Wire the production pipeline from configuration"""
    config.validate()
    document_service = DocumentService(
        download_timeout=config.DOWNLOAD_TIMEOUT,
        max_content_length=config.MAX_CONTENT_LENGTH,
        allowed_formats=config.ALLOWED_EXTENSIONS
    )
    return DocumentQAService(
        embedding_provider=build_embedding_provider(config),
        generator=build_generation_provider(config),
        config=config,
        status_reporter=status_store,
        extractor=document_service
    )


def create_app(config=None, service: Optional[DocumentQAService] = None,
               status_store: Optional[InMemoryStatusStore] = None):
    app = Flask(__name__)
    config = config or Config
    app.config.from_object(config)

    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    status_store = status_store or InMemoryStatusStore()
    if service is None:
        service = build_default_service(config, status_store)
    elif service.status_reporter is None:
        service.status_reporter = status_store

    bearer_token = getattr(config, 'API_BEARER_TOKEN', None)

    def require_bearer_token(f):
        """Bearer token verification decorator"""
        @wraps(f)
        def decorated_function(*args, **kwargs):
            auth_header = request.headers.get('Authorization', '')
            scheme, _, token = auth_header.partition(' ')
            if scheme.lower() != 'bearer' or not token:
                return ResponseFormatter.error('Unauthorized', status_code=401)
            if not bearer_token or not hmac.compare_digest(token.strip(), bearer_token):
                return ResponseFormatter.error('Unauthorized', status_code=401)
            return f(*args, **kwargs)
        return decorated_function

    @app.route(f'{API_PREFIX}/hackrx/run', methods=['POST'])
    @require_bearer_token
    def run_processing():
        """Answer a batch of questions about one document"""
        payload = request.get_json(silent=True)
        errors = validate_processing_request(payload)
        if errors:
            return ResponseFormatter.validation_error(errors)

        document = payload['documents'].strip()
        questions = payload['questions']
        job_id = status_store.store_request(document, questions)
        logger.info(f"Job {job_id}: processing {len(questions)} questions")

        try:
            result = service.process(document, questions, job_id=job_id)
        except ExtractionError as e:
            return ResponseFormatter.error('Document processing failed', status_code=400,
                                           details={'error': e.message, 'job_id': job_id})
        except RAGServiceError as e:
            return ResponseFormatter.error('Processing failed', status_code=500,
                                           details={'error': e.message, 'job_id': job_id})
        except Exception as e:
            logger.exception(f"Job {job_id}: unexpected processing failure")
            status_store.update_status(job_id, ProcessingStatus(ProcessingState.ERROR, f"Processing failed: {e}", 0))
            return ResponseFormatter.error('Processing failed', status_code=500,
                                           details={'error': str(e), 'job_id': job_id})

        status_store.store_result(job_id, result)
        response = result.to_dict()
        response['job_id'] = job_id
        return jsonify(response), 200

    @app.route(f'{API_PREFIX}/hackrx/status/<job_id>', methods=['GET'])
    @require_bearer_token
    def get_status(job_id):
        status = status_store.get_status(job_id)
        if status is None:
            return ResponseFormatter.error('Processing ID not found', status_code=404)
        return jsonify(status.to_dict()), 200

    @app.route(f'{API_PREFIX}/hackrx/result/<job_id>', methods=['GET'])
    @require_bearer_token
    def get_result(job_id):
        result = status_store.get_result(job_id)
        if result is None:
            return ResponseFormatter.error('Result not found', status_code=404)
        return jsonify(result.to_dict(include_details=True)), 200

    @app.route(f'{API_PREFIX}/health', methods=['GET'])
    def health_check():
        return ResponseFormatter.success({
            'status': 'healthy',
            'services': {
                'vector_index': 'in_memory',
                'embedding_backend': str(getattr(config, 'EMBEDDING_BACKEND', 'local')),
                'generation_model': str(getattr(config, 'MISTRAL_MODEL', '')),
                'document_parser': 'ready' if service.extractor is not None else 'unavailable'
            },
            'timestamp': datetime.now().isoformat()
        }, message="Service is running")

    # Error handlers
    @app.errorhandler(413)
    def too_large(e):
        return ResponseFormatter.error('File too large. Maximum size is 50MB.', status_code=413)

    @app.errorhandler(404)
    def not_found(e):
        return ResponseFormatter.error('Endpoint not found', status_code=404)

    @app.errorhandler(500)
    def internal_error(e):
        logger.error(f"Internal error: {str(e)}")
        return ResponseFormatter.error('Internal server error', status_code=500)

    return app
