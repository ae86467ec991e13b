# services/document_service.py
"""
Document Processing Service

This module downloads documents and extracts their plain text so the RAG
pipeline only ever sees text.

SUPPORTED FORMATS:
==================
- .pdf: PyMuPDF (primary) → pdfplumber (fallback)
- .docx / .doc: python-docx
- .txt: direct decoding with an encoding fallback list

Any failure, including a document that yields no text, raises ExtractionError.
There is no substitute content: a document that cannot be read fails the job.

Downloads are streamed and abandoned once they pass max_content_length. Local
paths are only read when the service is built with allow_local_files=True.
"""

import io
import logging
import os
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

import docx
import fitz
import pdfplumber
import httpx

from services.rag.exceptions import ExtractionError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('pdf', 'docx', 'txt')
URL_SCHEMES = ('http', 'https')
TEXT_ENCODINGS = ['utf-8', 'latin1', 'cp1252', 'iso-8859-1']


class DocumentService:
    """Download and text extraction for PDF, DOCX and TXT documents"""

    DEFAULT_FORMAT = 'pdf'

    def __init__(self, download_timeout: int = 60, max_content_length: int = 50 * 1024 * 1024,
                 http_client: Optional[httpx.Client] = None,
                 allowed_formats: Optional[Iterable[str]] = None,
                 allow_local_files: bool = False):
        self.download_timeout = download_timeout
        self.max_content_length = max_content_length
        self._http_client = http_client
        # Local paths are only read for trusted callers, never for API input
        self.allow_local_files = allow_local_files

        if allowed_formats is None:
            self.allowed_formats = SUPPORTED_FORMATS
        else:
            normalized = {self.normalize_format(fmt.strip()) for fmt in allowed_formats if fmt and fmt.strip()}
            self.allowed_formats = tuple(fmt for fmt in SUPPORTED_FORMATS if fmt in normalized)

    @property
    def http_client(self) -> httpx.Client:
        """Lazy initialization of HTTP client"""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.Client(
                timeout=httpx.Timeout(self.download_timeout),
                follow_redirects=True
            )
        return self._http_client

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    # ==========================================
    # FORMAT DETECTION
    # ==========================================

    @staticmethod
    def normalize_format(declared_format: Optional[str]) -> Optional[str]:
        if not declared_format:
            return None
        fmt = declared_format.lower().lstrip('.')
        if fmt == 'doc':
            return 'docx'
        return fmt

    def detect_format(self, url: str, content_type: Optional[str] = None) -> str:
        """Infer document format from the URL path, then the Content-Type header"""
        path = urlparse(url).path.lower()
        if '.pdf' in path:
            return 'pdf'
        if '.docx' in path or '.doc' in path:
            return 'docx'
        if '.txt' in path:
            return 'txt'

        content_type = (content_type or '').lower()
        if 'pdf' in content_type:
            return 'pdf'
        if 'document' in content_type or 'msword' in content_type:
            return 'docx'
        if 'text' in content_type:
            return 'txt'
        return self.DEFAULT_FORMAT

    # ==========================================
    # DOWNLOAD
    # ==========================================

    def _too_large(self, url: str, size: int) -> ExtractionError:
        return ExtractionError(
            f"Document exceeds maximum size of {self.max_content_length} bytes",
            details={'url': url, 'size': size}
        )

    def download(self, url: str) -> Tuple[bytes, str]:
        """Fetch a document, returns (raw_bytes, format).

        The body is streamed and abandoned as soon as it passes max_content_length.
        """
        try:
            with self.http_client.stream('GET', url) as response:
                response.raise_for_status()

                declared_length = response.headers.get('content-length', '')
                if declared_length.isdigit() and int(declared_length) > self.max_content_length:
                    raise self._too_large(url, int(declared_length))

                content = bytearray()
                for block in response.iter_bytes():
                    content.extend(block)
                    if len(content) > self.max_content_length:
                        raise self._too_large(url, len(content))
                content_type = response.headers.get('content-type')
        except httpx.HTTPError as e:
            raise ExtractionError(f"Document download failed: {e}", details={'url': url}) from e

        doc_format = self.detect_format(url, content_type)
        logger.info(f"Downloaded {len(content):,}B document as {doc_format}")
        return bytes(content), doc_format

    def read_file(self, filepath: str) -> Tuple[bytes, str]:
        """Read a local document, returns (raw_bytes, format)"""
        try:
            with open(filepath, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise ExtractionError(f"Could not read document: {e}", details={'path': filepath}) from e
        doc_format = self.normalize_format(os.path.splitext(filepath)[1]) or self.DEFAULT_FORMAT
        return content, doc_format

    # ==========================================
    # EXTRACTION
    # ==========================================

    def extract(self, raw_bytes: bytes, declared_format: str) -> str:
        """Extract plain text from document bytes"""
        doc_format = self.normalize_format(declared_format)
        if doc_format not in self.allowed_formats:
            raise ExtractionError(f"Unsupported file type: {declared_format}",
                                  details={'supported': list(self.allowed_formats)})
        if not raw_bytes:
            raise ExtractionError("Document is empty")

        if doc_format == 'pdf':
            text = self._extract_from_pdf(raw_bytes)
        elif doc_format == 'docx':
            text = self._extract_from_docx(raw_bytes)
        else:
            text = self._extract_from_txt(raw_bytes)

        if not text or not text.strip():
            raise ExtractionError(f"No text found in {doc_format.upper()} document")
        logger.info(f"Extracted {len(text):,} characters from {doc_format} document")
        return text

    def extract_from_source(self, source: str) -> str:
        """Extract text from an http(s) URL, or a local path when local files are allowed"""
        if urlparse(source).scheme in URL_SCHEMES:
            raw_bytes, doc_format = self.download(source)
        elif self.allow_local_files:
            raw_bytes, doc_format = self.read_file(source)
        else:
            raise ExtractionError("Document source must be an http(s) URL", details={'source': source})
        return self.extract(raw_bytes, doc_format)

    def _extract_from_pdf(self, raw_bytes: bytes) -> str:
        """Two-tier PDF extraction: PyMuPDF first, pdfplumber for layouts it misses"""
        pages = []
        try:
            pdf_doc = fitz.open(stream=raw_bytes, filetype='pdf')
            try:
                for page in pdf_doc:
                    text = page.get_text()
                    if text and text.strip():
                        pages.append(text)
            finally:
                pdf_doc.close()
            if pages:
                return "\n".join(pages)
            logger.warning("PyMuPDF found no text, trying pdfplumber")
        except Exception as e:
            logger.warning(f"PyMuPDF extraction failed: {e}")

        try:
            with pdfplumber.open(io.BytesIO(raw_bytes)) as pdf:
                for page in pdf.pages:
                    text = page.extract_text()
                    if text and text.strip():
                        pages.append(text)
        except Exception as e:
            raise ExtractionError(f"Failed to extract text from PDF: {e}") from e

        if not pages:
            raise ExtractionError("Failed to extract text from PDF using all available methods")
        return "\n".join(pages)

    def _extract_from_docx(self, raw_bytes: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(raw_bytes))
        except Exception as e:
            raise ExtractionError(f"Failed to extract text from DOCX: {e}") from e
        return "\n\n".join(para.text for para in document.paragraphs)

    def _extract_from_txt(self, raw_bytes: bytes) -> str:
        for encoding in TEXT_ENCODINGS:
            try:
                return raw_bytes.decode(encoding)
            except UnicodeDecodeError:
                logger.warning(f"Failed to decode with {encoding}, trying next encoding")
        raise ExtractionError("Failed to decode text file with any supported encoding")


__all__ = ['DocumentService', 'SUPPORTED_FORMATS']
