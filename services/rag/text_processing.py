"""
Text Processing Utilities

This module contains text processing functions for the RAG system including
sentence splitting, section label extraction and word tokenization.
"""

import re
from typing import List, Set

from .models import UNKNOWN_SECTION

# Terminal punctuation only ends a sentence when followed by whitespace or end of
# text, so numbering like "4.2" stays inside its sentence
SENTENCE_BOUNDARY = re.compile(r'[.!?]+(?=\s|$)')

SECTION_PATTERN = re.compile(r'section\s+\d+(?:\.\d+)*\s*[:\s]\s*([^:\n]+)', re.IGNORECASE)


class TextProcessor:
    """Centralized text processing utilities"""

    @staticmethod
    def split_sentences(text: str) -> List[str]:
        """Split text into stripped, non-empty sentence-like units"""
        if not text:
            return []
        sentences = SENTENCE_BOUNDARY.split(text)
        return [s.strip() for s in sentences if s.strip()]

    @staticmethod
    def extract_section(content: str) -> str:
        """Extract a 'Section 4.2: Label' style label, or the unknown sentinel"""
        match = SECTION_PATTERN.search(content)
        if not match:
            return UNKNOWN_SECTION
        label = match.group(1).strip()
        return label or UNKNOWN_SECTION

    @staticmethod
    def tokenize(text: str) -> List[str]:
        """Lowercase whitespace tokenization"""
        return text.lower().split()

    @staticmethod
    def word_set(text: str) -> Set[str]:
        return set(TextProcessor.tokenize(text))


__all__ = ['TextProcessor', 'SENTENCE_BOUNDARY', 'SECTION_PATTERN']
