"""
Confidence Calculation for RAG Responses

This module scores a synthesized answer by lexical overlap between the question,
the retrieved context and the answer. It is a crude, deterministic heuristic:
it does not measure semantic agreement, and scores never drop below the floor.
"""

from typing import Any, Dict

from .text_processing import TextProcessor


class ConfidenceCalculator:
    """Lexical-overlap confidence with a fixed floor"""

    CONTEXT_MATCH_WEIGHT = 1.0
    ANSWER_MATCH_WEIGHT = 0.5
    CONFIDENCE_FLOOR = 0.5
    CONFIDENCE_CEILING = 1.0

    def __init__(self, floor: float = CONFIDENCE_FLOOR):
        if not 0.0 <= floor <= self.CONFIDENCE_CEILING:
            raise ValueError("floor must be within [0, 1]")
        self.floor = floor
        self.text_processor = TextProcessor()

    @property
    def max_score_per_word(self) -> float:
        return self.CONTEXT_MATCH_WEIGHT + self.ANSWER_MATCH_WEIGHT

    def calculate_confidence(self, question: str, context: str, answer: str) -> float:
        """Calculate confidence in [floor, 1.0]"""
        return self.get_detailed_confidence_breakdown(question, context, answer)['final_confidence']

    def get_detailed_confidence_breakdown(self, question: str, context: str, answer: str) -> Dict[str, Any]:
        """Get detailed breakdown of confidence calculation for debugging/analysis"""
        question_words = self.text_processor.word_set(question)
        context_words = self.text_processor.word_set(context)
        answer_words = self.text_processor.word_set(answer)

        context_matches = sorted(question_words & context_words)
        answer_matches = sorted(question_words & answer_words)
        relevance = (len(context_matches) * self.CONTEXT_MATCH_WEIGHT +
                     len(answer_matches) * self.ANSWER_MATCH_WEIGHT)

        max_possible = len(question_words) * self.max_score_per_word
        raw_confidence = min(relevance / max_possible, self.CONFIDENCE_CEILING) if max_possible else 0.0
        final_confidence = max(raw_confidence, self.floor)

        return {
            'question_word_count': len(question_words),
            'context_matches': context_matches,
            'answer_matches': answer_matches,
            'relevance_score': relevance,
            'max_possible_score': max_possible,
            'raw_confidence': raw_confidence,
            'final_confidence': final_confidence
        }


__all__ = ['ConfidenceCalculator']
