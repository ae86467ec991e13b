"""
Answer Synthesis

This module turns a question and its retrieved context into an answer: it
assembles the grounded prompt, delegates generation, and scores the result
with the local confidence heuristic.
"""

import logging
from typing import Sequence

from .confidence_calculator import ConfidenceCalculator
from .exceptions import GenerationError
from .models import GenerationResult
from .protocols import GenerationProvider
from ..prompt_templates import AnswerPrompts

logger = logging.getLogger(__name__)


class AnswerSynthesizer:
    """Prompt assembly, generation and confidence scoring for one question"""

    def __init__(self, generator: GenerationProvider, confidence_calculator: ConfidenceCalculator = None,
                 prompts=AnswerPrompts):
        self.generator = generator
        self.confidence_calculator = confidence_calculator or ConfidenceCalculator()
        self.prompts = prompts

    def build_prompt(self, question: str, context_chunks: Sequence[str]) -> str:
        context = self.prompts.build_context(context_chunks)
        return self.prompts.build_answer_prompt(question, context)

    def synthesize(self, question: str, context_chunks: Sequence[str]) -> GenerationResult:
        """Generate an answer grounded in context_chunks.

        Raises:
            GenerationError: the generation backend failed or returned nothing usable
        """
        prompt = self.build_prompt(question, context_chunks)

        try:
            answer, tokens_used = self.generator.generate(self.prompts.SYSTEM_PROMPT, prompt)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Answer generation failed: {e}") from e

        answer = (answer or "").strip()
        if not answer:
            raise GenerationError("Generation backend returned an empty answer")

        context = self.prompts.build_context(context_chunks)
        confidence = self.confidence_calculator.calculate_confidence(question, context, answer)
        logger.debug(f"Synthesized answer ({tokens_used} tokens, confidence {confidence:.2f}) for: {question[:50]}")
        return GenerationResult(answer=answer, confidence=confidence, tokens_used=int(tokens_used or 0))


__all__ = ['AnswerSynthesizer']
