"""
Prompt Templates

Prompts used for answer synthesis. The answer prompt keeps the model grounded
in the retrieved context and asks for the quantitative details policy-style
documents hinge on.
"""

from typing import Sequence


class AnswerPrompts:
    """Prompts for context-grounded question answering"""

    SYSTEM_PROMPT = (
        "You are an expert document analyst specializing in insurance policies, legal documents "
        "and compliance materials. Provide accurate, detailed answers based on the provided context. "
        "If information is not available in the context, clearly state that."
    )

    ANSWER_PROMPT = """Based on the following document context, please answer the question accurately and comprehensively.

Context:
{context}

Question: {question}

Instructions:
- Provide a clear, direct answer based only on the context
- Include relevant quantitative details such as time periods, durations, percentages, limits and conditions
- If the context doesn't contain enough information, state this clearly instead of guessing
- Maintain a professional, informative tone

Answer:"""

    CONTEXT_SEPARATOR = "\n\n"

    @classmethod
    def build_context(cls, context_chunks: Sequence[str]) -> str:
        return cls.CONTEXT_SEPARATOR.join(chunk.strip() for chunk in context_chunks if chunk and chunk.strip())

    @classmethod
    def build_answer_prompt(cls, question: str, context: str) -> str:
        return cls.ANSWER_PROMPT.format(context=context, question=question.strip())


__all__ = ['AnswerPrompts']
