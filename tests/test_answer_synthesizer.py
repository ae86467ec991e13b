import pytest

from conftest import ScriptedGenerator
from services.prompt_templates import AnswerPrompts
from services.rag.answer_synthesizer import AnswerSynthesizer
from services.rag.exceptions import GenerationError


class FixedGenerator:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response


def test_prompt_contains_context_and_question():
    synthesizer = AnswerSynthesizer(FixedGenerator(("ok", 1)))
    prompt = synthesizer.build_prompt("  What is the grace period?  ",
                                      ["grace period is 30 days", "  ", "waiting period is 36 months"])

    assert "Context:\ngrace period is 30 days\n\nwaiting period is 36 months\n\nQuestion:" in prompt
    assert "Question: What is the grace period?\n" in prompt
    assert "quantitative details" in prompt
    assert "state this clearly" in prompt


def test_synthesize_returns_answer_tokens_and_confidence():
    generator = FixedGenerator(("  The grace period is 30 days.  ", 17))
    result = AnswerSynthesizer(generator).synthesize("What is the grace period?", ["grace period is 30 days"])

    assert result.answer == "The grace period is 30 days."
    assert result.tokens_used == 17
    assert 0.5 <= result.confidence <= 1.0
    system_prompt, _ = generator.calls[0]
    assert system_prompt == AnswerPrompts.SYSTEM_PROMPT


def test_synthesize_sends_the_built_prompt():
    generator = FixedGenerator(("30 days", 3))
    synthesizer = AnswerSynthesizer(generator)
    synthesizer.synthesize("What is the grace period?", ["grace period is 30 days"])

    _, user_prompt = generator.calls[0]
    assert user_prompt == synthesizer.build_prompt("What is the grace period?", ["grace period is 30 days"])


def test_empty_context_still_generates():
    generator = ScriptedGenerator(answer="The document does not say.")
    result = AnswerSynthesizer(generator).synthesize("What is the room rent limit?", [])
    assert result.answer == "The document does not say."
    assert "Context:\n\n\nQuestion:" in generator.prompts[0]


def test_generation_errors_pass_through():
    generator = FixedGenerator(error=GenerationError("model unavailable"))
    with pytest.raises(GenerationError, match="model unavailable"):
        AnswerSynthesizer(generator).synthesize("q", ["ctx"])


def test_unexpected_errors_become_generation_errors():
    generator = FixedGenerator(error=ConnectionError("socket closed"))
    with pytest.raises(GenerationError) as exc_info:
        AnswerSynthesizer(generator).synthesize("q", ["ctx"])
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_blank_answer_is_rejected():
    with pytest.raises(GenerationError):
        AnswerSynthesizer(FixedGenerator(("   ", 5))).synthesize("q", ["ctx"])
