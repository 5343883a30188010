"""Answer synthesis for accurate-mode queries."""

from kb_engine.core.retrieval.answer_prompt import ANSWER_PROMPT, NOT_FOUND_ANSWER, format_context
from kb_engine.core.retrieval.synthesizer import AnswerSynthesizer, LLMAnswerSynthesizer

__all__ = [
    "ANSWER_PROMPT",
    "NOT_FOUND_ANSWER",
    "format_context",
    "AnswerSynthesizer",
    "LLMAnswerSynthesizer",
]
