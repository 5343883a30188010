"""
Answer synthesizer for accurate-mode queries.

Feeds the query and retrieved passages through the answer prompt into a
chat model. An empty passage list short-circuits to the not-found answer
without calling the model.

Dependencies: langchain_core, langchain_google_genai
System role: Grounded answer generation
"""

import logging
from abc import ABC, abstractmethod

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser

from kb_engine.core.exceptions import SynthesisError
from kb_engine.core.retrieval.answer_prompt import ANSWER_PROMPT, NOT_FOUND_ANSWER, format_context

logger = logging.getLogger(__name__)


class AnswerSynthesizer(ABC):
    """Produces a prose answer grounded in retrieved passages."""

    @abstractmethod
    async def synthesize(self, question: str, passages: list[str]) -> str:
        """
        Answer a question from passages.

        Raises:
            SynthesisError: When the model call fails
        """


class LLMAnswerSynthesizer(AnswerSynthesizer):
    """Synthesizer backed by a LangChain chat model."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._chain = ANSWER_PROMPT | llm | StrOutputParser()

    async def synthesize(self, question: str, passages: list[str]) -> str:
        if not passages:
            return NOT_FOUND_ANSWER
        try:
            answer = await self._chain.ainvoke(
                {"context": format_context(passages), "question": question}
            )
        except Exception as e:
            logger.error(
                f"{__name__}:synthesize - Model call failed",
                extra={"error": str(e), "passages": len(passages)},
            )
            raise SynthesisError(f"Answer synthesis failed: {e}") from e
        return answer.strip() or NOT_FOUND_ANSWER


def get_answer_synthesizer() -> LLMAnswerSynthesizer:
    """Build the Gemini-backed synthesizer from settings."""
    from langchain_google_genai import ChatGoogleGenerativeAI

    from kb_engine.configs import get_settings

    retrieval = get_settings().retrieval
    llm = ChatGoogleGenerativeAI(
        model=retrieval.synthesis_model,
        temperature=retrieval.synthesis_temperature,
        max_output_tokens=retrieval.synthesis_max_output_tokens,
    )
    return LLMAnswerSynthesizer(llm)
