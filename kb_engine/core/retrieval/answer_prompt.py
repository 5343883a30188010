"""
Answer synthesis prompt.

Instructs the model to answer only from the retrieved chunks and to
reply with a fixed not-found sentence when they do not contain the answer.

Dependencies: langchain_core.prompts
System role: Prompt template for accurate-mode queries
"""

from langchain_core.prompts import ChatPromptTemplate

NOT_FOUND_ANSWER = "I could not find that information in the knowledge base."

SYSTEM_PROMPT = f"""You answer questions using only the numbered context passages provided.

## Instructions
1. Use ONLY the provided context; do not use outside knowledge
2. If the context does not contain the answer, reply exactly: "{NOT_FOUND_ANSWER}"
3. Answer in the language of the question
4. Be concise and factual"""

ANSWER_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PROMPT),
    ("human", """Context:
{context}

Question: {question}"""),
])


def format_context(passages: list[str]) -> str:
    """Render passages as "[i] content" blocks, 1-based."""
    return "\n\n".join(f"[{i}] {text}" for i, text in enumerate(passages, start=1))
