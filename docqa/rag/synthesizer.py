"""Answer synthesis from retrieved chunks.

Builds the grounding prompt, asks the generation endpoint for an answer and
renders the markdown reply as sanitized HTML for display.
"""
from typing import Dict, List, Optional

import markdown
import nh3
import structlog

from docqa.llm_client import GenerationClient
from docqa.models import ScoredChunk

logger = structlog.get_logger()

NOT_FOUND_ANSWER = "I don't see information about that in the document."

SYSTEM_PROMPT = f"""You are a helpful assistant that answers questions about documents.
Answer the user's question based ONLY on the provided context.
If the context does not contain the answer, say "{NOT_FOUND_ANSWER}"
Do not make up information. Format the answer in markdown, using bold text, lists and paragraphs where they help.
Be concise but thorough."""

CHUNK_DELIMITER = "\n---\n"


def build_context(results: List[ScoredChunk]) -> str:
    """Join retrieved chunks into one context block, tagging known pages."""
    parts = []
    for result in results:
        page = result.chunk.metadata.page_number
        page_tag = f"[Page {page}]" if page else ""
        parts.append(f"{page_tag}\n{result.chunk.text}\n")
    return CHUNK_DELIMITER.join(parts)


def build_messages(question: str, results: List[ScoredChunk]) -> List[Dict[str, str]]:
    """Build the system and user messages for a grounded answer."""
    context = build_context(results)
    user_content = (
        "Context information is below:\n"
        f"{CHUNK_DELIMITER}"
        f"{context}"
        f"{CHUNK_DELIMITER}"
        "Given the context information and not prior knowledge, "
        f"answer the question: {question}"
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]


def markdown_to_safe_html(text: str) -> str:
    """Render markdown to HTML with scripts, handlers and unsafe URLs removed."""
    html = markdown.markdown(text, extensions=["extra", "sane_lists"])
    return nh3.clean(html)


class AnswerSynthesizer:
    """Generates answers grounded in retrieved chunks."""

    def __init__(
        self,
        client: Optional[GenerationClient] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.client = client or GenerationClient()
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def synthesize(self, question: str, results: List[ScoredChunk]) -> str:
        """Answer a question from retrieved chunks.

        Returns:
            The answer as markdown text

        Raises:
            GenerationFailed: If the generation call fails
        """
        if not results:
            logger.info("synthesis_skipped_no_context", question_preview=question[:100])
            return NOT_FOUND_ANSWER

        messages = build_messages(question, results)

        logger.info(
            "synthesis_started",
            source_count=len(results),
            prompt_length=sum(len(m["content"]) for m in messages),
        )

        answer = await self.client.generate(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        logger.info("synthesis_completed", answer_length=len(answer))
        return answer
