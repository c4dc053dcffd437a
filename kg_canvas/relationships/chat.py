# kg_canvas/relationships/chat.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from kg_canvas.config.settings import settings
from kg_canvas.llm.client import OllamaClient
from kg_canvas.llm.prompts import CHAT_SYSTEM_PROMPT, chat_user_prompt
from kg_canvas.models.paper import Paper
from kg_canvas.models.relationship import Relationship

logger = logging.getLogger(__name__)

ERROR_ANSWER = "I encountered an error processing your question. Please try again."
EMPTY_ANSWER = "Unable to generate answer."


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


def describe_relationship(relationship: Optional[Relationship]) -> str:
    if relationship is None:
        return "No relationship metadata available."
    return (
        f"Relationship Type: {relationship.relation_type.value}\n"
        f"Summary: {relationship.summary}\n"
        f"Confidence: {relationship.confidence_score}"
    )


class RelationshipChat:
    """
    Free-form Q&A about two connected papers.
    """

    def __init__(
        self,
        client: Any = None,
        history_window: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.client = client if client is not None else OllamaClient()
        self.history_window = (
            settings.CHAT_HISTORY_WINDOW if history_window is None else history_window
        )
        self.temperature = settings.CHAT_TEMPERATURE if temperature is None else temperature

    def ask(
        self,
        question: str,
        source: Optional[Paper],
        target: Optional[Paper],
        relationship: Optional[Relationship] = None,
        history: Sequence[ChatMessage] = (),
    ) -> str:
        """
        Answer `question` about how `source` and `target` relate.

        Raises ValueError when the question or either paper is missing.
        Model failures are answered with ERROR_ANSWER instead of raising.
        """
        if not (question or "").strip() or source is None or target is None:
            raise ValueError("Question and both papers are required")

        recent = list(history)[-self.history_window:] if self.history_window > 0 else []
        history_context = "\n".join(f"{m.role}: {m.content}" for m in recent)

        user_prompt = chat_user_prompt(
            question.strip(),
            (source.title, source.summary, list(source.authors)),
            (target.title, target.summary, list(target.authors)),
            describe_relationship(relationship),
            history_context or None,
        )

        try:
            answer = self.client.chat(
                CHAT_SYSTEM_PROMPT,
                user_prompt,
                temperature=self.temperature,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Relationship chat failed: %s", exc)
            return ERROR_ANSWER

        return (answer or "").strip() or EMPTY_ANSWER
