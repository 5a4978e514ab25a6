"""Dialogue engine: recognized or typed text -> reply candidates."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import List, TYPE_CHECKING

import openai

from ..errors import DialogueError

if TYPE_CHECKING:
    from openai.types.chat import ChatCompletionMessageParam
    from .llm import LLM

logger = logging.getLogger("Dialogue")

DEFAULT_SYSTEM_PROMPT = (
    "你是 Homo，一个通过语音和用户交流的助手。"
    "回答要简短口语化，适合直接朗读，不要使用 Markdown 或列表。"
)


class DialogueEngine(ABC):
    @abstractmethod
    async def query(self, text: str) -> List[str]:
        """Reply candidates for text, best first. Raises DialogueError."""
        ...


class LLMDialogue(DialogueEngine):
    """
    Dialogue backed by a chat completion model.

    Keeps a bounded conversation history so follow-up questions have context.
    Not thread-safe: use from a single worker thread.
    """

    def __init__(
        self,
        llm: "LLM",
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_conversation_history: int = 10,
    ):
        self._llm = llm
        self._max_conversation_history = max_conversation_history
        self._conversation_history: List["ChatCompletionMessageParam"] = [
            {"role": "system", "content": system_prompt}
        ]

    @property
    def history(self) -> List["ChatCompletionMessageParam"]:
        return list(self._conversation_history)

    async def query(self, text: str) -> List[str]:
        started_at = time.time()
        messages = self._conversation_history + [{"role": "user", "content": text}]
        try:
            response = await self._llm.chat_completion_async(messages)
        except openai.OpenAIError as e:
            raise DialogueError(str(e)) from e

        content = (response.get("content") or "").strip()
        if not content:
            raise DialogueError("empty reply from dialogue model")

        self._add_to_conversation_history("user", text)
        self._add_to_conversation_history("assistant", content)
        logger.info("Dialogue reply ready, duration_s=%.3f", time.time() - started_at)
        return [content]

    def _add_to_conversation_history(self, role: str, content: str) -> None:
        """Add message to conversation history and enforce limit."""
        self._conversation_history.append({"role": role, "content": content})

        # Keep system (index 0) + last max_conversation_history turns (user + assistant each)
        max_messages = self._max_conversation_history * 2 + 1
        if len(self._conversation_history) > max_messages:
            self._conversation_history = (
                [self._conversation_history[0]] +
                self._conversation_history[-(max_messages - 1):]
            )
