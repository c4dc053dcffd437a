# kg_canvas/llm/client.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from kg_canvas.config.settings import settings

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """
    Anything that goes wrong talking to the language-model endpoint:
    connection errors, timeouts, non-2xx statuses, unreadable bodies.
    """
    pass


@dataclass(frozen=True)
class ChatRequest:
    model: str
    system_prompt: str
    user_prompt: str
    temperature: float
    json_mode: bool = False

    def to_payload(self) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": self.user_prompt})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "options": {"temperature": self.temperature},
            "stream": False,
        }
        if self.json_mode:
            payload["format"] = "json"
        return payload


class OllamaClient:
    """
    Minimal client for an Ollama-compatible `/api/chat` endpoint.

    `chat()` is strict: every failure is raised as LLMClientError so the
    callers (classifier, expander, chat) can apply their own fallbacks.
    The two health helpers are lenient and never raise.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or settings.OLLAMA_API_URL).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def complete(self, request: ChatRequest) -> str:
        url = f"{self.base_url}/api/chat"

        try:
            response = self._session.post(
                url,
                json=request.to_payload(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise LLMClientError(f"Error contacting language model at {url}: {e}") from e

        if not response.ok:
            raise LLMClientError(
                f"Language model error {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise LLMClientError(f"Language model returned a non-JSON body: {e}") from e

        message = data.get("message") or {}
        return message.get("content") or data.get("response") or ""

    def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> str:
        return self.complete(
            ChatRequest(
                model=self.model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=temperature,
                json_mode=json_mode,
            )
        )

    def check_connection(self) -> bool:
        try:
            response = self._session.get(f"{self.base_url}/api/tags", timeout=self.timeout)
        except requests.exceptions.RequestException:
            return False
        return response.ok

    def list_models(self) -> List[str]:
        try:
            response = self._session.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.warning("Error listing language models: %s", exc)
            return []
        return [m.get("name") for m in data.get("models") or [] if m.get("name")]
