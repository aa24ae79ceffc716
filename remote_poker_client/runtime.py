"""
Agent runtimes: the identity and text-generation capability the client is
driven by.

Any object exposing ``agent_name`` and ``generate(context, system_prompt)``
can drive the client. ``OpenAIAgentRuntime`` talks to an OpenAI-compatible
API; ``ScriptedAgentRuntime`` replays canned replies for dry runs and tests.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from openai import OpenAI, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_AGENT_NAME = "PokerBot"
DRY_RUN_REPLY = "CHECK"


class AgentRuntime(Protocol):
    @property
    def agent_name(self) -> str:
        ...

    def generate(self, context: str, system_prompt: str) -> str:
        ...


@dataclass(frozen=True, slots=True)
class LLMConfig:
    api_key: Optional[str]
    base_url: Optional[str]
    model: str
    temperature: Optional[float]
    use_responses: bool
    dry_run: bool
    timeout_s: float
    max_retries: int
    retry_delay_s: float


def _env_nonempty(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _model_supports_temperature(model: str) -> bool:
    # GPT-5 family rejects the temperature parameter
    token = (model or "").strip().lower()
    return not token.startswith("gpt-5")


def _infer_use_responses(model: str, base_url: Optional[str]) -> bool:
    """
    OpenAI proper gets ``/responses``; OpenAI-compatible hosts such as
    DeepSeek and Moonshot only implement ``/chat/completions``.
    """
    token = (model or "").strip().lower()
    base = (base_url or "").strip().lower()
    if token.startswith("deepseek") or "deepseek" in base:
        return False
    if token.startswith("kimi") or "moonshot" in base:
        return False
    if base and "api.openai.com" not in base:
        return False
    return True


def load_llm_config() -> LLMConfig:
    api_key = _env_nonempty("POKER_LLM_API_KEY") or _env_nonempty("OPENAI_API_KEY")
    base_url = _env_nonempty("POKER_LLM_API_BASE") or _env_nonempty("OPENAI_API_BASE")
    model = _env_nonempty("POKER_LLM_MODEL") or _env_nonempty("OPENAI_MODEL") or "gpt-4o-mini"

    temperature: Optional[float] = None
    if "POKER_LLM_TEMPERATURE" in os.environ:
        try:
            temperature = float(os.getenv("POKER_LLM_TEMPERATURE", "0.7"))
        except ValueError:
            temperature = None
    elif _model_supports_temperature(model):
        temperature = 0.7

    dry_run = os.getenv("POKER_LLM_DRY_RUN", "").strip().lower() in ("1", "true", "yes", "y")
    if not api_key:
        dry_run = True
    return LLMConfig(
        api_key=api_key,
        base_url=base_url,
        model=model,
        temperature=temperature,
        use_responses=_infer_use_responses(model, base_url),
        dry_run=dry_run,
        timeout_s=float(os.getenv("POKER_LLM_TIMEOUT_S", "60")),
        max_retries=int(os.getenv("POKER_LLM_MAX_RETRIES", "2")),
        retry_delay_s=float(os.getenv("POKER_LLM_RETRY_DELAY_S", "2")),
    )


class OpenAIAgentRuntime:
    """
    Runtime backed by an OpenAI-compatible chat API.

    Rate limits are retried with exponential backoff; any other API error
    propagates so the decision pipeline can fall back to its safe action.
    """

    def __init__(self, name: Optional[str] = None, config: Optional[LLMConfig] = None) -> None:
        self._name = name or DEFAULT_AGENT_NAME
        self.config = config or load_llm_config()
        if self.config.dry_run:
            self._client = None
        else:
            client_kwargs: Dict[str, Any] = {
                "api_key": self.config.api_key,
                "timeout": self.config.timeout_s,
                "max_retries": 0,
            }
            if self.config.base_url:
                client_kwargs["base_url"] = self.config.base_url
            self._client = OpenAI(**client_kwargs)

    @property
    def agent_name(self) -> str:
        return self._name

    def generate(self, context: str, system_prompt: str) -> str:
        if self._client is None:
            logger.info("[%s] dry run, answering %s", self._name, DRY_RUN_REPLY)
            return DRY_RUN_REPLY

        logger.info("[%s] requesting decision | model=%s | base=%s", self._name, self.config.model, self.config.base_url)
        for attempt in range(max(self.config.max_retries, 0) + 1):
            try:
                return self._complete(context, system_prompt)
            except RateLimitError:
                if attempt >= self.config.max_retries:
                    raise
                wait_time = self.config.retry_delay_s * (2 ** attempt)
                logger.warning(
                    "[%s] rate limited, retrying in %.1fs (attempt %d/%d)",
                    self._name,
                    wait_time,
                    attempt + 1,
                    self.config.max_retries,
                )
                time.sleep(wait_time)
        return ""

    def _complete(self, context: str, system_prompt: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": context},
        ]
        payload: Dict[str, Any] = {"model": self.config.model}
        if self.config.temperature is not None and _model_supports_temperature(self.config.model):
            payload["temperature"] = self.config.temperature
        if self.config.use_responses:
            payload["input"] = messages
            response = self._client.responses.create(**payload)
            return getattr(response, "output_text", "") or ""
        payload["messages"] = messages
        response = self._client.chat.completions.create(**payload)
        choices = getattr(response, "choices", []) or []
        if not choices:
            return ""
        return choices[0].message.content or ""


class ScriptedAgentRuntime:
    """Replays a fixed list of replies, repeating the last one when exhausted."""

    def __init__(self, name: str, replies: Sequence[str] = (DRY_RUN_REPLY,)) -> None:
        if not replies:
            raise ValueError("ScriptedAgentRuntime needs at least one reply")
        self._name = name
        self._replies: List[str] = list(replies)
        self.prompts: List[Dict[str, str]] = []

    @property
    def agent_name(self) -> str:
        return self._name

    def generate(self, context: str, system_prompt: str) -> str:
        self.prompts.append({"context": context, "system_prompt": system_prompt})
        index = min(len(self.prompts) - 1, len(self._replies) - 1)
        return self._replies[index]
