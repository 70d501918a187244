"""Client for an OpenAI-compatible chat-completions endpoint (OpenRouter by default)."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from article_enhancer.config import DEFAULT_LLM_URL, DEFAULT_MODEL
from article_enhancer.http import HttpClient, HttpError
from article_enhancer.types import Usage


logger = logging.getLogger(__name__)


APP_TITLE = "Article Enhancer"

# generation may run for minutes; only the connection itself is bounded
_NO_TOTAL_TIMEOUT = aiohttp.ClientTimeout(total=None, sock_connect=30)


class GenerationError(Exception):
    """The model call failed (auth, quota, transport) or returned no usable text."""


@dataclass(frozen=True)
class Completion:
    texts: list[str]
    usage: Usage
    model: str

    @property
    def text(self) -> str:
        return self.texts[0]


def _parse_usage(data: dict[str, Any]) -> Usage:
    usage = data.get("usage") or {}
    prompt = int(usage.get("prompt_tokens") or 0)
    completion = int(usage.get("completion_tokens") or 0)
    total = int(usage.get("total_tokens") or (prompt + completion))
    return Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


def parse_completion(data: Any, model: str) -> Completion:
    if not isinstance(data, dict):
        raise GenerationError("Malformed completion response")

    if data.get("error"):
        err = data["error"]
        message = err.get("message") if isinstance(err, dict) else str(err)
        raise GenerationError(f"Model error: {message}")

    texts: list[str] = []
    for choice in data.get("choices") or []:
        message = (choice or {}).get("message") or {}
        content = message.get("content")
        if isinstance(content, str) and content.strip():
            texts.append(content.strip())

    if not texts:
        raise GenerationError("Model returned no completion text")

    return Completion(texts=texts, usage=_parse_usage(data), model=str(data.get("model") or model))


class ChatClient:
    def __init__(
        self,
        http: HttpClient,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        api_url: str = DEFAULT_LLM_URL,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self.model = model
        self._api_url = api_url

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "X-Title": APP_TITLE,
        }

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: Optional[float] = None,
    ) -> Completion:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature

        start = time.time()
        try:
            data = await self._http.request_json(
                "POST",
                self._api_url,
                json=payload,
                headers=self._headers(),
                timeout=_NO_TOTAL_TIMEOUT,
            )
        except HttpError as e:
            raise GenerationError(f"Generation request rejected: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise GenerationError(f"Generation request failed: {str(e) or type(e).__name__}") from e

        completion = parse_completion(data, self.model)
        logger.info(
            "Generated %d chars in %.1fs with %s (%d in / %d out tokens)",
            len(completion.text),
            time.time() - start,
            completion.model,
            completion.usage.prompt_tokens,
            completion.usage.completion_tokens,
        )
        return completion

    async def test_connection(self) -> bool:
        logger.info("Testing model connection (%s)", self.model)
        try:
            completion = await self.complete('Say "Hello, I am working!"', max_tokens=50)
        except GenerationError as e:
            logger.error("Model connection failed: %s", e)
            return False
        logger.info("Model connection successful: %s", completion.text)
        return True
