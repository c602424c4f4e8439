"""OpenAI-compatible chat client used for generated health tips."""

import json
import re
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import LLMError


@dataclass
class ChatMessage:
    role: str
    content: str


class ChatClient:
    """Thin wrapper around a /chat/completions endpoint, configured by the llm config section."""

    def __init__(self, llm_cfg: dict, opener=None) -> None:
        self.base_url = llm_cfg.get("base_url", "").rstrip("/")
        self.model = llm_cfg.get("model", "")
        self.api_key = llm_cfg.get("api_key", "")
        self.timeout = llm_cfg.get("timeout", 60)
        self._http_opener = opener or urllib.request.build_opener()

    def chat(
        self,
        messages: Iterable[ChatMessage],
        temperature: float = 0.4,
        max_tokens: int = 800,
        json_response: bool = True,
    ) -> str:
        if not self.api_key:
            raise LLMError("OPENAI_API_KEY must be set to request health tips")
        payload = {
            "model": self.model,
            "messages": [message.__dict__ for message in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_response:
            payload["response_format"] = {"type": "json_object"}
        request = urllib.request.Request(
            f"{self.base_url}/chat/completions",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with self._http_opener.open(request, timeout=self.timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            message = exc.read().decode("utf-8") if exc.fp else exc.reason
            raise LLMError(f"LLM HTTP error {exc.code}: {message}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise LLMError(f"LLM endpoint unreachable: {exc}") from exc
        try:
            return json.loads(raw)["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise LLMError(f"Unexpected LLM response: {raw[:200]}") from exc


def safe_json_loads(raw: str) -> Optional[dict]:
    """
    Parse loosely formatted JSON from model output.

    - strips markdown code fences
    - falls back to the first {...} block if there is text around it
    - None if nothing parses
    """
    text = (raw or "").strip()
    if text.startswith("```"):
        text = re.sub(r"^```[a-zA-Z0-9_\-]*\n", "", text)
        text = re.sub(r"\n```\s*$", "", text)
    try:
        return json.loads(text)
    except ValueError:
        pass
    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        try:
            return json.loads(match.group(0))
        except ValueError:
            pass
    return None
