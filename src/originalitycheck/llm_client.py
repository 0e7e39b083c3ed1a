"""OpenAI-compatible text-understanding client."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import httpx
from openai import OpenAI

from .exceptions import TextUnderstandingError

logger = logging.getLogger(__name__)

PayloadKind = Literal["object", "array"]

UNIT_TEMPERATURE_MODELS = ("kimi-k2.5",)
CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_OPENERS: dict[str, str] = {"object": "{", "array": "["}


@dataclass(frozen=True)
class TextUnderstandingRequest:
    """One self-contained call to the text-understanding service."""

    step_name: str
    system_prompt: str
    user_content: str
    temperature: float
    expect: PayloadKind = "object"


class TextUnderstanding(Protocol):
    def generate(self, request: TextUnderstandingRequest) -> Any | None: ...


def generate_payload(
    client: TextUnderstanding, request: TextUnderstandingRequest
) -> Any | None:
    """Call ``client`` and treat any failure as an unusable payload."""

    try:
        return client.generate(request)
    except Exception as exc:
        logger.warning("%s failed: %s", request.step_name, exc)
        return None


def extract_json_payload(content: str, expect: PayloadKind) -> Any | None:
    """Return the first well-formed JSON value of the expected kind in ``content``.

    Fenced blocks are tried first, then the raw text. Each opener is decoded
    with ``raw_decode`` so trailing prose after the payload is ignored.
    """

    candidates = [match.group(1) for match in CODE_FENCE_PATTERN.finditer(content)]
    candidates.append(content)

    opener = _OPENERS[expect]
    expected_type = dict if expect == "object" else list
    decoder = json.JSONDecoder()
    for candidate in candidates:
        start = candidate.find(opener)
        while start != -1:
            try:
                value, _ = decoder.raw_decode(candidate, start)
            except json.JSONDecodeError:
                value = None
            if isinstance(value, expected_type):
                return value
            start = candidate.find(opener, start + 1)
    return None


class OpenAITextUnderstanding:
    """Send one chat completion per request and parse its JSON payload."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        model: str,
        timeout_sec: int = 120,
        trust_env: bool = False,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.enabled = bool(api_key) or client is not None
        self.client = client
        if self.client is None and api_key:
            self.client = OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout_sec,
                max_retries=0,
                http_client=httpx.Client(
                    timeout=timeout_sec,
                    trust_env=trust_env,
                ),
            )

    def generate(self, request: TextUnderstandingRequest) -> Any | None:
        """Return the parsed payload, or None when nothing usable came back."""

        if not self.enabled:
            logger.info("Text understanding disabled; skipping %s", request.step_name)
            return None

        try:
            content = self.complete(request)
        except TextUnderstandingError as exc:
            logger.warning("%s failed: %s", request.step_name, exc)
            return None

        payload = extract_json_payload(content, request.expect)
        if payload is None:
            logger.warning(
                "%s returned no parseable JSON %s", request.step_name, request.expect
            )
        return payload

    def complete(self, request: TextUnderstandingRequest) -> str:
        response = self._request_completion(
            system_prompt=request.system_prompt,
            user_prompt=request.user_content,
            temperature=request.temperature,
        )

        if not getattr(response, "choices", None):
            raise TextUnderstandingError("OpenAI returned no choices")

        content = self._extract_content(response.choices[0].message.content)
        if not content.strip():
            raise TextUnderstandingError("OpenAI returned empty content")
        return content

    def _request_completion(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> Any:
        try:
            return self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self._resolve_temperature(temperature),
            )
        except Exception as exc:
            raise TextUnderstandingError(f"OpenAI request failed: {exc}") from exc

    def _resolve_temperature(self, requested_temperature: float) -> float:
        normalized_model = self.model.strip().lower()
        for fixed_model in UNIT_TEMPERATURE_MODELS:
            if normalized_model == fixed_model or normalized_model.startswith(
                f"{fixed_model}-"
            ):
                return 1.0
        return requested_temperature

    def _extract_content(self, content: Any) -> str:
        if isinstance(content, str):
            return content

        if isinstance(content, list):
            chunks: list[str] = []
            for item in content:
                if isinstance(item, dict) and "text" in item:
                    chunks.append(str(item["text"]))
            return "\n".join(chunks)

        return ""
