"""OpenAI chat-completions gateway — structured generation over httpx.

`OpenAIStructuredGateway.invoke_structured()` makes exactly ONE request:
  - JSON response format is enforced via response_format.
  - Raw output is sanitized (fences, prose, trailing commas) and parsed.
  - The parsed object is validated against the requested pydantic schema.
  - HTTP and transport failures are mapped onto the gateway error types.

Retries, backoff and per-call timeouts belong to the ideator's
LLM integration service, not to this module.
"""

from __future__ import annotations

import json
import os
import re
import time
from typing import Any, Callable, Dict, List, Optional, Type

import httpx
from pydantic import ValidationError

from .llm_gateway import (
    AuthFailed,
    GatewayTimeout,
    GenerationOptions,
    RateLimited,
    SchemaMismatch,
    T,
    UnknownGatewayError,
    UsageMetadata,
)

_OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert at generating innovative, realistic business ideas "
    "from market research. Respond with a single JSON object only."
)


def get_openai_key() -> str:
    """Read OPENAI_API_KEY from the environment. Raises AuthFailed if missing."""
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        print("⚠️  [OPENAI] API key missing (OPENAI_API_KEY)")
        raise AuthFailed("Authentication failed: OPENAI_API_KEY environment variable not set", status_code=401)
    return key


# ---------------------------------------------------------------------------
# JSON sanitizer — extracts valid JSON from LLM output
# ---------------------------------------------------------------------------
def sanitize_json(raw: str) -> str:
    """Extract a JSON object or array from raw LLM output.

    Handles:
      - Markdown fences (```json ... ```)
      - Leading/trailing whitespace and BOM
      - Prose before/after JSON
      - Trailing commas before } or ]

    Raises ValueError if no JSON value is found.
    """
    text = raw.strip().lstrip("\ufeff")

    fence = re.search(r"```(?:json)?\s*([\s\S]*?)```", text, re.IGNORECASE)
    if fence:
        text = fence.group(1).strip()

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        raise ValueError("LLM did not return JSON — no '{' or '[' found")
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end == -1:
        raise ValueError(f"LLM did not return JSON — no '{closer}' found")
    text = text[start : end + 1]

    return re.sub(r",\s*([}\]])", r"\1", text)


def build_payload(
    *,
    model: str,
    messages: List[Dict[str, str]],
    options: GenerationOptions,
    top_p: float,
    presence_penalty: float,
    frequency_penalty: float,
) -> Dict[str, Any]:
    """Build an OpenAI chat completions payload with JSON output enforced."""
    return {
        "model": model,
        "messages": messages,
        "max_tokens": options.max_tokens,
        "temperature": options.temperature,
        "top_p": top_p,
        "presence_penalty": presence_penalty,
        "frequency_penalty": frequency_penalty,
        "response_format": {"type": "json_object"},
    }


def parse_structured(raw_content: str, schema: Type[T]) -> T:
    """Sanitize, parse and validate *raw_content* against *schema*."""
    try:
        parsed = json.loads(sanitize_json(raw_content))
    except (ValueError, json.JSONDecodeError) as exc:
        raise SchemaMismatch(f"Malformed JSON in model response: {exc}") from exc

    # Batch schemas wrap a list under "ideas"; accept a bare list too
    if isinstance(parsed, list) and "ideas" in schema.model_fields:
        parsed = {"ideas": parsed}

    try:
        return schema.model_validate(parsed)
    except ValidationError as exc:
        raise SchemaMismatch(
            f"Model response does not match {schema.__name__}: {exc.error_count()} problem(s)"
        ) from exc


class OpenAIStructuredGateway:
    """Gateway to the OpenAI chat completions endpoint."""

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        top_p: float = 0.9,
        presence_penalty: float = 0.1,
        frequency_penalty: float = 0.1,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        client: Optional[httpx.AsyncClient] = None,
        usage_callback: Optional[Callable[[UsageMetadata], None]] = None,
        api_url: str = _OPENAI_API_URL,
    ):
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4o").strip()
        self._api_key = api_key
        self.top_p = top_p
        self.presence_penalty = presence_penalty
        self.frequency_penalty = frequency_penalty
        self.system_prompt = system_prompt
        self._client = client
        self.usage_callback = usage_callback
        self.api_url = api_url

    async def invoke_structured(
        self,
        prompt: str,
        schema: Type[T],
        options: GenerationOptions,
    ) -> T:
        api_key = self._api_key or get_openai_key()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        model = options.model or self.model
        payload = build_payload(
            model=model,
            messages=[
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            options=options,
            top_p=_pick(options.top_p, self.top_p),
            presence_penalty=_pick(options.presence_penalty, self.presence_penalty),
            frequency_penalty=_pick(options.frequency_penalty, self.frequency_penalty),
        )

        print(f"🧠 [OPENAI] Calling {model} (max_tokens={options.max_tokens})")
        t0 = time.time()
        try:
            if self._client is not None:
                response = await self._client.post(self.api_url, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(self.api_url, headers=headers, json=payload)
        except httpx.TimeoutException as exc:
            print(f"❌ [OPENAI] Timeout after {time.time() - t0:.1f}s")
            raise GatewayTimeout(f"OpenAI request timeout: {exc}") from exc
        except httpx.HTTPError as exc:
            print(f"❌ [OPENAI] Transport error: {exc}")
            raise UnknownGatewayError(f"OpenAI transport error: {exc}") from exc

        print(f"📦 [OPENAI] HTTP {response.status_code} ({time.time() - t0:.1f}s)")
        if response.status_code != 200:
            raise _error_for_status(response)

        data = response.json()
        self._report_usage(data, model)

        raw_content = (data["choices"][0]["message"]["content"] or "").strip()
        print(f"🧠 [OPENAI] Raw output length: {len(raw_content)} chars")
        if not raw_content:
            raise SchemaMismatch("Model returned an empty response")

        return parse_structured(raw_content, schema)

    def _report_usage(self, data: Dict[str, Any], model: str) -> None:
        usage = data.get("usage")
        if not usage:
            return
        print(
            f"🧠 [OPENAI] Tokens used: prompt={usage.get('prompt_tokens', '?')}, "
            f"completion={usage.get('completion_tokens', '?')}, total={usage.get('total_tokens', '?')}"
        )
        if self.usage_callback is not None:
            self.usage_callback(
                UsageMetadata(
                    prompt_tokens=usage.get("prompt_tokens", 0) or 0,
                    completion_tokens=usage.get("completion_tokens", 0) or 0,
                    total_tokens=usage.get("total_tokens", 0) or 0,
                    model_name=data.get("model", model),
                    request_id=data.get("id"),
                )
            )


def _pick(value: Optional[float], default: float) -> float:
    return default if value is None else value


def _error_for_status(response: httpx.Response) -> Exception:
    status = response.status_code
    body = response.text[:400]
    print(f"⚠️  [OPENAI] Error response: {body}")
    if status == 429:
        return RateLimited(f"429: Too Many Requests — {body}", status_code=status)
    if status in (401, 403):
        return AuthFailed(f"{status}: Authentication failed — {body}", status_code=status)
    if status in (408, 504):
        return GatewayTimeout(f"{status}: Gateway timeout — {body}", status_code=status)
    return UnknownGatewayError(f"{status}: {response.reason_phrase or 'Error'} — {body}", status_code=status)
