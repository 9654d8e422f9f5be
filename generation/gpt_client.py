"""
OpenAI chat helper for question generation.

Used by:
  - question_generator.py   (one call per unit of quota)

Model: gpt-4o-mini  (override with GPT_MODEL env var, e.g. "gpt-4o")
The API key comes from the caller (entered per run) or OPENAI_API_KEY.
"""

import os
from typing import Dict, Optional

from openai import AsyncOpenAI

# ── Model config ───────────────────────────────────────────────────────────────
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")

# One lazily-created client per API key
_clients: Dict[str, AsyncOpenAI] = {}


def _get_client(api_key: Optional[str] = None) -> AsyncOpenAI:
    key = api_key or os.getenv("OPENAI_API_KEY")
    if not key:
        raise RuntimeError(
            "No API key given and OPENAI_API_KEY is not set. Add it to your .env file."
        )
    if key not in _clients:
        _clients[key] = AsyncOpenAI(api_key=key)
    return _clients[key]


async def call_gpt(
    prompt: str,
    api_key: Optional[str] = None,
    system: str = "You are an expert question setter for competitive exams. Output only what is asked.",
    temperature: float = 0.9,
    max_tokens: int = 8192,
) -> str:
    """
    Call OpenAI Chat Completions and return the assistant message text.

    Args:
        prompt:      User-turn message (the generation instruction)
        api_key:     Key to use instead of OPENAI_API_KEY
        system:      System prompt
        temperature: Sampling temperature (high = more varied questions)
        max_tokens:  Max response tokens

    Returns:
        Raw string content of the model response
    """
    client = _get_client(api_key)
    response = await client.chat.completions.create(
        model=GPT_MODEL,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
        top_p=0.95,
        max_tokens=max_tokens,
    )
    return response.choices[0].message.content or ""
