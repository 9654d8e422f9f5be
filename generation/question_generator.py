"""
Step 4 — Question Generation

One LLM call per unit of quota: prompt in, one structured question out.

The model is asked for a JSON object but often wraps it in markdown fences or
prose, so the first balanced {...} region of the reply is parsed. Any failure
raises; the pipeline records it against the unit and moves on.
"""

import json
import re
from typing import Optional

from generation.schemas import GeneratedQuestionData


class GenerationError(ValueError):
    """The model reply could not be turned into a question."""


# ─── JSON extraction ───────────────────────────────────────────────────────────

def _extract_json_obj(raw: str) -> dict:
    """
    Parse the first balanced {...} object in raw.

    Braces inside JSON strings (e.g. LaTeX like \\frac{a}{b}) do not count
    towards nesting.
    """
    raw = re.sub(r"^```(?:json)?\s*", "", raw.strip(), flags=re.MULTILINE)
    start = raw.find("{")
    if start == -1:
        raise GenerationError(f"No JSON object found: {raw[:200]}")

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(raw)):
        ch = raw[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(raw[start:i + 1])
                except json.JSONDecodeError as e:
                    raise GenerationError(f"JSON parse error: {e}") from e

    raise GenerationError(f"Unbalanced JSON object: {raw[start:start + 200]}")


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v).strip() for v in value)
    return str(value).strip()


def parse_question(raw: str) -> GeneratedQuestionData:
    """Turn a raw model reply into GeneratedQuestionData."""
    data = _extract_json_obj(raw)
    if not isinstance(data, dict):
        raise GenerationError("Model reply is not a JSON object")

    statement = _as_text(data.get("questionStatement") or data.get("question_statement"))
    if not statement:
        raise GenerationError("Model reply has no questionStatement")

    options = data.get("options") or []
    if not isinstance(options, list):
        raise GenerationError("options must be a list")

    return GeneratedQuestionData(
        question_statement=statement,
        options=[str(o).strip() for o in options if str(o).strip()],
        answer=_as_text(data.get("answer")),
        solution=_as_text(data.get("solution")),
    )


# ─── Main generator ────────────────────────────────────────────────────────────

async def generate_question(api_key: Optional[str], prompt: str) -> GeneratedQuestionData:
    """
    Generate one question for a fully built prompt.

    Raises on transport errors (from the OpenAI client) and on unusable output
    (GenerationError).
    """
    from generation.gpt_client import call_gpt

    raw = await call_gpt(prompt, api_key=api_key)
    if not raw.strip():
        raise GenerationError("No response from model")
    return parse_question(raw)
