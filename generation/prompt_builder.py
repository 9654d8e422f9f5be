"""
Step 3 — Prompt Builder

Builds the single generation prompt for one unit of quota.

Every question type has a QuestionTypeProfile supplying its format rules and
the type-specific parts of the JSON response schema. The shared skeleton below
composes them with the topic context, so adding a type means adding a profile.
"""

import json
from dataclasses import dataclass
from typing import Dict, Sequence

from database.models import QuestionType
from generation.schemas import QuestionConfig, TopicAllocation, ReferenceQuestion


# ─── Question type profiles ────────────────────────────────────────────────────

@dataclass(frozen=True)
class QuestionTypeProfile:
    question_type: QuestionType
    format_rules: str       # bullet lines under "QUESTION TYPE SPECIFIC"
    options_schema: str     # JSON value shown for "options"
    answer_schema: str      # description shown for "answer"

    @property
    def has_options(self) -> bool:
        return self.options_schema != "[]"


_FOUR_OPTIONS = '["(A) option 1", "(B) option 2", "(C) option 3", "(D) option 4"]'

QUESTION_TYPE_PROFILES: Dict[QuestionType, QuestionTypeProfile] = {
    QuestionType.MCQ: QuestionTypeProfile(
        question_type=QuestionType.MCQ,
        format_rules=(
            "   - MCQ (Single Correct): Provide exactly 4 options labeled (A), (B), (C), (D)\n"
            "   - Only ONE option is correct\n"
            "   - Answer format: Single letter (A, B, C, or D)\n"
            "   - Distractors should be plausible but clearly wrong upon analysis"
        ),
        options_schema=_FOUR_OPTIONS,
        answer_schema="Single letter (A, B, C, or D)",
    ),
    QuestionType.MSQ: QuestionTypeProfile(
        question_type=QuestionType.MSQ,
        format_rules=(
            "   - MSQ (Multiple Select): Provide exactly 4 options labeled (A), (B), (C), (D)\n"
            "   - Multiple options can be correct\n"
            '   - Answer format: "A,C" or "B,D" or "A,B,C" etc. (comma-separated letters)\n'
            "   - Each option should be a plausible choice"
        ),
        options_schema=_FOUR_OPTIONS,
        answer_schema="Comma-separated letters (e.g., A,C)",
    ),
    QuestionType.NAT: QuestionTypeProfile(
        question_type=QuestionType.NAT,
        format_rules=(
            "   - NAT (Numerical Answer Type): No options needed\n"
            "   - Answer must be a specific number (integer or decimal)\n"
            '   - Answer format: Just the number (e.g., "42" or "3.14")\n'
            "   - Solution should show detailed calculation steps"
        ),
        options_schema="[]",
        answer_schema="Numerical answer",
    ),
    QuestionType.SUB: QuestionTypeProfile(
        question_type=QuestionType.SUB,
        format_rules=(
            "   - SUB (Subjective): Generate an open-ended question requiring detailed written explanation\n"
            "   - Question should test analytical thinking and conceptual understanding\n"
            "   - No options needed\n"
            "   - Answer should be a comprehensive explanation\n"
            "   - Solution should guide through the reasoning process"
        ),
        options_schema="[]",
        answer_schema="Comprehensive answer explanation",
    ),
}


def get_profile(question_type: QuestionType) -> QuestionTypeProfile:
    return QUESTION_TYPE_PROFILES[QuestionType(question_type)]


# ─── Prompt skeleton ───────────────────────────────────────────────────────────

PROMPT_HEADER = """You are an expert question generator for competitive exams. Generate a high-quality, challenging {question_type} question that tests deep understanding.

TOPIC: {topic_name}

TOPIC NOTES (Study this thoroughly to generate contextually accurate questions):
{topic_notes}

---

PREVIOUS YEAR QUESTIONS (PYQs) - Study these carefully for style, difficulty, and topic coverage. DO NOT copy them:"""

PROMPT_REQUIREMENTS = """

---

CRITICAL REQUIREMENTS:
1. DIFFICULTY LEVEL: Generate a question that is of SIMILAR OR HIGHER difficulty than the PYQs shown above
2. FRESHNESS: The question MUST be significantly different from all PYQs and previously generated questions
   - Use different numerical values, scenarios, or problem contexts
   - Apply the same concepts but in novel situations
   - DO NOT copy or slightly modify existing questions
3. CONCEPT DEPTH: Test deeper understanding, not just formula application
4. FORMAT: Use KaTeX for all mathematical expressions:
   - Inline math: $expression$
   - Block math: $$expression$$
   - Greek letters: $\\alpha$, $\\beta$, etc.
   - Fractions: $\\frac{{a}}{{b}}$
   - Subscripts/Superscripts: $x_1$, $x^2$
5. QUESTION TYPE SPECIFIC:
{format_rules}
6. SOLUTION: Provide a detailed, step-by-step solution with clear reasoning
   - Explain WHY the answer is correct
   - Show all calculation steps with KaTeX formatting
   - Address common misconceptions if applicable

RESPONSE FORMAT (JSON):
{{
  "questionStatement": "Question text with KaTeX formatting",
  "options": {options_schema},
  "answer": "{answer_schema}",
  "solution": "Detailed solution with step-by-step reasoning in KaTeX format"
}}

Generate the question now:"""

NO_NOTES = "No notes available - use your expertise on this topic"


def _format_previous(previous: Sequence[ReferenceQuestion]) -> str:
    parts = []
    for idx, q in enumerate(previous, start=1):
        block = f"\n\nPYQ {idx}:\nQuestion: {q.question_statement}"
        if q.options:
            block += f"\nOptions: {json.dumps(q.options, ensure_ascii=False)}"
        block += f"\nAnswer: {q.answer}"
        if q.solution:
            block += f"\nSolution: {q.solution}"
        if q.has_diagram:
            block += (
                "\n[Note: This question has a diagram - DO NOT copy it, instead create "
                "a fresh question inspired by the underlying concept]"
            )
        parts.append(block)
    return "".join(parts)


def _format_statements(title: str, label: str, statements: Sequence[str]) -> str:
    if not statements:
        return ""
    text = f"\n\n---\n\n{title}"
    for idx, statement in enumerate(statements, start=1):
        text += f"\n\n{label} {idx}:\nQuestion: {statement}"
    return text


def build_prompt(
    config: QuestionConfig,
    topic: TopicAllocation,
    topic_notes: str,
    previous_questions: Sequence[ReferenceQuestion],
    generated_questions: Sequence[ReferenceQuestion],
    session_statements: Sequence[str],
) -> str:
    """
    Compose the generation prompt for one unit.

    Args:
        config: Generation config (question type decides the profile)
        topic: Topic being generated for
        topic_notes: Free-text notes for the topic ('' if none)
        previous_questions: Historical sample (shown for style, not to be copied)
        generated_questions: Sample of questions generated by earlier runs
        session_statements: Statements already generated for this topic in this run
    """
    profile = get_profile(config.question_type)

    prompt = PROMPT_HEADER.format(
        question_type=profile.question_type.value,
        topic_name=topic.topic_name,
        topic_notes=topic_notes.strip() or NO_NOTES,
    )
    prompt += _format_previous(previous_questions)
    prompt += _format_statements(
        "ALREADY GENERATED QUESTIONS (DO NOT repeat these concepts or similar wording):",
        "Generated",
        [q.question_statement for q in generated_questions],
    )
    prompt += _format_statements(
        "QUESTIONS GENERATED IN THIS SESSION (DO NOT repeat):",
        "Session",
        list(session_statements),
    )
    prompt += PROMPT_REQUIREMENTS.format(
        format_rules=profile.format_rules,
        options_schema=profile.options_schema,
        answer_schema=profile.answer_schema,
    )
    return prompt
