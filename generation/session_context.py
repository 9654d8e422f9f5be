"""
Per-unit generation context.

SessionContext accumulates the questions completed during one run, per topic,
so each unit's prompt can list what this run already produced. The pipeline owns
one instance per run and passes it into context gathering.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List

from generation.question_store import QuestionStore
from generation.schemas import QuestionConfig, TopicAllocation, GeneratedQuestion, ReferenceQuestion, QuestionStatus

PYQ_SAMPLE_SIZE = int(os.getenv("PYQ_SAMPLE_SIZE", "15"))
GENERATED_SAMPLE_SIZE = int(os.getenv("GENERATED_SAMPLE_SIZE", "8"))


class SessionContext:
    """Completed questions of the current run, grouped by topic, in generation order."""

    def __init__(self):
        self._by_topic: Dict[int, List[GeneratedQuestion]] = {}

    def record(self, question: GeneratedQuestion) -> None:
        """Remember a completed question. Failed or pending ones are ignored."""
        if question.status != QuestionStatus.COMPLETED:
            return
        self._by_topic.setdefault(question.topic_id, []).append(question)

    def questions_for(self, topic_id: int) -> List[GeneratedQuestion]:
        return list(self._by_topic.get(topic_id, []))

    def statements_for(self, topic_id: int) -> List[str]:
        return [q.question_statement for q in self._by_topic.get(topic_id, [])]


@dataclass
class TopicContext:
    """Everything the prompt for one unit is built from."""
    topic: TopicAllocation
    topic_notes: str
    previous_questions: List[ReferenceQuestion] = field(default_factory=list)
    generated_questions: List[ReferenceQuestion] = field(default_factory=list)
    session_statements: List[str] = field(default_factory=list)


def gather_context(
    store: QuestionStore,
    config: QuestionConfig,
    topic: TopicAllocation,
    session: SessionContext,
    pyq_limit: int = PYQ_SAMPLE_SIZE,
    generated_limit: int = GENERATED_SAMPLE_SIZE,
) -> TopicContext:
    """
    Collect the context for the next unit of a topic.

    Historical sample: first `pyq_limit` matches. Generated sample: last
    `generated_limit` matches (includes earlier runs and, once persisted, this one).
    Session statements: every question completed for this topic in this run.
    """
    return TopicContext(
        topic=topic,
        topic_notes=store.fetch_topic_notes(topic.topic_id),
        previous_questions=store.fetch_previous_questions(config, topic.topic_id, limit=pyq_limit),
        generated_questions=store.fetch_generated_questions(config, topic.topic_id, last=generated_limit),
        session_statements=session.statements_for(topic.topic_id),
    )
