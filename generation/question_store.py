"""
Question store used by the generation pipeline.

Reads the context for a topic (historical sample, earlier generated questions,
notes) and appends completed questions to new_questions.
"""

from typing import List, Optional, Protocol

from sqlalchemy.orm import Session

from database import crud
from generation.schemas import QuestionConfig, GeneratedQuestion, ReferenceQuestion


class QuestionStore(Protocol):
    def fetch_previous_questions(
        self, config: QuestionConfig, topic_id: int, limit: Optional[int] = None
    ) -> List[ReferenceQuestion]: ...

    def fetch_generated_questions(
        self, config: QuestionConfig, topic_id: int, last: Optional[int] = None
    ) -> List[ReferenceQuestion]: ...

    def fetch_topic_notes(self, topic_id: int) -> str: ...

    def save_generated_question(self, question: GeneratedQuestion, config: QuestionConfig) -> None: ...


def _to_reference(row) -> ReferenceQuestion:
    return ReferenceQuestion(
        question_statement=row.question_statement or "",
        options=[str(o) for o in (row.options or [])],
        answer=row.answer or "",
        solution=row.solution or "",
        has_diagram=bool(row.diagram_json),
    )


class SqlQuestionStore:
    """QuestionStore backed by the SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def fetch_previous_questions(self, config, topic_id, limit=None):
        rows = crud.get_previous_questions(
            self.db, topic_id, config.question_type.value,
            slot_id=config.slot_id, part_id=config.part_id, limit=limit,
        )
        return [_to_reference(r) for r in rows]

    def fetch_generated_questions(self, config, topic_id, last=None):
        rows = crud.get_generated_questions(
            self.db, topic_id, config.question_type.value,
            slot_id=config.slot_id, part_id=config.part_id, last=last,
        )
        return [_to_reference(r) for r in rows]

    def fetch_topic_notes(self, topic_id):
        return crud.get_topic_notes(self.db, topic_id)

    def save_generated_question(self, question, config):
        try:
            crud.create_new_question(
                self.db,
                topic_id=question.topic_id,
                topic_name=question.topic_name,
                question_statement=question.question_statement,
                question_type=question.question_type.value,
                options=list(question.options),
                answer=question.answer,
                solution=question.solution,
                slot_id=config.slot_id,
                part_id=config.part_id,
                correct_marks=config.correct_marks,
                incorrect_marks=config.incorrect_marks,
                skipped_marks=config.skipped_marks,
                partial_marks=config.partial_marks,
                time_minutes=config.time_minutes,
                answer_done=True,
                solution_done=True,
            )
        except Exception:
            self.db.rollback()
            raise
