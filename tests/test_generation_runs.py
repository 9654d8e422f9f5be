"""
Tests for run planning and the run registry (SQLite in-memory, fake model).
"""
import asyncio

import pytest

from database import crud, models
from generation.schemas import QuestionConfig, GeneratedQuestionData, RunStatus
from generation.topic_allocator import NoEligibleTopicsError
from services import generation_runs
from services.generation_runs import RunRegistry, plan_generation


async def _fake_model(api_key, prompt):
    return GeneratedQuestionData(question_statement="Generated", options=["(A) 1", "(B) 2"], answer="A")


def _config(seeded, **kw) -> QuestionConfig:
    fields = dict(exam_id=seeded["exam"].id, course_id=seeded["course"].id, number_of_questions=3)
    fields.update(kw)
    return QuestionConfig(**fields)


def _start(registry, db, seeded, **kw) -> int:
    config = _config(seeded, **kw)
    return registry.create(db, config, plan_generation(db, config))


class TestPlanGeneration:
    def test_allocations_follow_histogram(self, db, seeded):
        allocations = plan_generation(db, _config(seeded, number_of_questions=7))
        assert [a.questions_to_generate for a in allocations] == [3, 3, 1]

    def test_no_eligible_topics(self, db, seeded):
        with pytest.raises(NoEligibleTopicsError):
            plan_generation(db, _config(seeded, question_type="SUB"))


class TestRunRegistry:
    def test_completed_run_is_persisted(self, session_factory, db, seeded):
        registry = RunRegistry(session_factory, generate_fn=_fake_model, delay_seconds=0)
        run_id = _start(registry, db, seeded)

        assert asyncio.run(registry.execute(run_id)) == RunStatus.COMPLETED
        db.expire_all()
        run = crud.get_generation_run(db, run_id)
        assert run.status == "completed"
        assert sum(run.counts_completed.values()) == 3
        assert run.finished_at is not None

    def test_fatal_database_error_is_persisted(self, session_factory, db, seeded, monkeypatch):
        def broken_notes(worker_db, topic_id):
            # Leaves the worker session needing a rollback, like an aborted transaction
            worker_db.add(models.Topic(name=None, chapter_id=1))
            worker_db.flush()

        registry = RunRegistry(session_factory, generate_fn=_fake_model, delay_seconds=0)
        run_id = _start(registry, db, seeded)
        monkeypatch.setattr(crud, "get_topic_notes", broken_notes)

        assert asyncio.run(registry.execute(run_id)) == RunStatus.FAILED
        db.expire_all()
        run = crud.get_generation_run(db, run_id)
        assert run.status == "failed"
        assert run.fatal_error
        assert run.finished_at is not None
        assert db.query(models.Topic).filter(models.Topic.name.is_(None)).count() == 0

    def test_finished_pipelines_are_evicted_beyond_the_cap(self, session_factory, db, seeded, monkeypatch):
        monkeypatch.setattr(generation_runs, "MAX_FINISHED_PIPELINES", 2)
        registry = RunRegistry(session_factory, generate_fn=_fake_model, delay_seconds=0)

        run_ids = []
        for _ in range(3):
            run_id = _start(registry, db, seeded, number_of_questions=1)
            asyncio.run(registry.execute(run_id))
            run_ids.append(run_id)

        assert registry.get(run_ids[0]) is None
        assert registry.get(run_ids[1]) is not None
        assert registry.get(run_ids[2]) is not None
        db.expire_all()
        assert crud.get_generation_run(db, run_ids[0]).status == "completed"

    def test_running_pipeline_is_never_evicted(self, session_factory, db, seeded, monkeypatch):
        monkeypatch.setattr(generation_runs, "MAX_FINISHED_PIPELINES", 0)
        registry = RunRegistry(session_factory, generate_fn=_fake_model, delay_seconds=0)
        pending = _start(registry, db, seeded)
        done = _start(registry, db, seeded)
        asyncio.run(registry.execute(done))

        assert registry.get(done) is None
        assert registry.get(pending) is not None
